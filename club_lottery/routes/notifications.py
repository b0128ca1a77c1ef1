"""Notification routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, request

from club_lottery.db import get_session
from club_lottery.errors import NotFoundError
from club_lottery.extensions import get_dispatcher
from club_lottery.repositories.draw_repository import DrawRepository
from club_lottery.repositories.subscriber_repository import SubscriberRepository
from club_lottery.schemas.notification import NotifyWinnersRequestSchema
from club_lottery.utils.responses import ok

notifications_bp = Blueprint("notifications", __name__, url_prefix="/notifications")

_request_schema = NotifyWinnersRequestSchema()
_draws = DrawRepository()
_subscribers = SubscriberRepository()


@notifications_bp.post("/winners")
def notify_winners():
    """Email the winners of an already conducted draw plus the admin summary."""

    payload = request.get_json(silent=True) or {}
    data = _request_schema.load(payload)

    session = get_session()
    draw = _draws.get_by_id(session, data["draw_id"])
    if draw is None:
        raise NotFoundError(message=f"Draw {data['draw_id']} not found")

    winners = data["winners"]
    contacts = _subscribers.emails_for(session, [w.user_id for w in winners])
    report = get_dispatcher().dispatch(draw, winners, contacts)
    return ok(report.to_dict())
