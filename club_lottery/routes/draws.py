"""Draw routes (controllers). No business logic here."""

from __future__ import annotations

from datetime import date

from flask import Blueprint, request

from club_lottery.db import get_session
from club_lottery.errors import NotFoundError, ValidationError
from club_lottery.extensions import get_orchestrator, get_renewal_service
from club_lottery.repositories.draw_repository import DrawRepository
from club_lottery.schemas.draw import (
    ConductDrawRequestSchema,
    DrawSchema,
    LiveDrawRequestSchema,
    RenewalSummarySchema,
)
from club_lottery.services.randomness import VERIFY_SIGNATURE_URL
from club_lottery.utils.responses import ok

draws_bp = Blueprint("draws", __name__, url_prefix="/draws")

_conduct_schema = ConductDrawRequestSchema()
_live_schema = LiveDrawRequestSchema()
_draw_schema = DrawSchema()
_draws_schema = DrawSchema(many=True)
_renewal_schema = RenewalSummarySchema()
_repo = DrawRepository()


def _include_test() -> bool:
    return (request.args.get("includeTest") or "").strip().lower() in ("1", "true", "yes")


@draws_bp.post("/conduct")
def conduct_draw():
    """Conduct a draw for an explicit date (operator action)."""

    payload = request.get_json(silent=True) or {}
    data = _conduct_schema.load(payload)

    outcome = get_orchestrator().conduct(
        get_session(),
        draw_date=data["draw_date"],
        jackpot_amount=int(data["jackpot_amount"]),
        is_test=bool(data["is_test"]),
    )
    return ok({"drawResult": outcome.to_dict()}, status_code=201)


@draws_bp.post("/live")
def trigger_live_draw():
    """Conduct the live draw configured in lottery settings."""

    payload = request.get_json(silent=True) or {}
    data = _live_schema.load(payload)

    outcome = get_orchestrator().conduct_scheduled(get_session(), force=bool(data["force"]))
    return ok({"drawResult": outcome.to_dict()}, status_code=201)


@draws_bp.get("")
def list_draws():
    raw_limit = (request.args.get("limit") or "12").strip()
    try:
        limit = int(raw_limit)
    except ValueError as e:
        raise ValidationError("limit must be an integer") from e
    if limit <= 0 or limit > 100:
        raise ValidationError("limit must be within 1..100")

    draws = _repo.list_recent(get_session(), limit=limit, include_test=_include_test())
    return ok(_draws_schema.dump(draws))


@draws_bp.get("/latest")
def latest_draw():
    draw = _repo.find_latest(get_session(), include_test=_include_test())
    if draw is None:
        raise NotFoundError(message="No draws have been conducted yet")
    return ok(_draw_schema.dump(draw))


@draws_bp.get("/<draw_id>/certificate")
def draw_certificate(draw_id: str):
    """Return the signed random object so the draw can be verified independently."""

    draw = _repo.get_by_id(get_session(), draw_id)
    if draw is None:
        raise NotFoundError(message=f"Draw {draw_id} not found")
    if not draw.random_signature:
        raise NotFoundError(message=f"Draw {draw_id} has no certificate")

    return ok(
        {
            "drawId": draw.id,
            "drawDate": draw.draw_date.isoformat(),
            "random": draw.random_payload,
            "signature": draw.random_signature,
            "verifyUrl": VERIFY_SIGNATURE_URL,
        }
    )


@draws_bp.post("/<draw_date>/complete")
def complete_draw(draw_date: str):
    """Renew subscription lines of a completed draw into the next month."""

    try:
        parsed = date.fromisoformat(draw_date)
    except ValueError as e:
        raise ValidationError("draw_date must be an ISO date (YYYY-MM-DD)") from e

    summary = get_renewal_service().renew(get_session(), parsed)
    return ok(_renewal_schema.dump(summary))
