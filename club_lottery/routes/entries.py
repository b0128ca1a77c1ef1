"""Entry and subscriber result routes."""

from __future__ import annotations

from flask import Blueprint, request

from club_lottery.db import get_session
from club_lottery.repositories.entry_repository import EntryRepository
from club_lottery.repositories.result_repository import ResultRepository
from club_lottery.schemas.entry import EntryQuerySchema, EntrySchema, EntryUpdateSchema, SubscriberResultSchema
from club_lottery.utils.responses import ok

entries_bp = Blueprint("entries", __name__)

_entry_schema = EntrySchema()
_entries_schema = EntrySchema(many=True)
_update_schema = EntryUpdateSchema()
_query_schema = EntryQuerySchema()
_results_schema = SubscriberResultSchema(many=True)
_entries = EntryRepository()
_results = ResultRepository()


@entries_bp.get("/entries")
def list_entries():
    """List every entry (active or not) for ``?drawDate=YYYY-MM-DD``."""

    query = _query_schema.load(request.args.to_dict())
    entries = _entries.find_by_draw_date(get_session(), query["draw_date"])
    return ok(_entries_schema.dump(entries))


@entries_bp.patch("/entries/<entry_id>")
def update_entry(entry_id: str):
    payload = request.get_json(silent=True) or {}
    data = _update_schema.load(payload)

    entry = _entries.update(get_session(), entry_id, data["numbers"])
    return ok(_entry_schema.dump(entry))


@entries_bp.get("/subscribers/<user_id>/results")
def subscriber_results(user_id: str):
    """Dashboard view of a subscriber's wins, independent of email delivery."""

    rows = _results.list_for_user(get_session(), user_id)
    return ok(
        _results_schema.dump(
            [
                {
                    "draw_id": draw.id,
                    "draw_date": draw.draw_date,
                    "winning_numbers": draw.winning_numbers,
                    "entry_id": result.entry_id,
                    "matches": result.matches,
                    "tier": result.tier,
                    "prize_amount": result.prize_amount,
                }
                for result, draw in rows
            ]
        )
    )
