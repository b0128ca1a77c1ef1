"""Schemas for the winner notification API."""

from __future__ import annotations

from marshmallow import Schema, fields, post_load, validate

from club_lottery.rules import MAX_NUMBER, MIN_NUMBER, NUMBERS_PER_LINE
from club_lottery.services.notifications import WinnerNotice


class WinnerSchema(Schema):
    user_id = fields.String(required=True, data_key="userId", validate=validate.Length(min=1))
    matches = fields.Integer(required=True, validate=validate.Range(min=0, max=NUMBERS_PER_LINE))
    is_lucky_dip = fields.Boolean(required=False, load_default=False, data_key="isLuckyDip")
    prize_amount = fields.Integer(required=True, data_key="prizeAmount", validate=validate.Range(min=0))
    numbers = fields.List(
        fields.Integer(validate=validate.Range(min=MIN_NUMBER, max=MAX_NUMBER)),
        required=False,
        load_default=list,
    )

    @post_load
    def _make_notice(self, data, **kwargs):  # type: ignore[no-untyped-def]
        return WinnerNotice(**data)


class NotifyWinnersRequestSchema(Schema):
    draw_id = fields.String(required=True, data_key="drawId", validate=validate.Length(min=1))
    winners = fields.List(fields.Nested(WinnerSchema), required=True)
