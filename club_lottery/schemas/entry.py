"""Schemas for lottery entries and results."""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates

from club_lottery.rules import MAX_NUMBER, MIN_NUMBER, NUMBERS_PER_LINE


class EntrySchema(Schema):
    id = fields.String()
    user_id = fields.String(data_key="userId")
    draw_date = fields.Date(data_key="drawDate")
    numbers = fields.List(fields.Integer())
    line_number = fields.Integer(data_key="lineNumber", allow_none=True)
    is_active = fields.Boolean(data_key="isActive")
    origin = fields.String()
    subscription_id = fields.String(data_key="subscriptionId", allow_none=True)


class EntryUpdateSchema(Schema):
    numbers = fields.List(
        fields.Integer(validate=validate.Range(min=MIN_NUMBER, max=MAX_NUMBER)),
        required=True,
        validate=validate.Length(equal=NUMBERS_PER_LINE),
    )

    @validates("numbers")
    def _validate_unique(self, value, **kwargs):  # type: ignore[no-untyped-def]
        if len(value) != len(set(value)):
            raise ValidationError("Numbers must be unique")


class EntryQuerySchema(Schema):
    draw_date = fields.Date(required=True, data_key="drawDate")


class SubscriberResultSchema(Schema):
    draw_id = fields.String(data_key="drawId")
    draw_date = fields.Date(data_key="drawDate")
    winning_numbers = fields.List(fields.Integer(), data_key="winningNumbers")
    entry_id = fields.String(data_key="entryId")
    matches = fields.Integer()
    tier = fields.String()
    prize_amount = fields.Integer(data_key="prizeAmount")
