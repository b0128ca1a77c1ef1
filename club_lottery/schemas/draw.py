"""Schemas for the draw API."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class ConductDrawRequestSchema(Schema):
    draw_date = fields.Date(required=True, data_key="drawDate")
    jackpot_amount = fields.Integer(
        required=True,
        data_key="jackpotAmount",
        validate=validate.Range(min=1),
        strict=True,
    )
    is_test = fields.Boolean(required=False, load_default=False, data_key="isTestDraw")


class LiveDrawRequestSchema(Schema):
    force = fields.Boolean(required=False, load_default=False)


class DrawSchema(Schema):
    """Serialize a stored LotteryDraw."""

    id = fields.String()
    draw_date = fields.Date(data_key="drawDate")
    winning_numbers = fields.List(fields.Integer(), data_key="winningNumbers")
    jackpot_amount = fields.Integer(data_key="jackpotAmount")
    lucky_dip_amount = fields.Integer(data_key="luckyDipAmount")
    is_test = fields.Boolean(data_key="isTestDraw")
    has_certificate = fields.Function(lambda d: bool(d.random_signature), data_key="hasCertificate")
    created_at = fields.DateTime(data_key="createdAt")


class RenewalSummarySchema(Schema):
    draw_date = fields.Date(data_key="drawDate")
    next_draw_date = fields.Date(data_key="nextDrawDate")
    processed_entries = fields.Integer(data_key="processedEntries")
    new_entries_created = fields.Integer(data_key="newEntriesCreated")
    already_renewed = fields.Integer(data_key="alreadyRenewed")
