"""Lottery draw model.

One row per conducted draw. Rows are append-only: nothing in the service
updates a draw after it has been created.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from club_lottery.models.base import Base, new_id, utcnow


class LotteryDraw(Base):
    """A single draw: winning numbers plus the prize pots it was settled with."""

    __tablename__ = "lottery_draws"
    __table_args__ = (
        # At most one live draw per calendar date; test draws are unrestricted.
        Index(
            "uq_lottery_draws_live_date",
            "draw_date",
            unique=True,
            sqlite_where=text("is_test = 0"),
            postgresql_where=text("is_test = false"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    draw_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    winning_numbers: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    jackpot_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    lucky_dip_amount: Mapped[int] = mapped_column(Integer, nullable=False)

    random_signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    random_payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    is_test: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
