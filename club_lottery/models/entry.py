"""Lottery entry (one subscriber line for one draw date)."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, Date, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from club_lottery.models.base import Base, new_id, utcnow


class EntryOrigin(str, Enum):
    SUBSCRIPTION = "subscription"
    ONE_TIME = "one_time"


class LotteryEntry(Base):
    """A subscriber's four chosen numbers for a specific draw date."""

    __tablename__ = "lottery_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    draw_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    numbers: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    line_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    origin: Mapped[str] = mapped_column(String(20), nullable=False, default=EntryOrigin.ONE_TIME.value)
    subscription_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def is_subscription(self) -> bool:
        return self.origin == EntryOrigin.SUBSCRIPTION.value
