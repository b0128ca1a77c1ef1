"""Persisted winning results."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, SmallInteger, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from club_lottery.models.base import Base, utcnow


class LotteryResult(Base):
    """A winning entry for a draw. Non-winning outcomes are not stored."""

    __tablename__ = "lottery_results"
    # An entry holds at most one prize tier per draw.
    __table_args__ = (UniqueConstraint("draw_id", "entry_id", name="uq_lottery_results_draw_entry"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    draw_id: Mapped[str] = mapped_column(String(36), ForeignKey("lottery_draws.id", ondelete="CASCADE"), index=True)
    entry_id: Mapped[str] = mapped_column(String(36), ForeignKey("lottery_entries.id", ondelete="CASCADE"))
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    matches: Mapped[int] = mapped_column(SmallInteger, nullable=False)  # 0..4
    tier: Mapped[str] = mapped_column(String(20), nullable=False)
    prize_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    is_winner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
