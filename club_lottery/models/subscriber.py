"""Subscriber contact details."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from club_lottery.models.base import Base


class Subscriber(Base):
    __tablename__ = "lottery_subscribers"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
