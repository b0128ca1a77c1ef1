"""Repository layer for lottery draw persistence."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from club_lottery.errors import DuplicateDrawError
from club_lottery.models.draw import LotteryDraw


class DrawRepository:
    """Append-only store of conducted draws."""

    def find_latest(self, session: Session, include_test: bool = False) -> LotteryDraw | None:
        stmt = select(LotteryDraw)
        if not include_test:
            stmt = stmt.where(LotteryDraw.is_test.is_(False))
        stmt = stmt.order_by(LotteryDraw.draw_date.desc(), LotteryDraw.created_at.desc()).limit(1)
        return session.scalars(stmt).first()

    def find_by_date(self, session: Session, draw_date: date, include_test: bool = False) -> LotteryDraw | None:
        stmt = select(LotteryDraw).where(LotteryDraw.draw_date == draw_date)
        if not include_test:
            stmt = stmt.where(LotteryDraw.is_test.is_(False))
        return session.scalars(stmt.order_by(LotteryDraw.created_at.desc()).limit(1)).first()

    def get_by_id(self, session: Session, draw_id: str) -> LotteryDraw | None:
        return session.get(LotteryDraw, draw_id)

    def list_recent(self, session: Session, limit: int = 12, include_test: bool = False) -> Sequence[LotteryDraw]:
        stmt = select(LotteryDraw)
        if not include_test:
            stmt = stmt.where(LotteryDraw.is_test.is_(False))
        stmt = stmt.order_by(LotteryDraw.draw_date.desc(), LotteryDraw.created_at.desc()).limit(int(limit))
        return list(session.scalars(stmt).all())

    def create(self, session: Session, draw: LotteryDraw) -> LotteryDraw:
        """Insert a new draw.

        The partial unique index on ``draw_date`` is the authoritative guard;
        the lookup beforehand only gives a clearer error in the common case.
        A concurrent insert that wins the race surfaces as ``IntegrityError``
        on flush, which rolls back the session.

        Raises:
            DuplicateDrawError: a live draw already exists for ``draw.draw_date``.
        """

        if not draw.is_test and self.find_by_date(session, draw.draw_date) is not None:
            raise DuplicateDrawError(
                message=f"A draw has already been conducted for {draw.draw_date.isoformat()}",
                details={"draw_date": draw.draw_date.isoformat()},
            )

        session.add(draw)
        try:
            session.flush()
        except IntegrityError as exc:
            session.rollback()
            raise DuplicateDrawError(
                message=f"A draw has already been conducted for {draw.draw_date.isoformat()}",
                details={"draw_date": draw.draw_date.isoformat()},
            ) from exc
        return draw
