"""Repository layer for persisted winning results."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from club_lottery.models.draw import LotteryDraw
from club_lottery.models.result import LotteryResult


class ResultRepository:
    """Stores the winners of a settled draw."""

    def add_winner(
        self,
        session: Session,
        *,
        draw_id: str,
        entry_id: str,
        user_id: str,
        matches: int,
        tier: str,
        prize_amount: int,
    ) -> LotteryResult:
        row = LotteryResult(
            draw_id=draw_id,
            entry_id=entry_id,
            user_id=user_id,
            matches=matches,
            tier=tier,
            prize_amount=prize_amount,
            is_winner=True,
        )
        session.add(row)
        session.flush()
        return row

    def list_for_draw(self, session: Session, draw_id: str) -> Sequence[LotteryResult]:
        stmt = select(LotteryResult).where(LotteryResult.draw_id == draw_id).order_by(LotteryResult.id.asc())
        return list(session.scalars(stmt).all())

    def list_for_user(self, session: Session, user_id: str) -> Sequence[tuple[LotteryResult, LotteryDraw]]:
        stmt = (
            select(LotteryResult, LotteryDraw)
            .join(LotteryDraw, LotteryDraw.id == LotteryResult.draw_id)
            .where(LotteryResult.user_id == user_id)
            .order_by(LotteryDraw.draw_date.desc(), LotteryResult.id.asc())
        )
        return [(row[0], row[1]) for row in session.execute(stmt).all()]
