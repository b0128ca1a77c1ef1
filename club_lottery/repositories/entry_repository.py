"""Repository layer for lottery entries."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from club_lottery.errors import EntryLockedError, NotFoundError, ValidationError
from club_lottery.models.entry import EntryOrigin, LotteryEntry
from club_lottery.rules import validate_line


class EntryRepository:
    """CRUD operations for LotteryEntry."""

    def find_by_draw_date(self, session: Session, draw_date: date) -> Sequence[LotteryEntry]:
        """All entries for a date, inactive ones included."""

        stmt = (
            select(LotteryEntry)
            .where(LotteryEntry.draw_date == draw_date)
            .order_by(LotteryEntry.created_at.asc(), LotteryEntry.id.asc())
        )
        return list(session.scalars(stmt).all())

    def find_for_user(self, session: Session, user_id: str) -> Sequence[LotteryEntry]:
        stmt = (
            select(LotteryEntry)
            .where(LotteryEntry.user_id == user_id)
            .order_by(LotteryEntry.draw_date.desc(), LotteryEntry.line_number.asc())
        )
        return list(session.scalars(stmt).all())

    def get_by_id(self, session: Session, entry_id: str) -> LotteryEntry | None:
        return session.get(LotteryEntry, entry_id)

    def create(
        self,
        session: Session,
        *,
        user_id: str,
        draw_date: date,
        numbers: Iterable[int],
        origin: EntryOrigin | str = EntryOrigin.ONE_TIME,
        subscription_id: str | None = None,
        line_number: int | None = None,
        is_active: bool = True,
    ) -> LotteryEntry:
        try:
            origin_value = EntryOrigin(origin).value
        except ValueError as exc:
            raise ValidationError(
                message="Invalid origin",
                details={"origin": ["Must be one of subscription|one_time"]},
            ) from exc

        entry = LotteryEntry(
            user_id=user_id,
            draw_date=draw_date,
            numbers=validate_line(numbers),
            origin=origin_value,
            subscription_id=subscription_id,
            line_number=line_number,
            is_active=is_active,
        )
        session.add(entry)
        session.flush()  # assign PK
        return entry

    def update(
        self,
        session: Session,
        entry_id: str,
        numbers: Iterable[int],
        today: date | None = None,
    ) -> LotteryEntry:
        """Replace the numbers on a subscription entry ahead of its draw.

        Raises:
            NotFoundError: no entry with ``entry_id``.
            EntryLockedError: the entry is a one-time purchase or its draw date
                has been reached.
        """

        entry = self.get_by_id(session, entry_id)
        if entry is None:
            raise NotFoundError(message=f"Entry {entry_id} not found")

        today = today or date.today()
        if not entry.is_subscription:
            raise EntryLockedError(
                message="Only subscription entries can be edited",
                details={"origin": entry.origin},
            )
        if today >= entry.draw_date:
            raise EntryLockedError(
                message="Entry can no longer be edited after its draw date",
                details={"draw_date": entry.draw_date.isoformat()},
            )

        entry.numbers = validate_line(numbers)
        session.flush()
        return entry
