"""Roll subscription lines forward to the next monthly draw."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from club_lottery.models.entry import EntryOrigin
from club_lottery.repositories.entry_repository import EntryRepository
from club_lottery.utils.draw_dates import following_draw_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenewalSummary:
    draw_date: date
    next_draw_date: date
    processed_entries: int
    new_entries_created: int
    already_renewed: int


class SubscriptionRenewalService:
    """Copy each active subscription line of a completed draw to the next draw.

    Re-running for the same date does not duplicate lines: a line already
    present on the next date for the same subscriber, subscription and line
    number is left alone.
    """

    def __init__(self, entries: EntryRepository | None = None) -> None:
        self._entries = entries or EntryRepository()

    def renew(self, session: Session, draw_date: date) -> RenewalSummary:
        next_date = following_draw_date(draw_date)
        current = [e for e in self._entries.find_by_draw_date(session, draw_date) if e.is_subscription]

        existing = {
            (e.user_id, e.subscription_id, e.line_number)
            for e in self._entries.find_by_draw_date(session, next_date)
            if e.is_subscription
        }

        created = 0
        skipped = 0
        for entry in current:
            if not entry.is_active:
                continue
            key = (entry.user_id, entry.subscription_id, entry.line_number)
            if key in existing:
                skipped += 1
                continue
            self._entries.create(
                session,
                user_id=entry.user_id,
                draw_date=next_date,
                numbers=entry.numbers,
                origin=EntryOrigin.SUBSCRIPTION,
                subscription_id=entry.subscription_id,
                line_number=entry.line_number,
            )
            existing.add(key)
            created += 1

        logger.info(
            "Renewed subscriptions from %s to %s: %d processed, %d created, %d already present",
            draw_date.isoformat(),
            next_date.isoformat(),
            len(current),
            created,
            skipped,
        )
        return RenewalSummary(
            draw_date=draw_date,
            next_draw_date=next_date,
            processed_entries=len(current),
            new_entries_created=created,
            already_renewed=skipped,
        )
