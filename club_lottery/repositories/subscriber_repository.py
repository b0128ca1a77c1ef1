"""Repository layer for subscriber contact details."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from club_lottery.models.subscriber import Subscriber


class SubscriberRepository:
    def get(self, session: Session, user_id: str) -> Subscriber | None:
        return session.get(Subscriber, user_id)

    def emails_for(self, session: Session, user_ids: Iterable[str]) -> dict[str, str]:
        """Map user id -> email for the ids that have a known address."""

        ids = sorted({str(u) for u in user_ids})
        if not ids:
            return {}
        stmt = select(Subscriber).where(Subscriber.user_id.in_(ids))
        return {s.user_id: s.email for s in session.scalars(stmt).all() if s.email}

    def upsert(self, session: Session, user_id: str, email: str, full_name: str | None = None) -> Subscriber:
        subscriber = self.get(session, user_id)
        if subscriber is None:
            subscriber = Subscriber(user_id=user_id, email=email, full_name=full_name)
            session.add(subscriber)
        else:
            subscriber.email = email
            if full_name is not None:
                subscriber.full_name = full_name
        session.flush()
        return subscriber
