from __future__ import annotations

import random
from collections.abc import Iterable
from datetime import date

import pytest

from club_lottery import create_app
from club_lottery.errors import NotificationSendError
from club_lottery.models.entry import EntryOrigin, LotteryEntry
from club_lottery.repositories.entry_repository import EntryRepository
from club_lottery.repositories.subscriber_repository import SubscriberRepository
from club_lottery.services.draw_guard import DrawGuard
from club_lottery.services.notifications import EmailMessage, NotificationDispatcher
from club_lottery.services.orchestrator import DrawOrchestrator
from club_lottery.services.randomness import SignedRandomNumbers
from club_lottery.services.settlement import SettlementEngine

WINNING = [3, 9, 17, 30]
ADMIN_EMAIL = "admin@example.org"


class FakeProvider:
    def __init__(self, numbers: Iterable[int] = WINNING) -> None:
        self.numbers = list(numbers)
        self.error: Exception | None = None
        self.calls = 0

    def generate_unique_integers(self, count, minimum, maximum, user_data=None):  # type: ignore[no-untyped-def]
        self.calls += 1
        if self.error is not None:
            raise self.error
        return SignedRandomNumbers(
            numbers=sorted(self.numbers),
            signature="c2lnbmF0dXJl",
            random_payload={"method": "generateSignedIntegers", "data": list(self.numbers), "serialNumber": 42},
            serial_number=42,
        )


class RecordingSender:
    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []
        self.fail_for: set[str] = set()

    def send(self, message: EmailMessage) -> None:
        if self.fail_for.intersection(message.to):
            raise NotificationSendError(message=f"Failed to send email to {message.to[0]}")
        self.sent.append(message)

    @property
    def recipients(self) -> list[str]:
        return [m.to[0] for m in self.sent]


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def dispatcher(sender: RecordingSender) -> NotificationDispatcher:
    return NotificationDispatcher(
        sender,
        admin_email=ADMIN_EMAIL,
        lottery_name="Test Lottery",
        sleep=lambda seconds: None,
    )


@pytest.fixture
def guard() -> DrawGuard:
    return DrawGuard(cooldown_seconds=300)


@pytest.fixture
def orchestrator(provider, dispatcher, guard) -> DrawOrchestrator:  # type: ignore[no-untyped-def]
    return DrawOrchestrator(
        provider=provider,
        engine=SettlementEngine(5, rng=random.Random(1234)),
        dispatcher=dispatcher,
        guard=guard,
        lucky_dip_amount=50,
        default_jackpot=100,
    )


@pytest.fixture
def app(tmp_path, orchestrator, dispatcher):  # type: ignore[no-untyped-def]
    app = create_app(
        {
            "TESTING": True,
            "DATABASE_URL": f"sqlite:///{tmp_path / 'lottery.db'}",
            "RANDOM_ORG_API_KEY": "",
            "RESEND_API_KEY": "",
            "ADMIN_EMAIL": ADMIN_EMAIL,
        }
    )
    app.extensions["draw_orchestrator"] = orchestrator
    app.extensions["notification_dispatcher"] = dispatcher
    yield app
    app.extensions["engine"].dispose()


@pytest.fixture
def client(app):  # type: ignore[no-untyped-def]
    return app.test_client()


@pytest.fixture
def session(app):  # type: ignore[no-untyped-def]
    s = app.extensions["session_factory"]()
    yield s
    s.close()


@pytest.fixture
def make_entry(session):  # type: ignore[no-untyped-def]
    """Create and commit an entry (plus subscriber email when given)."""

    def _make(
        user_id: str,
        numbers: Iterable[int],
        draw_date: date,
        *,
        origin: EntryOrigin = EntryOrigin.ONE_TIME,
        is_active: bool = True,
        subscription_id: str | None = None,
        line_number: int | None = None,
        email: str | None = None,
    ) -> LotteryEntry:
        entry = EntryRepository().create(
            session,
            user_id=user_id,
            draw_date=draw_date,
            numbers=numbers,
            origin=origin,
            subscription_id=subscription_id,
            line_number=line_number,
            is_active=is_active,
        )
        if email:
            SubscriberRepository().upsert(session, user_id, email)
        session.commit()
        return entry

    return _make

