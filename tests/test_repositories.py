from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from club_lottery.errors import DuplicateDrawError, EntryLockedError, NotFoundError, ValidationError
from club_lottery.models.draw import LotteryDraw
from club_lottery.models.entry import EntryOrigin
from club_lottery.repositories.draw_repository import DrawRepository
from club_lottery.repositories.entry_repository import EntryRepository
from club_lottery.repositories.result_repository import ResultRepository
from club_lottery.repositories.settings_repository import SettingsRepository
from club_lottery.repositories.subscriber_repository import SubscriberRepository

DRAW_DATE = date(2025, 1, 31)


def _draw(draw_date: date = DRAW_DATE, is_test: bool = False) -> LotteryDraw:
    return LotteryDraw(
        draw_date=draw_date,
        winning_numbers=[3, 9, 17, 30],
        jackpot_amount=500,
        lucky_dip_amount=50,
        is_test=is_test,
    )


def _count(session, draw_date: date) -> int:  # type: ignore[no-untyped-def]
    return session.scalar(select(func.count()).select_from(LotteryDraw).where(LotteryDraw.draw_date == draw_date))


def test_create_rejects_second_live_draw_for_date(session) -> None:  # type: ignore[no-untyped-def]
    repo = DrawRepository()
    repo.create(session, _draw())
    session.commit()

    with pytest.raises(DuplicateDrawError):
        repo.create(session, _draw())
    assert _count(session, DRAW_DATE) == 1


def test_unique_index_is_authoritative(session) -> None:  # type: ignore[no-untyped-def]
    DrawRepository().create(session, _draw())
    session.commit()

    # Bypass the repository's pre-check, as a concurrent writer would.
    session.add(_draw())
    with pytest.raises(IntegrityError):
        session.flush()
    session.rollback()
    assert _count(session, DRAW_DATE) == 1


def test_test_draws_are_not_unique(session) -> None:  # type: ignore[no-untyped-def]
    repo = DrawRepository()
    repo.create(session, _draw())
    repo.create(session, _draw(is_test=True))
    repo.create(session, _draw(is_test=True))
    session.commit()

    assert _count(session, DRAW_DATE) == 3
    assert repo.find_by_date(session, DRAW_DATE).is_test is False


def test_find_latest_excludes_test_draws_by_default(session) -> None:  # type: ignore[no-untyped-def]
    repo = DrawRepository()
    repo.create(session, _draw(date(2025, 1, 31)))
    repo.create(session, _draw(date(2025, 2, 28), is_test=True))
    session.commit()

    assert repo.find_latest(session).draw_date == date(2025, 1, 31)
    assert repo.find_latest(session, include_test=True).draw_date == date(2025, 2, 28)
    assert repo.find_by_date(session, date(2025, 2, 28)) is None
    assert repo.find_by_date(session, date(2025, 2, 28), include_test=True) is not None


def test_find_by_draw_date_includes_inactive(session, make_entry) -> None:  # type: ignore[no-untyped-def]
    make_entry("u1", [1, 2, 3, 4], DRAW_DATE)
    make_entry("u2", [5, 6, 7, 8], DRAW_DATE, is_active=False)
    make_entry("u3", [5, 6, 7, 8], date(2025, 2, 28))

    entries = EntryRepository().find_by_draw_date(session, DRAW_DATE)
    assert sorted(e.user_id for e in entries) == ["u1", "u2"]


def test_create_entry_validates_line(session) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ValidationError):
        EntryRepository().create(session, user_id="u1", draw_date=DRAW_DATE, numbers=[1, 2, 3, 3])


def test_update_subscription_entry_before_draw(session, make_entry) -> None:  # type: ignore[no-untyped-def]
    future = date.today() + timedelta(days=10)
    entry = make_entry("u1", [1, 2, 3, 4], future, origin=EntryOrigin.SUBSCRIPTION, subscription_id="sub_1")

    updated = EntryRepository().update(session, entry.id, [32, 8, 16, 24])
    assert updated.numbers == [8, 16, 24, 32]


def test_update_locked_after_draw_date(session, make_entry) -> None:  # type: ignore[no-untyped-def]
    entry = make_entry("u1", [1, 2, 3, 4], DRAW_DATE, origin=EntryOrigin.SUBSCRIPTION)

    with pytest.raises(EntryLockedError):
        EntryRepository().update(session, entry.id, [5, 6, 7, 8], today=DRAW_DATE)
    session.refresh(entry)
    assert entry.numbers == [1, 2, 3, 4]


def test_update_locked_for_one_time_entries(session, make_entry) -> None:  # type: ignore[no-untyped-def]
    entry = make_entry("u1", [1, 2, 3, 4], DRAW_DATE)

    with pytest.raises(EntryLockedError):
        EntryRepository().update(session, entry.id, [5, 6, 7, 8], today=DRAW_DATE - timedelta(days=5))


def test_update_missing_entry(session) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(NotFoundError):
        EntryRepository().update(session, "missing", [5, 6, 7, 8])


def test_subscriber_emails_and_settings(session) -> None:  # type: ignore[no-untyped-def]
    subscribers = SubscriberRepository()
    subscribers.upsert(session, "u1", "one@example.org", "One")
    subscribers.upsert(session, "u1", "uno@example.org")
    subscribers.upsert(session, "u2", "two@example.org")

    assert subscribers.emails_for(session, ["u1", "u3"]) == {"u1": "uno@example.org"}
    assert subscribers.get(session, "u1").full_name == "One"

    settings = SettingsRepository()
    assert settings.get(session, "current_jackpot", "100") == "100"
    settings.set(session, "current_jackpot", "250")
    assert settings.get(session, "current_jackpot") == "250"


def test_winner_rows_are_unique_per_draw_and_entry(session, make_entry) -> None:  # type: ignore[no-untyped-def]
    entry = make_entry("u1", [3, 9, 17, 30], DRAW_DATE)
    draw = DrawRepository().create(session, _draw())
    results = ResultRepository()

    results.add_winner(
        session,
        draw_id=draw.id,
        entry_id=entry.id,
        user_id="u1",
        matches=4,
        tier="jackpot",
        prize_amount=500,
    )
    session.commit()

    [(row, joined_draw)] = results.list_for_user(session, "u1")
    assert (row.tier, row.prize_amount, row.is_winner) == ("jackpot", 500, True)
    assert joined_draw.id == draw.id
    assert [r.entry_id for r in results.list_for_draw(session, draw.id)] == [entry.id]

    with pytest.raises(IntegrityError):
        results.add_winner(
            session,
            draw_id=draw.id,
            entry_id=entry.id,
            user_id="u1",
            matches=0,
            tier="lucky_dip",
            prize_amount=50,
        )
    session.rollback()
