from __future__ import annotations

import random
from datetime import date

import pytest
from sqlalchemy import func, select

from club_lottery.errors import DuplicateDrawError, ProviderUnavailableError, ValidationError
from club_lottery.models.draw import LotteryDraw
from club_lottery.models.result import LotteryResult
from club_lottery.repositories.settings_repository import CURRENT_JACKPOT, NEXT_DRAW_DATE, SettingsRepository
from club_lottery.services.draw_guard import DrawGuard
from club_lottery.services.orchestrator import DrawOrchestrator, DrawState
from club_lottery.services.settlement import SettlementEngine

from conftest import ADMIN_EMAIL

DRAW_DATE = date(2025, 1, 31)


def _draw_count(session, draw_date: date = DRAW_DATE) -> int:  # type: ignore[no-untyped-def]
    return session.scalar(select(func.count()).select_from(LotteryDraw).where(LotteryDraw.draw_date == draw_date))


def test_conducts_settles_and_notifies(session, orchestrator, provider, sender, make_entry) -> None:  # type: ignore[no-untyped-def]
    make_entry("jack", [30, 17, 9, 3], DRAW_DATE, email="jack@example.org")
    make_entry("close", [1, 2, 3, 4], DRAW_DATE, email="close@example.org")
    for i in range(7):
        make_entry(f"zero{i}", [1, 2, 4, 5], DRAW_DATE, email=f"zero{i}@example.org")

    outcome = orchestrator.conduct(session, DRAW_DATE, 1000)

    assert outcome.state is DrawState.IDLE
    assert outcome.draw.winning_numbers == [3, 9, 17, 30]
    assert outcome.draw.random_signature == "c2lnbmF0dXJl"
    assert outcome.settlement.jackpot_winners == 1
    assert outcome.settlement.lucky_dip_winners == 5
    assert provider.calls == 1

    rows = session.scalars(select(LotteryResult).where(LotteryResult.draw_id == outcome.draw.id)).all()
    assert sorted(r.tier for r in rows) == ["jackpot"] + ["lucky_dip"] * 5
    assert {r.user_id for r in rows if r.tier == "jackpot"} == {"jack"}
    assert "close" not in {r.user_id for r in rows}

    assert sender.recipients[0] == ADMIN_EMAIL
    assert sender.recipients[1] == "jack@example.org"
    assert len(sender.sent) == 7
    assert outcome.notifications.emails_attempted == 6

    result = outcome.to_dict()
    assert result["winningNumbers"] == [3, 9, 17, 30]
    assert result["jackpotWinners"] == 1
    assert result["luckyDipWinners"] == 5
    assert result["settled"] is True


def test_second_run_for_same_date_is_duplicate(session, orchestrator, provider) -> None:  # type: ignore[no-untyped-def]
    orchestrator.conduct(session, DRAW_DATE, 1000)

    with pytest.raises(DuplicateDrawError):
        orchestrator.conduct(session, DRAW_DATE, 1000)

    assert _draw_count(session) == 1
    assert provider.calls == 1


def test_persisted_check_blocks_duplicate_across_processes(session, provider, dispatcher) -> None:  # type: ignore[no-untyped-def]
    def _fresh() -> DrawOrchestrator:
        # Separate guards stand in for separate processes.
        return DrawOrchestrator(
            provider=provider,
            engine=SettlementEngine(5, rng=random.Random(1)),
            dispatcher=dispatcher,
            guard=DrawGuard(cooldown_seconds=300),
        )

    _fresh().conduct(session, DRAW_DATE, 1000)
    second = _fresh()
    with pytest.raises(DuplicateDrawError):
        second.conduct(session, DRAW_DATE, 1000)

    assert _draw_count(session) == 1
    assert provider.calls == 1
    # Duplicate aborts release the guard without cooldown.
    assert not second._guard.is_held((DRAW_DATE, False))


def test_provider_failure_leaves_no_draw_and_releases_guard(session, orchestrator, provider, guard) -> None:  # type: ignore[no-untyped-def]
    provider.error = ProviderUnavailableError(message="down")

    with pytest.raises(ProviderUnavailableError):
        orchestrator.conduct(session, DRAW_DATE, 1000)

    assert _draw_count(session) == 0
    assert not guard.is_held((DRAW_DATE, False))

    provider.error = None
    outcome = orchestrator.conduct(session, DRAW_DATE, 1000)
    assert outcome.draw.draw_date == DRAW_DATE
    assert _draw_count(session) == 1


def test_settlement_failure_keeps_draw(session, provider, dispatcher, sender) -> None:  # type: ignore[no-untyped-def]
    class BrokenEngine(SettlementEngine):
        def settle(self, draw, entries):  # type: ignore[no-untyped-def]
            raise RuntimeError("boom")

    orchestrator = DrawOrchestrator(
        provider=provider,
        engine=BrokenEngine(),
        dispatcher=dispatcher,
        guard=DrawGuard(cooldown_seconds=0),
    )

    outcome = orchestrator.conduct(session, DRAW_DATE, 1000)

    assert outcome.settled is False
    assert outcome.to_dict()["jackpotWinners"] == 0
    assert _draw_count(session) == 1
    assert sender.sent == []


def test_test_draws_repeat_and_only_email_admin(session, orchestrator, sender, make_entry) -> None:  # type: ignore[no-untyped-def]
    make_entry("jack", [3, 9, 17, 30], DRAW_DATE, email="jack@example.org")

    first = orchestrator.conduct(session, DRAW_DATE, 1000, is_test=True)
    second = orchestrator.conduct(session, DRAW_DATE, 1000, is_test=True)

    assert first.draw.id != second.draw.id
    assert first.settlement.jackpot_winners == 1
    assert sender.recipients == [ADMIN_EMAIL, ADMIN_EMAIL]

    # A live draw for the same date is still allowed.
    live = orchestrator.conduct(session, DRAW_DATE, 1000)
    assert live.draw.is_test is False


def test_scheduled_draw_uses_settings_and_advances_date(session, orchestrator) -> None:  # type: ignore[no-untyped-def]
    settings = SettingsRepository()
    settings.set(session, CURRENT_JACKPOT, "750")
    settings.set(session, NEXT_DRAW_DATE, "2025-01-31")
    session.commit()

    outcome = orchestrator.conduct_scheduled(session, today=date(2025, 1, 31))

    assert outcome.draw.jackpot_amount == 750
    assert outcome.draw.draw_date == DRAW_DATE
    assert settings.get(session, NEXT_DRAW_DATE) == "2025-02-28"


def test_scheduled_draw_defaults_to_current_month(session, orchestrator) -> None:  # type: ignore[no-untyped-def]
    outcome = orchestrator.conduct_scheduled(session, today=date(2025, 3, 31))

    assert outcome.draw.draw_date == date(2025, 3, 31)
    assert outcome.draw.jackpot_amount == 100


def test_scheduled_draw_not_due_yet(session, orchestrator, provider) -> None:  # type: ignore[no-untyped-def]
    SettingsRepository().set(session, NEXT_DRAW_DATE, "2025-01-31")
    session.commit()

    with pytest.raises(ValidationError):
        orchestrator.conduct_scheduled(session, today=date(2025, 1, 15))
    assert provider.calls == 0

    outcome = orchestrator.conduct_scheduled(session, today=date(2025, 1, 15), force=True)
    assert outcome.draw.draw_date == DRAW_DATE


def test_scheduled_date_drawn_elsewhere_still_advances(session, orchestrator, provider) -> None:  # type: ignore[no-untyped-def]
    settings = SettingsRepository()
    settings.set(session, NEXT_DRAW_DATE, "2025-01-31")
    session.commit()

    # Operator conducts the scheduled date by hand first.
    orchestrator.conduct(session, DRAW_DATE, 1000)

    with pytest.raises(DuplicateDrawError):
        orchestrator.conduct_scheduled(session, today=date(2025, 2, 1))
    assert settings.get(session, NEXT_DRAW_DATE) == "2025-02-28"

    outcome = orchestrator.conduct_scheduled(session, today=date(2025, 2, 28))
    assert outcome.draw.draw_date == date(2025, 2, 28)
    assert settings.get(session, NEXT_DRAW_DATE) == "2025-03-31"
    assert provider.calls == 2


def test_scheduled_duplicate_from_another_process_advances(session, orchestrator, provider, dispatcher) -> None:  # type: ignore[no-untyped-def]
    settings = SettingsRepository()
    settings.set(session, NEXT_DRAW_DATE, "2025-01-31")
    session.commit()

    other = DrawOrchestrator(
        provider=provider,
        engine=SettlementEngine(5, rng=random.Random(2)),
        dispatcher=dispatcher,
        guard=DrawGuard(cooldown_seconds=300),
    )
    other.conduct(session, DRAW_DATE, 1000)

    with pytest.raises(DuplicateDrawError):
        orchestrator.conduct_scheduled(session, today=date(2025, 1, 31))
    assert settings.get(session, NEXT_DRAW_DATE) == "2025-02-28"
    assert _draw_count(session) == 1


def test_scheduled_run_blocked_in_flight_keeps_schedule(session, orchestrator, guard, provider) -> None:  # type: ignore[no-untyped-def]
    settings = SettingsRepository()
    settings.set(session, NEXT_DRAW_DATE, "2025-01-31")
    session.commit()
    guard.acquire((DRAW_DATE, False))

    with pytest.raises(DuplicateDrawError):
        orchestrator.conduct_scheduled(session, today=date(2025, 1, 31))

    assert settings.get(session, NEXT_DRAW_DATE) == "2025-01-31"
    assert provider.calls == 0
