"""Conduct a draw end to end: draw numbers, persist, settle, notify."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Protocol

from sqlalchemy.orm import Session

from club_lottery.errors import DuplicateDrawError, ValidationError
from club_lottery.models.draw import LotteryDraw
from club_lottery.repositories.draw_repository import DrawRepository
from club_lottery.repositories.entry_repository import EntryRepository
from club_lottery.repositories.result_repository import ResultRepository
from club_lottery.repositories.settings_repository import CURRENT_JACKPOT, NEXT_DRAW_DATE, SettingsRepository
from club_lottery.repositories.subscriber_repository import SubscriberRepository
from club_lottery.rules import MAX_NUMBER, MIN_NUMBER, NUMBERS_PER_LINE
from club_lottery.services.draw_guard import DrawGuard
from club_lottery.services.notifications import DispatchReport, NotificationDispatcher, winners_from_outcome
from club_lottery.services.randomness import SignedRandomNumbers
from club_lottery.services.settlement import SettlementEngine, SettlementOutcome
from club_lottery.utils.draw_dates import current_draw_date, following_draw_date

logger = logging.getLogger(__name__)


class DrawState(str, Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    SETTLING = "settling"
    NOTIFYING = "notifying"
    ABORTED = "aborted"


class RandomnessProvider(Protocol):
    def generate_unique_integers(
        self,
        count: int,
        minimum: int,
        maximum: int,
        user_data: dict[str, Any] | None = None,
    ) -> SignedRandomNumbers: ...


@dataclass
class DrawOutcome:
    draw: LotteryDraw
    settlement: SettlementOutcome | None = None
    notifications: DispatchReport | None = None
    state: DrawState = DrawState.IDLE

    @property
    def settled(self) -> bool:
        return self.settlement is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.draw.id,
            "drawDate": self.draw.draw_date.isoformat(),
            "winningNumbers": list(self.draw.winning_numbers),
            "jackpotAmount": self.draw.jackpot_amount,
            "luckyDipAmount": self.draw.lucky_dip_amount,
            "jackpotWinners": self.settlement.jackpot_winners if self.settlement else 0,
            "luckyDipWinners": self.settlement.lucky_dip_winners if self.settlement else 0,
            "signature": self.draw.random_signature,
            "isTestDraw": self.draw.is_test,
            "settled": self.settled,
        }


class DrawOrchestrator:
    """Single entry point for conducting a draw.

    Runs are strictly sequential: DRAWING -> SETTLING -> NOTIFYING -> IDLE.
    A duplicate date or a randomness failure aborts during DRAWING and leaves
    no draw row behind. Once the draw row is committed it is never rolled
    back; failures while settling or notifying are logged and reported.
    """

    def __init__(
        self,
        *,
        provider: RandomnessProvider,
        engine: SettlementEngine,
        dispatcher: NotificationDispatcher,
        guard: DrawGuard,
        lucky_dip_amount: int = 50,
        default_jackpot: int = 100,
        draws: DrawRepository | None = None,
        entries: EntryRepository | None = None,
        results: ResultRepository | None = None,
        subscribers: SubscriberRepository | None = None,
        settings: SettingsRepository | None = None,
    ) -> None:
        self._provider = provider
        self._engine = engine
        self._dispatcher = dispatcher
        self._guard = guard
        self._lucky_dip_amount = int(lucky_dip_amount)
        self._default_jackpot = int(default_jackpot)
        self._draws = draws or DrawRepository()
        self._entries = entries or EntryRepository()
        self._results = results or ResultRepository()
        self._subscribers = subscribers or SubscriberRepository()
        self._settings = settings or SettingsRepository()

    def conduct(self, session: Session, draw_date: date, jackpot_amount: int, is_test: bool = False) -> DrawOutcome:
        """Conduct the draw for ``draw_date``.

        Raises:
            DuplicateDrawError: a live draw for the date exists or is running.
            ProviderUnavailableError: winning numbers could not be obtained.
        """

        key = (draw_date, bool(is_test))
        if not self._guard.acquire(key):
            logger.warning("Draw for %s already running or recently conducted", draw_date.isoformat())
            raise DuplicateDrawError(
                message=f"A draw for {draw_date.isoformat()} is already running or was just conducted",
                details={"draw_date": draw_date.isoformat(), "state": DrawState.ABORTED.value},
            )

        logger.info("Draw %s: %s -> %s", draw_date.isoformat(), DrawState.IDLE.value, DrawState.DRAWING.value)
        try:
            draw = self._draw(session, draw_date, jackpot_amount, is_test)
        except Exception as exc:
            logger.warning(
                "Draw %s: %s -> %s (%s)",
                draw_date.isoformat(),
                DrawState.DRAWING.value,
                DrawState.ABORTED.value,
                getattr(exc, "code", type(exc).__name__),
            )
            self._guard.release(key, cooldown=False)
            raise

        outcome = DrawOutcome(draw=draw, state=DrawState.SETTLING)
        try:
            self._settle(session, outcome)
            self._notify(session, outcome)
        finally:
            outcome.state = DrawState.IDLE
            logger.info("Draw %s: -> %s", draw_date.isoformat(), DrawState.IDLE.value)
            self._guard.release(key, cooldown=not is_test)
        return outcome

    def conduct_scheduled(self, session: Session, today: date | None = None, force: bool = False) -> DrawOutcome:
        """Conduct the live draw configured in settings.

        Uses ``current_jackpot`` and ``next_draw_date``, falling back to the
        default jackpot and the last day of the current month. Unless
        ``force`` is set, refuses to run before the draw date. Once a live draw
        exists for the date (this run or any earlier trigger) the
        ``next_draw_date`` setting moves on to the following month.
        """

        today = today or date.today()
        jackpot_raw = self._settings.get(session, CURRENT_JACKPOT)
        date_raw = self._settings.get(session, NEXT_DRAW_DATE)

        try:
            jackpot = int(jackpot_raw) if jackpot_raw else self._default_jackpot
            draw_date = date.fromisoformat(date_raw) if date_raw else current_draw_date(today)
        except ValueError as exc:
            raise ValidationError(
                message="Invalid lottery settings",
                details={CURRENT_JACKPOT: jackpot_raw, NEXT_DRAW_DATE: date_raw},
            ) from exc

        if today < draw_date and not force:
            raise ValidationError(
                message=f"The draw for {draw_date.isoformat()} is not due yet",
                details={"draw_date": draw_date.isoformat(), "today": today.isoformat()},
            )

        logger.info("Scheduled live draw for %s with jackpot %d", draw_date.isoformat(), jackpot)
        try:
            outcome = self.conduct(session, draw_date, jackpot, is_test=False)
        except DuplicateDrawError:
            # Only a committed draw moves the schedule; an in-flight run has none yet.
            if self._draws.find_by_date(session, draw_date) is not None:
                self._advance_schedule(session, draw_date)
            raise

        self._advance_schedule(session, draw_date)
        return outcome

    def _advance_schedule(self, session: Session, draw_date: date) -> None:
        following = following_draw_date(draw_date)
        self._settings.set(session, NEXT_DRAW_DATE, following.isoformat())
        session.commit()
        logger.info("Next scheduled draw moved from %s to %s", draw_date.isoformat(), following.isoformat())

    def _draw(self, session: Session, draw_date: date, jackpot_amount: int, is_test: bool) -> LotteryDraw:
        if not is_test and self._draws.find_by_date(session, draw_date) is not None:
            raise DuplicateDrawError(
                message=f"A draw has already been conducted for {draw_date.isoformat()}",
                details={"draw_date": draw_date.isoformat(), "state": DrawState.ABORTED.value},
            )

        signed = self._provider.generate_unique_integers(
            NUMBERS_PER_LINE,
            MIN_NUMBER,
            MAX_NUMBER,
            user_data={"drawDate": draw_date.isoformat(), "testDraw": bool(is_test)},
        )
        logger.info("Winning numbers for %s: %s", draw_date.isoformat(), signed.numbers)

        draw = LotteryDraw(
            draw_date=draw_date,
            winning_numbers=list(signed.numbers),
            jackpot_amount=int(jackpot_amount),
            lucky_dip_amount=self._lucky_dip_amount,
            random_signature=signed.signature,
            random_payload=signed.random_payload,
            is_test=bool(is_test),
        )
        self._draws.create(session, draw)
        # Durable before settlement starts.
        session.commit()
        return draw

    def _settle(self, session: Session, outcome: DrawOutcome) -> None:
        draw = outcome.draw
        logger.info("Draw %s: %s -> %s", draw.draw_date.isoformat(), DrawState.DRAWING.value, DrawState.SETTLING.value)
        try:
            entries = self._entries.find_by_draw_date(session, draw.draw_date)
            settlement = self._engine.settle(draw, entries)
            for result in settlement.winners:
                self._results.add_winner(
                    session,
                    draw_id=draw.id,
                    entry_id=result.entry.id,
                    user_id=result.entry.user_id,
                    matches=result.match_count,
                    tier=result.tier.value,
                    prize_amount=result.prize_amount,
                )
            session.commit()
        except Exception:
            logger.exception("Settlement failed for draw %s; draw record kept", draw.id)
            session.rollback()
            return
        outcome.settlement = settlement

    def _notify(self, session: Session, outcome: DrawOutcome) -> None:
        if outcome.settlement is None:
            return

        draw = outcome.draw
        outcome.state = DrawState.NOTIFYING
        logger.info("Draw %s: %s -> %s", draw.draw_date.isoformat(), DrawState.SETTLING.value, DrawState.NOTIFYING.value)
        try:
            notices = winners_from_outcome(outcome.settlement.results)
            contacts = self._subscribers.emails_for(session, [n.user_id for n in notices])
            outcome.notifications = self._dispatcher.dispatch(
                draw,
                notices,
                contacts,
                notify_winners=not draw.is_test,
            )
        except Exception:
            logger.exception("Notification failed for draw %s", draw.id)
