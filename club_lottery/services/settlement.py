"""Settlement: classify every entry of a draw into a prize tier."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from club_lottery.rules import JACKPOT_MATCHES, count_matches

logger = logging.getLogger(__name__)


class PrizeTier(str, Enum):
    JACKPOT = "jackpot"
    LUCKY_DIP = "lucky_dip"
    NO_WIN = "no_win"


class SettleableDraw(Protocol):
    winning_numbers: list[int]
    jackpot_amount: int
    lucky_dip_amount: int


class SettleableEntry(Protocol):
    id: str
    user_id: str
    numbers: list[int]
    is_active: bool


@dataclass(frozen=True)
class EntryResult:
    entry: SettleableEntry
    match_count: int
    tier: PrizeTier
    prize_amount: int

    @property
    def is_winner(self) -> bool:
        return self.tier is not PrizeTier.NO_WIN


@dataclass(frozen=True)
class SettlementOutcome:
    results: list[EntryResult] = field(default_factory=list)
    jackpot_winners: int = 0
    lucky_dip_winners: int = 0

    @property
    def winners(self) -> list[EntryResult]:
        return [r for r in self.results if r.is_winner]


class SettlementEngine:
    """Compare entries against a draw and compute payouts.

    Jackpot goes to every active entry matching all four numbers, split evenly
    in whole currency units. Lucky dip winners are drawn at random from the
    active entries that matched nothing, so the two tiers never overlap.
    Partial matches (1-3 numbers) win nothing. By default a subscriber with
    several eligible lines wins at most one lucky dip.
    """

    def __init__(
        self,
        lucky_dip_winners: int = 5,
        *,
        one_per_subscriber: bool = True,
        rng: random.Random | None = None,
    ) -> None:
        if lucky_dip_winners < 0:
            raise ValueError("lucky_dip_winners must be >= 0")
        self._lucky_dip_winners = int(lucky_dip_winners)
        self._one_per_subscriber = one_per_subscriber
        self._rng = rng or random.SystemRandom()

    def settle(self, draw: SettleableDraw, entries: Iterable[SettleableEntry]) -> SettlementOutcome:
        active = [e for e in entries if e.is_active]
        if not active:
            return SettlementOutcome()

        matches = {e.id: count_matches(e.numbers, draw.winning_numbers) for e in active}

        jackpot_entries = [e for e in active if matches[e.id] == JACKPOT_MATCHES]
        jackpot_share = int(draw.jackpot_amount) // len(jackpot_entries) if jackpot_entries else 0

        eligible = [e for e in active if matches[e.id] == 0]
        lucky_ids = {e.id for e in self._pick_lucky_dip(eligible)}

        results: list[EntryResult] = []
        for entry in active:
            count = matches[entry.id]
            if count == JACKPOT_MATCHES:
                results.append(EntryResult(entry, count, PrizeTier.JACKPOT, jackpot_share))
            elif entry.id in lucky_ids:
                results.append(EntryResult(entry, count, PrizeTier.LUCKY_DIP, int(draw.lucky_dip_amount)))
            else:
                results.append(EntryResult(entry, count, PrizeTier.NO_WIN, 0))

        outcome = SettlementOutcome(
            results=results,
            jackpot_winners=len(jackpot_entries),
            lucky_dip_winners=len(lucky_ids),
        )
        logger.info(
            "Settled %d active entries: %d jackpot, %d lucky dip",
            len(active),
            outcome.jackpot_winners,
            outcome.lucky_dip_winners,
        )
        return outcome

    def _pick_lucky_dip(self, eligible: Sequence[SettleableEntry]) -> list[SettleableEntry]:
        if self._lucky_dip_winners == 0 or not eligible:
            return []

        if not self._one_per_subscriber:
            k = min(self._lucky_dip_winners, len(eligible))
            return self._rng.sample(list(eligible), k)

        shuffled = list(eligible)
        self._rng.shuffle(shuffled)
        picked: list[SettleableEntry] = []
        seen_users: set[str] = set()
        for entry in shuffled:
            if len(picked) >= self._lucky_dip_winners:
                break
            if entry.user_id in seen_users:
                continue
            picked.append(entry)
            seen_users.add(entry.user_id)
        return picked
