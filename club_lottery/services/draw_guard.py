"""In-process re-entrancy guard for draw runs."""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Hashable
from threading import Lock


class DrawGuard:
    """Keeps a second run for the same key from starting in this process.

    A key is held while its run is in flight and, once released with a
    cooldown, until the cooldown expires. This only saves redundant provider
    calls; the database's unique index on live draw dates is what prevents
    duplicate draws across processes.
    """

    def __init__(self, cooldown_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._lock = Lock()
        self._cooldown_seconds = max(0.0, float(cooldown_seconds))
        self._clock = clock
        self._held_until: dict[Hashable, float] = {}

    def acquire(self, key: Hashable) -> bool:
        with self._lock:
            now = self._clock()
            until = self._held_until.get(key)
            if until is not None and until > now:
                return False
            # In flight: held with no expiry until released.
            self._held_until[key] = math.inf
            return True

    def release(self, key: Hashable, *, cooldown: bool = True) -> None:
        with self._lock:
            if cooldown and self._cooldown_seconds:
                self._held_until[key] = self._clock() + self._cooldown_seconds
            else:
                self._held_until.pop(key, None)

    def is_held(self, key: Hashable) -> bool:
        with self._lock:
            until = self._held_until.get(key)
            return until is not None and until > self._clock()
