# src/lifecycle/clock.py
from __future__ import annotations

import random
import string
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Optional, Protocol

from src.business_objects import EntityKind


# ──────────────────────────────────────────────────────────────────────────────
# Injected collaborators: current time and fresh identifiers
# ──────────────────────────────────────────────────────────────────────────────

class Clock(Protocol):
    def now(self) -> datetime:
        """Current timestamp, used for created/dispatched/completed stamps."""
        ...

    def today(self) -> date:
        """Current calendar date, used for license-expiry comparisons."""
        ...


class IdGenerator(Protocol):
    def __call__(self, kind: EntityKind) -> str:
        """Return a new identifier for `kind`. Only uniqueness matters."""
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """
    Deterministic clock for tests and simulations.
    Time only moves when `advance()` or `set()` is called.
    """

    def __init__(self, at: datetime) -> None:
        self._at = at

    def now(self) -> datetime:
        return self._at

    def today(self) -> date:
        return self._at.date()

    def set(self, at: datetime) -> None:
        self._at = at

    def advance(self, **kwargs: float) -> datetime:
        """advance(hours=2), advance(days=1, minutes=30), …"""
        self._at = self._at + timedelta(**kwargs)
        return self._at


_ALPHABET = string.digits + string.ascii_lowercase


class RandomIdGenerator:
    """
    Kind prefix + 7 random base-36 characters, e.g. 'v4k9x0qa'.
    Collisions are possible in principle; the engine retries on a clash.
    """

    def __init__(self, seed: Optional[int] = None, length: int = 7) -> None:
        self._rng = random.Random(seed)
        self._length = length

    def __call__(self, kind: EntityKind) -> str:
        body = "".join(self._rng.choice(_ALPHABET) for _ in range(self._length))
        return f"{kind.prefix}{body}"


class SequentialIdGenerator:
    """One counter per kind: v001, v002, … t001, …"""

    def __init__(self, width: int = 3, start: Optional[Dict[EntityKind, int]] = None) -> None:
        self._width = width
        self._counters: Dict[EntityKind, int] = defaultdict(int, start or {})

    @classmethod
    def from_store(cls, store, width: int = 3) -> "SequentialIdGenerator":
        """
        Continue numbering after the highest sequential id the store has seen
        (live, deleted or only referenced), so a loaded fleet gets v013 next
        rather than a run of collisions from v001.
        """
        start: Dict[EntityKind, int] = {}
        for kind in EntityKind:
            numbers = [
                int(id_[len(kind.prefix):]) for id_ in store.seen_ids(kind)
                if id_.startswith(kind.prefix) and id_[len(kind.prefix):].isdigit()
            ]
            if numbers:
                start[kind] = max(numbers)
        return cls(width=width, start=start)

    def __call__(self, kind: EntityKind) -> str:
        self._counters[kind] += 1
        return f"{kind.prefix}{self._counters[kind]:0{self._width}d}"
