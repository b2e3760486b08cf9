from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    stored_at: float
    age_seconds: float


class ResponseCache:
    """Single-slot cache: the last successful result and when it was stored."""

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._value: Any = None
        self._stored_at: float | None = None

    def get(self) -> CacheEntry | None:
        if self._stored_at is None:
            return None
        age = max(0.0, self._clock() - self._stored_at)
        if age >= self.ttl_seconds:
            return None
        return CacheEntry(value=self._value, stored_at=self._stored_at, age_seconds=age)

    def put(self, value: Any) -> None:
        self._value, self._stored_at = value, self._clock()

    def status(self) -> dict[str, Any]:
        if self._stored_at is None:
            return {
                "present": False,
                "fresh": False,
                "age_seconds": None,
                "ttl_seconds": int(self.ttl_seconds),
            }
        age = max(0.0, self._clock() - self._stored_at)
        return {
            "present": True,
            "fresh": age < self.ttl_seconds,
            "age_seconds": int(age),
            "ttl_seconds": int(self.ttl_seconds),
        }
