from __future__ import annotations

import math
import time
from typing import Any, Callable


class RateBudget:
    """Rolling per-minute request counter kept below the provider's limit."""

    def __init__(
        self,
        ceiling: int,
        window_seconds: float = 60.0,
        provider_limit: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ceiling = max(1, int(ceiling))
        self.window_seconds = float(window_seconds)
        self.provider_limit = provider_limit
        self._clock = clock
        self.count = 0
        self.reset_at = self._clock() + self.window_seconds

    def _roll_window(self) -> None:
        now = self._clock()
        if now < self.reset_at:
            return
        self.count = 0
        self.reset_at = now + self.window_seconds

    def _sanitize_count(self, count: int) -> int:
        return max(0, min(self.ceiling, int(count)))

    def is_exhausted(self) -> bool:
        self._roll_window()
        return self.count >= self.ceiling

    def record_request(self) -> None:
        self._roll_window()
        self.count = self._sanitize_count(self.count + 1)

    def exhaust(self) -> None:
        """Use up the current window after the provider rejected a call."""
        self._roll_window()
        self.count = self.ceiling

    def seconds_until_reset(self) -> int:
        remaining = self.reset_at - self._clock()
        return max(1, math.ceil(remaining))

    def status(self) -> dict[str, Any]:
        now = self._clock()
        if now >= self.reset_at:
            used = 0
            resets_in = self.window_seconds
        else:
            used = self._sanitize_count(self.count)
            resets_in = self.reset_at - now

        return {
            "used": used,
            "limit": self.ceiling,
            "remaining": max(0, self.ceiling - used),
            "provider_limit": self.provider_limit,
            "window_seconds": int(self.window_seconds),
            "resets_in_seconds": max(0, math.ceil(resets_in)),
        }

    def describe_limit(self) -> str:
        text = f"{self.ceiling} requests per {int(self.window_seconds)} seconds"
        if self.provider_limit:
            text += f" (provider allows {self.provider_limit})"
        return text
