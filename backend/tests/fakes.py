from __future__ import annotations

from typing import Any

from backend.services.fixture_fetcher import ERROR, OK, RATE_LIMITED, FetchOutcome
from backend.services.fixture_window import QueryUnit


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200, text: str = "") -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = text

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def make_unit(key: str, label: str | None = None) -> QueryUnit:
    return QueryUnit(key=key, label=label or key, path=f"competitions/{key}/matches")


def match_record(
    match_id: int,
    utc_date: str = "2026-10-20T19:00:00Z",
    home: str = "Arsenal FC",
    away: str = "Chelsea FC",
    competition: str = "Premier League",
) -> dict[str, Any]:
    return {
        "id": match_id,
        "utcDate": utc_date,
        "status": "TIMED",
        "matchday": 9,
        "stage": "REGULAR_SEASON",
        "homeTeam": {"id": 57, "name": home, "crest": "https://crests.football-data.org/57.png"},
        "awayTeam": {"id": 61, "name": away, "crest": "https://crests.football-data.org/61.png"},
        "competition": {"id": 2021, "name": competition, "code": "PL"},
    }


class FakeFetcher:
    """Replays scripted outcomes per unit key and records every call."""

    def __init__(self, script: dict[str, Any]) -> None:
        self.script = script
        self.calls: list[str] = []

    def fetch(self, unit: QueryUnit) -> FetchOutcome:
        self.calls.append(unit.key)
        step = self.script.get(unit.key, [])
        if step == RATE_LIMITED:
            return FetchOutcome(
                kind=RATE_LIMITED,
                unit=unit,
                error="You reached your request limit. Wait 60 seconds.",
            )
        if step == ERROR:
            return FetchOutcome(kind=ERROR, unit=unit, error="HTTP 500")
        return FetchOutcome(kind=OK, unit=unit, records=list(step))
