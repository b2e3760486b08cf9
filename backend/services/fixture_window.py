from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any

COMPETITION_NAMES = {
    "PL": "Premier League",
    "PD": "La Liga",
    "BL1": "Bundesliga",
    "SA": "Serie A",
    "FL1": "Ligue 1",
    "CL": "UEFA Champions League",
    "DED": "Eredivisie",
    "PPL": "Primeira Liga",
    "ELC": "Championship",
    "EC": "European Championship",
    "WC": "FIFA World Cup",
}


@dataclass(frozen=True)
class QueryUnit:
    """One fetchable slice of the upstream API: a single day or competition."""

    key: str
    label: str
    path: str
    params: dict[str, Any] = field(default_factory=dict)


def day_units(today: dt.date, lookahead_days: int) -> list[QueryUnit]:
    units: list[QueryUnit] = []
    for offset in range(max(1, lookahead_days)):
        day = (today + dt.timedelta(days=offset)).isoformat()
        units.append(
            QueryUnit(
                key=day,
                label=day,
                path="eventsday.php",
                params={"d": day, "s": "Soccer"},
            )
        )
    return units


def competition_units(
    today: dt.date, lookahead_days: int, competitions: list[str]
) -> list[QueryUnit]:
    # Same inclusive window as the per-day strategy: today .. today + N - 1.
    date_from = today.isoformat()
    date_to = (today + dt.timedelta(days=max(1, lookahead_days) - 1)).isoformat()

    units: list[QueryUnit] = []
    seen: set[str] = set()
    for raw_code in competitions:
        code = str(raw_code).strip().upper()
        if not code or code in seen:
            continue
        seen.add(code)
        units.append(
            QueryUnit(
                key=code,
                label=COMPETITION_NAMES.get(code, code),
                path=f"competitions/{code}/matches",
                params={
                    "dateFrom": date_from,
                    "dateTo": date_to,
                    "status": "SCHEDULED,TIMED",
                },
            )
        )
    return units


def build_query_units(
    strategy: str,
    today: dt.date,
    lookahead_days: int,
    competitions: list[str] | None = None,
) -> list[QueryUnit]:
    if strategy == "day":
        return day_units(today, lookahead_days)
    if strategy == "competition":
        return competition_units(today, lookahead_days, competitions or [])
    raise ValueError(f"Unknown query strategy: {strategy!r}")
