from __future__ import annotations

import datetime as dt

import pytest

from backend.services.fixture_window import build_query_units


def test_day_strategy_builds_one_unit_per_day_in_order() -> None:
    units = build_query_units("day", dt.date(2026, 10, 30), 3)

    assert [unit.key for unit in units] == ["2026-10-30", "2026-10-31", "2026-11-01"]
    assert units[0].path == "eventsday.php"
    assert units[0].params == {"d": "2026-10-30", "s": "Soccer"}
    assert units[2].label == "2026-11-01"


def test_competition_strategy_keeps_configured_order_and_window() -> None:
    units = build_query_units(
        "competition", dt.date(2026, 10, 18), 7, ["PL", "cl", "XYZ", "PL"]
    )

    assert [unit.key for unit in units] == ["PL", "CL", "XYZ"]
    assert [unit.label for unit in units] == ["Premier League", "UEFA Champions League", "XYZ"]
    assert units[0].path == "competitions/PL/matches"
    assert units[0].params["dateFrom"] == "2026-10-18"
    assert units[0].params["dateTo"] == "2026-10-24"


def test_units_are_deterministic_for_the_same_day() -> None:
    today = dt.date(2026, 10, 18)
    first = build_query_units("competition", today, 5, ["PL", "PD"])
    second = build_query_units("competition", today, 5, ["PL", "PD"])
    assert first == second


def test_single_day_window_uses_today_only() -> None:
    units = build_query_units("competition", dt.date(2026, 10, 18), 1, ["PL"])
    assert units[0].params["dateFrom"] == units[0].params["dateTo"] == "2026-10-18"


def test_unknown_strategy_is_rejected() -> None:
    with pytest.raises(ValueError):
        build_query_units("weekly", dt.date(2026, 10, 18), 3)
