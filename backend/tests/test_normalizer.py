from __future__ import annotations

import pytest

from backend.services.normalizer import MalformedFixtureError, normalize_fixture, split_datetime
from backend.tests.fakes import match_record


def test_football_data_record_is_normalized() -> None:
    fixture = normalize_fixture(match_record(497410), "Premier League")

    assert fixture.id == "497410"
    assert fixture.name == "Arsenal FC vs Chelsea FC"
    assert fixture.home_team == "Arsenal FC"
    assert fixture.away_team == "Chelsea FC"
    assert fixture.home_team_id == "57"
    assert fixture.away_team_id == "61"
    assert fixture.date == "2026-10-20"
    assert fixture.time == "19:00"
    assert fixture.league == "Premier League"
    assert fixture.home_crest == "https://crests.football-data.org/57.png"
    assert fixture.status == "TIMED"
    assert fixture.stage == "REGULAR_SEASON"
    assert fixture.matchday == 9


def test_league_falls_back_to_unit_label() -> None:
    record = match_record(1)
    record.pop("competition")
    assert normalize_fixture(record, "Serie A").league == "Serie A"


def test_sportsdb_event_is_normalized() -> None:
    event = {
        "idEvent": "2052711",
        "strEvent": "Real Madrid vs Barcelona",
        "strHomeTeam": "Real Madrid",
        "strAwayTeam": "Barcelona",
        "idHomeTeam": "133738",
        "idAwayTeam": "133739",
        "dateEvent": "2026-10-25",
        "strTime": "15:15:00",
        "strTimestamp": "",
        "strLeague": "Spanish La Liga",
        "strHomeTeamBadge": "https://r2.thesportsdb.com/images/media/team/badge/vwvwrw.png",
        "strAwayTeamBadge": "not-a-url",
        "strStatus": "Not Started",
        "intRound": "10",
    }

    fixture = normalize_fixture(event, "2026-10-25")

    assert fixture.id == "2052711"
    assert fixture.name == "Real Madrid vs Barcelona"
    assert fixture.date == "2026-10-25"
    assert fixture.time == "15:15"
    assert fixture.league == "Spanish La Liga"
    assert fixture.home_crest.startswith("https://")
    assert fixture.away_crest is None
    assert fixture.matchday == 10
    assert fixture.stage is None


def test_sportsdb_timestamp_wins_over_separate_fields() -> None:
    event = {
        "idEvent": "1",
        "strHomeTeam": "Ajax",
        "strAwayTeam": "PSV",
        "dateEvent": "2026-10-25",
        "strTime": "00:00:00",
        "strTimestamp": "2026-10-25T18:45:00",
    }

    fixture = normalize_fixture(event, "2026-10-25")

    assert (fixture.date, fixture.time) == ("2026-10-25", "18:45")
    assert fixture.name == "Ajax vs PSV"


def test_missing_or_tbd_time_is_absent() -> None:
    event = {"idEvent": "7", "strHomeTeam": "A", "strAwayTeam": "B", "dateEvent": "2026-10-25", "strTime": "TBD"}
    assert normalize_fixture(event, "x").time is None


@pytest.mark.parametrize("value,expected", [
    ("2026-10-18T14:00:00Z", ("2026-10-18", "14:00")),
    ("2026-10-18T21:30:00+00:00", ("2026-10-18", "21:30")),
    ("2026-10-18 09:05:00", ("2026-10-18", "09:05")),
    ("2026-10-18", ("2026-10-18", None)),
])
def test_split_datetime(value: str, expected: tuple) -> None:
    assert split_datetime(value) == expected


@pytest.mark.parametrize("record", [
    {"utcDate": "2026-10-18T14:00:00Z", "homeTeam": {}, "awayTeam": {}},
    {"id": 5, "utcDate": "", "homeTeam": {}, "awayTeam": {}},
    {"id": 5, "utcDate": "next tuesday", "homeTeam": {}, "awayTeam": {}},
    {"id": 5, "utcDate": "2026-10-18T14:00:00Z", "homeTeam": "Arsenal", "awayTeam": {}},
    {"idEvent": "", "dateEvent": "2026-10-18"},
    "not a record",
])
def test_malformed_records_raise(record) -> None:  # noqa: ANN001
    with pytest.raises(MalformedFixtureError):
        normalize_fixture(record, "Premier League")


def test_payload_uses_camel_case_keys() -> None:
    payload = normalize_fixture(match_record(3), "Premier League").to_payload()
    assert payload["homeTeam"] == "Arsenal FC"
    assert payload["homeBadge"] == "https://crests.football-data.org/57.png"
    assert payload["time"] == "19:00"
    assert set(payload) >= {"id", "name", "awayTeam", "date", "league", "awayBadge", "matchday"}
