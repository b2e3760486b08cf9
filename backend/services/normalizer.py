from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any


class MalformedFixtureError(ValueError):
    """Raised when an upstream record cannot be mapped to a Fixture."""


@dataclass(frozen=True)
class Fixture:
    id: str
    name: str
    home_team: str
    away_team: str
    date: str
    time: str | None
    league: str
    home_team_id: str | None = None
    away_team_id: str | None = None
    home_crest: str | None = None
    away_crest: str | None = None
    status: str | None = None
    stage: str | None = None
    matchday: int | None = None

    def sort_key(self) -> tuple[str, str]:
        # A missing kickoff time orders as midnight.
        return (self.date, self.time or "00:00")

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "homeTeamId": self.home_team_id,
            "awayTeamId": self.away_team_id,
            "date": self.date,
            "time": self.time,
            "league": self.league,
            "homeBadge": self.home_crest,
            "awayBadge": self.away_crest,
            "status": self.status,
            "stage": self.stage,
            "matchday": self.matchday,
        }


def _text(value: Any) -> str:
    return str(value or "").strip()


def _optional_text(value: Any) -> str | None:
    text = _text(value)
    return text or None


def _clean_logo(value: Any) -> str | None:
    text = _text(value)
    if text.lower().startswith(("http://", "https://")):
        return text
    return None


def _optional_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _format_time(value: dt.time) -> str:
    return value.strftime("%H:%M")


def split_datetime(value: Any) -> tuple[str, str | None]:
    """Split an ISO date-time (or bare date) into ``YYYY-MM-DD`` and ``HH:MM``."""
    text = _text(value)
    if not text:
        raise MalformedFixtureError("missing kickoff date")

    if "T" not in text and " " not in text:
        try:
            return dt.date.fromisoformat(text).isoformat(), None
        except ValueError as exc:
            raise MalformedFixtureError(f"unparseable kickoff date: {text}") from exc

    try:
        parsed = dt.datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise MalformedFixtureError(f"unparseable kickoff date: {text}") from exc
    return parsed.date().isoformat(), _format_time(parsed.time())


def _parse_clock(value: Any) -> str | None:
    text = _text(value)
    if not text or text.upper() in {"TBD", "TBA"}:
        return None
    # TheSportsDB sends e.g. "15:00:00" or "15:00:00+00:00".
    head = text.split("+")[0].rstrip("Z")
    try:
        return _format_time(dt.time.fromisoformat(head))
    except ValueError:
        return None


def _display_name(home: str, away: str) -> str:
    return f"{home} vs {away}"


def _normalize_football_data(raw: dict[str, Any], league_label: str) -> Fixture:
    fixture_id = _text(raw.get("id"))
    if not fixture_id:
        raise MalformedFixtureError("record has no id")

    date, time_of_day = split_datetime(raw.get("utcDate"))

    home = raw.get("homeTeam") or {}
    away = raw.get("awayTeam") or {}
    if not isinstance(home, dict) or not isinstance(away, dict):
        raise MalformedFixtureError(f"record {fixture_id} has malformed teams")

    home_name = _text(home.get("name") or home.get("shortName")) or "TBD"
    away_name = _text(away.get("name") or away.get("shortName")) or "TBD"

    competition = raw.get("competition") or {}
    league = league_label
    if isinstance(competition, dict) and _text(competition.get("name")):
        league = _text(competition.get("name"))

    return Fixture(
        id=fixture_id,
        name=_display_name(home_name, away_name),
        home_team=home_name,
        away_team=away_name,
        home_team_id=_optional_text(home.get("id")),
        away_team_id=_optional_text(away.get("id")),
        date=date,
        time=time_of_day,
        league=league,
        home_crest=_clean_logo(home.get("crest")),
        away_crest=_clean_logo(away.get("crest")),
        status=_optional_text(raw.get("status")),
        stage=_optional_text(raw.get("stage")),
        matchday=_optional_int(raw.get("matchday")),
    )


def _normalize_sportsdb(raw: dict[str, Any], league_label: str) -> Fixture:
    fixture_id = _text(raw.get("idEvent"))
    if not fixture_id:
        raise MalformedFixtureError("event has no idEvent")

    timestamp = _text(raw.get("strTimestamp"))
    if timestamp:
        date, time_of_day = split_datetime(timestamp)
    else:
        date, _ = split_datetime(raw.get("dateEvent"))
        time_of_day = _parse_clock(raw.get("strTime"))

    home_name = _text(raw.get("strHomeTeam")) or "TBD"
    away_name = _text(raw.get("strAwayTeam")) or "TBD"

    return Fixture(
        id=fixture_id,
        name=_text(raw.get("strEvent")) or _display_name(home_name, away_name),
        home_team=home_name,
        away_team=away_name,
        home_team_id=_optional_text(raw.get("idHomeTeam")),
        away_team_id=_optional_text(raw.get("idAwayTeam")),
        date=date,
        time=time_of_day,
        league=_text(raw.get("strLeague")) or league_label,
        home_crest=_clean_logo(raw.get("strHomeTeamBadge")),
        away_crest=_clean_logo(raw.get("strAwayTeamBadge")),
        status=_optional_text(raw.get("strStatus")),
        matchday=_optional_int(raw.get("intRound")),
    )


def normalize_fixture(raw: Any, league_label: str) -> Fixture:
    if not isinstance(raw, dict):
        raise MalformedFixtureError(f"expected a fixture object, got {type(raw).__name__}")

    if "idEvent" in raw:
        return _normalize_sportsdb(raw, league_label)
    return _normalize_football_data(raw, league_label)
