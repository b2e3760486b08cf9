from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import requests
from loguru import logger

try:
    from backend.services.fixture_window import QueryUnit
except ModuleNotFoundError:
    from services.fixture_window import QueryUnit

OK = "ok"
RATE_LIMITED = "rate_limited"
ERROR = "error"


def _is_rate_limit_error_text(raw_error: str) -> bool:
    text = str(raw_error or "").strip().lower()
    if not text:
        return False
    return (
        "request limit" in text
        or "rate limit" in text
        or "too many requests" in text
    )


def _payload_message(payload: Any) -> str:
    if isinstance(payload, dict):
        for key in ("message", "error", "errors"):
            value = payload.get(key)
            if value:
                return str(value)
    return ""


def _upstream_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return str(response.text or "").strip()[:200]
    return _payload_message(payload)


@dataclass(frozen=True)
class FetchOutcome:
    kind: str
    unit: QueryUnit
    records: list[Any] = field(default_factory=list)
    error: str | None = None

    @property
    def league_label(self) -> str:
        return self.unit.label

    @property
    def ok(self) -> bool:
        return self.kind == OK

    @property
    def rate_limited(self) -> bool:
        return self.kind == RATE_LIMITED


class FixtureFetcher:
    """Issues one upstream call per query unit and classifies the result."""

    records_key_by_strategy = {
        "competition": "matches",
        "day": "events",
    }

    def __init__(
        self,
        base_url: str,
        strategy: str,
        api_key: str = "",
        timeout_seconds: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if strategy not in self.records_key_by_strategy:
            raise ValueError(f"Unknown query strategy: {strategy!r}")

        self.base_url = base_url.rstrip("/")
        self.strategy = strategy
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

        self.session = session or requests.Session()
        if self.api_key:
            self.session.headers.update({"X-Auth-Token": self.api_key})

    @property
    def records_key(self) -> str:
        return self.records_key_by_strategy[self.strategy]

    def fetch(self, unit: QueryUnit) -> FetchOutcome:
        try:
            response = self.session.get(
                f"{self.base_url}/{unit.path}",
                params=unit.params,
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as exc:
            logger.warning(f"Upstream request failed for {unit.label}: {exc}")
            return FetchOutcome(kind=ERROR, unit=unit, error=str(exc))

        if response.status_code == 429:
            message = _upstream_message(response) or "Too many requests"
            logger.warning(f"Upstream rate limit hit for {unit.label}: {message}")
            return FetchOutcome(kind=RATE_LIMITED, unit=unit, error=message)

        if response.status_code >= 400:
            message = _upstream_message(response) or f"HTTP {response.status_code}"
            if _is_rate_limit_error_text(message):
                logger.warning(f"Upstream rate limit hit for {unit.label}: {message}")
                return FetchOutcome(kind=RATE_LIMITED, unit=unit, error=message)
            logger.warning(
                "Upstream returned HTTP {} for {}: {}",
                response.status_code,
                unit.label,
                message,
            )
            return FetchOutcome(kind=ERROR, unit=unit, error=message)

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning(f"Upstream payload for {unit.label} is not JSON: {exc}")
            return FetchOutcome(kind=ERROR, unit=unit, error="malformed upstream payload")

        if not isinstance(payload, dict):
            return FetchOutcome(kind=ERROR, unit=unit, error="malformed upstream payload")

        # Some providers report an exhausted quota inside a 200 body.
        body_message = _payload_message(payload)
        if _is_rate_limit_error_text(body_message):
            logger.warning(f"Upstream rate limit hit for {unit.label}: {body_message}")
            return FetchOutcome(kind=RATE_LIMITED, unit=unit, error=body_message)

        records = payload.get(self.records_key)
        if records is None and self.strategy == "day":
            # TheSportsDB answers a day without fixtures with {"events": null}.
            records = []
        if not isinstance(records, list):
            logger.warning(f"Upstream payload for {unit.label} has no {self.records_key} list")
            return FetchOutcome(kind=ERROR, unit=unit, error="malformed upstream payload")

        return FetchOutcome(kind=OK, unit=unit, records=list(records))
