from __future__ import annotations

import dataclasses
import datetime as dt
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from loguru import logger

try:
    from backend.services.aggregator import aggregate
    from backend.services.fixture_fetcher import FetchOutcome, FixtureFetcher
    from backend.services.fixture_window import QueryUnit, build_query_units
    from backend.services.normalizer import Fixture, MalformedFixtureError, normalize_fixture
    from backend.services.rate_budget import RateBudget
    from backend.services.response_cache import ResponseCache
    from backend.services.settings import Settings
except ModuleNotFoundError:
    from services.aggregator import aggregate
    from services.fixture_fetcher import FetchOutcome, FixtureFetcher
    from services.fixture_window import QueryUnit, build_query_units
    from services.normalizer import Fixture, MalformedFixtureError, normalize_fixture
    from services.rate_budget import RateBudget
    from services.response_cache import ResponseCache
    from services.settings import Settings

SUCCESS = "success"
LOCAL_RATE_LIMITED = "local_rate_limited"
UPSTREAM_RATE_LIMITED = "upstream_rate_limited"
ERROR = "error"

BUDGET_EXHAUSTED = "budget_exhausted"


def _utc_today() -> dt.date:
    return dt.datetime.now(dt.UTC).date()


@dataclass(frozen=True)
class PipelineResult:
    status: str
    source: str
    events: list[Fixture] = field(default_factory=list)
    leagues: list[str] = field(default_factory=list)
    note: str | None = None
    rate_limit_warning: str | None = None
    cached: bool = False
    cache_age: int | None = None
    retry_after: int | None = None
    api_message: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status == SUCCESS

    @property
    def count(self) -> int:
        return len(self.events)

    def data_payload(self) -> dict[str, Any]:
        return {
            "events": [fixture.to_payload() for fixture in self.events],
            "count": self.count,
            "leagues": list(self.leagues),
            "source": self.source,
            "note": self.note,
            "rateLimitWarning": self.rate_limit_warning,
        }


class UpcomingMatchesPipeline:
    """Cache -> budget -> sequential fetch -> normalize -> aggregate -> cache.

    Every run holds ``lock`` for its whole duration. Pipelines that share a
    ``RateBudget`` must also share the lock so the check-then-record step on
    the budget is never interleaved.
    """

    def __init__(
        self,
        fetcher: FixtureFetcher,
        budget: RateBudget,
        cache: ResponseCache,
        unit_builder: Callable[[], list[QueryUnit]],
        source: str,
        max_events: int = 10,
        inter_request_delay_seconds: float = 0.2,
        lock: threading.Lock | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.fetcher = fetcher
        self.budget = budget
        self.cache = cache
        self.unit_builder = unit_builder
        self.source = source
        self.max_events = max(1, int(max_events))
        self.inter_request_delay_seconds = max(0.0, float(inter_request_delay_seconds))
        self._lock = lock or threading.Lock()
        self._sleep = sleep

    def run(self) -> PipelineResult:
        with self._lock:
            try:
                return self._run_locked()
            except Exception as exc:
                logger.exception(f"Upcoming matches pipeline failed: {exc}")
                return PipelineResult(status=ERROR, source=self.source, error=str(exc))

    def status(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "cache": self.cache.status(),
            "budget": self.budget.status(),
        }

    def _run_locked(self) -> PipelineResult:
        entry = self.cache.get()
        if entry is not None:
            logger.info(f"Serving cached fixtures (age {entry.age_seconds:.0f}s).")
            return dataclasses.replace(
                entry.value, cached=True, cache_age=int(entry.age_seconds)
            )

        if self.budget.is_exhausted():
            wait_seconds = self.budget.seconds_until_reset()
            logger.warning(f"Local request budget exhausted; resets in {wait_seconds}s.")
            return PipelineResult(
                status=LOCAL_RATE_LIMITED,
                source=self.source,
                retry_after=wait_seconds,
            )

        units = self.unit_builder()
        batches: list[list[Fixture]] = []
        queried: list[str] = []
        failed: list[str] = []
        seen_ids: set[str] = set()
        upstream_limited = False
        budget_cut = False
        early_exit = False
        api_message: str | None = None

        for outcome in self._unit_outcomes(units):
            if outcome.kind == BUDGET_EXHAUSTED:
                budget_cut = True
                logger.warning(
                    f"Local request budget reached before {outcome.unit.label}; stopping."
                )
                break

            queried.append(outcome.unit.label)

            if outcome.rate_limited:
                upstream_limited = True
                api_message = outcome.error
                self.budget.exhaust()
                break

            if not outcome.ok:
                failed.append(outcome.unit.label)
                continue

            batch = self._normalize_batch(outcome)
            batches.append(batch)
            seen_ids.update(fixture.id for fixture in batch)
            if len(seen_ids) >= self.max_events:
                early_exit = True
                break

        early_exit = early_exit and len(queried) < len(units)
        events = aggregate(batches)
        logger.info(
            "Queried {} of {} units, collected {} fixtures.",
            len(queried),
            len(units),
            len(events),
        )

        if not events and (upstream_limited or budget_cut):
            return PipelineResult(
                status=UPSTREAM_RATE_LIMITED if upstream_limited else LOCAL_RATE_LIMITED,
                source=self.source,
                leagues=queried,
                retry_after=self.budget.seconds_until_reset(),
                api_message=api_message,
            )

        result = PipelineResult(
            status=SUCCESS,
            source=self.source,
            events=events,
            leagues=queried,
            note=self._build_note(events, failed, early_exit),
            rate_limit_warning=self._build_rate_limit_warning(upstream_limited, budget_cut),
        )
        self.cache.put(result)
        return result

    def _unit_outcomes(self, units: list[QueryUnit]) -> Iterator[FetchOutcome]:
        for index, unit in enumerate(units):
            if index > 0 and self.inter_request_delay_seconds > 0:
                self._sleep(self.inter_request_delay_seconds)

            if self.budget.is_exhausted():
                yield FetchOutcome(kind=BUDGET_EXHAUSTED, unit=unit)
                return

            self.budget.record_request()
            yield self.fetcher.fetch(unit)

    @staticmethod
    def _normalize_batch(outcome: FetchOutcome) -> list[Fixture]:
        batch: list[Fixture] = []
        for record in outcome.records:
            try:
                batch.append(normalize_fixture(record, outcome.league_label))
            except MalformedFixtureError as exc:
                logger.warning(f"Skipping malformed record from {outcome.league_label}: {exc}")
        return batch

    def _build_note(
        self, events: list[Fixture], failed: list[str], early_exit: bool
    ) -> str | None:
        notes: list[str] = []
        if early_exit:
            notes.append(
                f"Stopped after collecting {len(events)} matches (limit {self.max_events})."
            )
        if failed:
            notes.append(f"{len(failed)} source(s) could not be loaded: {', '.join(failed)}.")
        if not events and not failed:
            notes.append("No upcoming matches scheduled in the selected window.")
        return " ".join(notes) or None

    @staticmethod
    def _build_rate_limit_warning(upstream_limited: bool, budget_cut: bool) -> str | None:
        if upstream_limited:
            return "Upstream API rate limit reached; some competitions were not loaded."
        if budget_cut:
            return "Local request budget reached; some competitions were not loaded."
        return None


def build_pipeline(
    settings: Settings,
    budget: RateBudget,
    lock: threading.Lock,
    lookahead_days: int | None = None,
) -> UpcomingMatchesPipeline:
    days = settings.lookahead_days if lookahead_days is None else lookahead_days

    def unit_builder() -> list[QueryUnit]:
        return build_query_units(
            settings.strategy, _utc_today(), days, settings.competitions
        )

    if settings.strategy == "competition" and not settings.api_key:
        logger.warning("FOOTBALL_DATA_API_KEY is not configured. Upstream calls will be rejected.")

    fetcher = FixtureFetcher(
        base_url=settings.base_url,
        strategy=settings.strategy,
        api_key=settings.api_key,
        timeout_seconds=settings.timeout_seconds,
    )
    return UpcomingMatchesPipeline(
        fetcher=fetcher,
        budget=budget,
        cache=ResponseCache(ttl_seconds=settings.cache_ttl_seconds),
        unit_builder=unit_builder,
        source=settings.source_name,
        max_events=settings.max_events,
        inter_request_delay_seconds=settings.inter_request_delay_seconds,
        lock=lock,
    )
