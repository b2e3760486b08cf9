from __future__ import annotations

import sys
import threading
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

try:
    from backend.services.rate_budget import RateBudget
    from backend.services.settings import load_settings
    from backend.services.upcoming_matches import (
        LOCAL_RATE_LIMITED,
        UPSTREAM_RATE_LIMITED,
        PipelineResult,
        UpcomingMatchesPipeline,
        build_pipeline,
    )
except ModuleNotFoundError:
    from services.rate_budget import RateBudget
    from services.settings import load_settings
    from services.upcoming_matches import (
        LOCAL_RATE_LIMITED,
        UPSTREAM_RATE_LIMITED,
        PipelineResult,
        UpcomingMatchesPipeline,
        build_pipeline,
    )


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FixtureResponse(CamelModel):
    id: str
    name: str
    home_team: str
    away_team: str
    home_team_id: str | None = None
    away_team_id: str | None = None
    date: str
    time: str | None = None
    league: str
    home_badge: str | None = None
    away_badge: str | None = None
    status: str | None = None
    stage: str | None = None
    matchday: int | None = None


class UpcomingMatchesData(CamelModel):
    events: list[FixtureResponse]
    count: int
    leagues: list[str]
    source: str
    note: str | None = None
    rate_limit_warning: str | None = None


class UpcomingMatchesResponse(CamelModel):
    success: bool = True
    data: UpcomingMatchesData
    cached: bool | None = None
    cache_age: int | None = None


class TodayMatchesResponse(CamelModel):
    success: bool = True
    matches: list[FixtureResponse]
    count: int


class RateLimitInfo(CamelModel):
    limit: str
    suggestion: str
    api_message: str | None = None


class RateLimitErrorResponse(CamelModel):
    success: bool = False
    error: str
    message: str
    retry_after_seconds: int
    rate_limit_info: RateLimitInfo


class ErrorResponse(CamelModel):
    success: bool = False
    error: str
    message: str


settings = load_settings()

logger.remove()
logger.add(sys.stderr, level=settings.log_level)

app = FastAPI(
    title="Upcoming Matches API",
    version="1.0.0",
    description="Rate-limited, cached feed of upcoming football fixtures.",
)

allow_credentials = "*" not in settings.cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)

# Both pipelines spend the same upstream budget, so they also share one lock.
budget = RateBudget(
    ceiling=settings.rate_limit_per_minute,
    provider_limit=settings.provider_rate_limit_per_minute,
)
pipeline_lock = threading.Lock()
upcoming_pipeline = build_pipeline(settings, budget, pipeline_lock)
today_pipeline = build_pipeline(settings, budget, pipeline_lock, lookahead_days=1)


def _rate_limit_response(
    result: PipelineResult, pipeline: UpcomingMatchesPipeline
) -> JSONResponse:
    wait_seconds = result.retry_after or pipeline.budget.seconds_until_reset()
    ttl_seconds = int(pipeline.cache.ttl_seconds)

    if result.status == UPSTREAM_RATE_LIMITED:
        error = "Upstream rate limit reached"
        message = (
            f"{result.source} rejected further requests and no matches could be loaded."
        )
    else:
        error = "Rate limit exceeded"
        message = (
            f"Local request budget exhausted. Please wait {wait_seconds} seconds "
            "before trying again."
        )

    body = RateLimitErrorResponse(
        error=error,
        message=message,
        retry_after_seconds=wait_seconds,
        rate_limit_info=RateLimitInfo(
            limit=pipeline.budget.describe_limit(),
            suggestion=(
                f"Wait {wait_seconds} seconds and retry. Successful results are "
                f"cached for {ttl_seconds} seconds."
            ),
            api_message=result.api_message,
        ),
    )
    return JSONResponse(
        status_code=429,
        content=body.model_dump(by_alias=True),
        headers={"Retry-After": str(wait_seconds)},
    )


def _error_response(result: PipelineResult) -> JSONResponse:
    body = ErrorResponse(
        error="Failed to fetch matches",
        message=result.error or "Unexpected pipeline failure.",
    )
    return JSONResponse(status_code=502, content=body.model_dump(by_alias=True))


def _failure_response(
    result: PipelineResult, pipeline: UpcomingMatchesPipeline
) -> JSONResponse:
    if result.status in {LOCAL_RATE_LIMITED, UPSTREAM_RATE_LIMITED}:
        return _rate_limit_response(result, pipeline)
    return _error_response(result)


@app.get("/")
async def index() -> dict[str, Any]:
    return {
        "message": "Upcoming Matches API",
        "endpoints": {
            "upcoming_matches": "/api/upcoming-matches",
            "matches_today": "/api/matches",
            "health": "/healthz",
            "ready": "/readyz",
        },
    }


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/readyz")
async def readyz() -> dict[str, Any]:
    upcoming = upcoming_pipeline.status()
    today = today_pipeline.status()
    budget_status = upcoming["budget"]
    return {
        "status": "ready",
        "provider": settings.provider,
        "source": settings.source_name,
        "query_strategy": settings.strategy,
        "api_key_configured": bool(settings.api_key) or settings.provider == "thesportsdb",
        "lookahead_days": settings.lookahead_days,
        "competitions": settings.competitions if settings.strategy == "competition" else [],
        "max_events": settings.max_events,
        "cache_ttl_seconds": settings.cache_ttl_seconds,
        "upcoming_cache": upcoming["cache"],
        "today_cache": today["cache"],
        "rate_limit": budget_status["limit"],
        "rate_used": budget_status["used"],
        "rate_remaining": budget_status["remaining"],
        "provider_rate_limit": budget_status["provider_limit"],
        "rate_resets_in_seconds": budget_status["resets_in_seconds"],
    }


@app.get(
    "/api/upcoming-matches",
    response_model=UpcomingMatchesResponse,
    response_model_exclude_unset=True,
    responses={429: {"model": RateLimitErrorResponse}, 502: {"model": ErrorResponse}},
)
def get_upcoming_matches() -> UpcomingMatchesResponse | JSONResponse:
    result = upcoming_pipeline.run()
    if not result.success:
        return _failure_response(result, upcoming_pipeline)

    payload: dict[str, Any] = {"success": True, "data": result.data_payload()}
    if result.cached:
        payload["cached"] = True
        payload["cacheAge"] = result.cache_age or 0
    return UpcomingMatchesResponse.model_validate(payload)


@app.get(
    "/api/matches",
    response_model=TodayMatchesResponse,
    responses={429: {"model": RateLimitErrorResponse}, 502: {"model": ErrorResponse}},
)
def get_todays_matches() -> TodayMatchesResponse | JSONResponse:
    result = today_pipeline.run()
    if not result.success:
        return _failure_response(result, today_pipeline)

    data = result.data_payload()
    return TodayMatchesResponse.model_validate(
        {"success": True, "matches": data["events"], "count": data["count"]}
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("backend.main:app", host="0.0.0.0", port=8000, reload=True)
