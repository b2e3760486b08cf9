from __future__ import annotations

import json
import threading

try:
    from backend.services.rate_budget import RateBudget
    from backend.services.settings import load_settings
    from backend.services.upcoming_matches import build_pipeline
except ModuleNotFoundError:
    from services.rate_budget import RateBudget
    from services.settings import load_settings
    from services.upcoming_matches import build_pipeline


def main() -> None:
    settings = load_settings()
    budget = RateBudget(
        ceiling=settings.rate_limit_per_minute,
        provider_limit=settings.provider_rate_limit_per_minute,
    )
    pipeline = build_pipeline(settings, budget, threading.Lock())
    result = pipeline.run()

    summary = {
        "status": result.status,
        "source": result.source,
        "query_strategy": settings.strategy,
        "units_queried": result.leagues,
        "fixtures_loaded": result.count,
        "note": result.note,
        "rate_limit_warning": result.rate_limit_warning,
        "retry_after_seconds": result.retry_after,
        "api_message": result.api_message,
        "error": result.error,
        "rate_budget": budget.status(),
    }
    if result.success:
        summary["fixtures"] = result.data_payload()["events"]

    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
