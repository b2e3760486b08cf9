from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

env_path = os.path.join(os.path.dirname(__file__), "..", ".env")
load_dotenv(env_path)

PROVIDER_STRATEGIES = {
    "football_data": "competition",
    "thesportsdb": "day",
}


def _env_int(name: str, default: int, minimum: int, maximum: int) -> int:
    raw = os.getenv(name, str(default)).strip()
    try:
        value = int(raw)
    except ValueError:
        value = default
    return max(minimum, min(maximum, value))


def _parse_csv_env(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    values = [item.strip() for item in raw.split(",") if item.strip()]
    return values or [item.strip() for item in default.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    provider: str = "football_data"
    football_data_api_key: str = ""
    football_data_base_url: str = "https://api.football-data.org/v4"
    thesportsdb_base_url: str = "https://www.thesportsdb.com/api/v1/json/123"
    competitions: list[str] = field(
        default_factory=lambda: ["PL", "PD", "BL1", "SA", "FL1", "CL"]
    )
    lookahead_days: int = 7
    timeout_seconds: float = 10.0
    inter_request_delay_seconds: float = 0.2
    rate_limit_per_minute: int = 8
    provider_rate_limit_per_minute: int = 10
    cache_ttl_seconds: int = 300
    max_events: int = 10
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )
    log_level: str = "INFO"

    @property
    def strategy(self) -> str:
        return PROVIDER_STRATEGIES[self.provider]

    @property
    def base_url(self) -> str:
        if self.provider == "thesportsdb":
            return self.thesportsdb_base_url
        return self.football_data_base_url

    @property
    def api_key(self) -> str:
        if self.provider == "thesportsdb":
            # The public TheSportsDB key is part of the base URL.
            return ""
        return self.football_data_api_key

    @property
    def source_name(self) -> str:
        if self.provider == "thesportsdb":
            return "TheSportsDB"
        return "football-data.org"


def load_settings() -> Settings:
    provider = os.getenv("FIXTURES_PROVIDER", "football_data").strip().lower()
    if provider not in PROVIDER_STRATEGIES:
        raise ValueError(
            f"FIXTURES_PROVIDER must be one of {sorted(PROVIDER_STRATEGIES)}, got {provider!r}"
        )

    provider_limit = _env_int(
        "PROVIDER_RATE_LIMIT_PER_MINUTE", default=10, minimum=1, maximum=1000
    )
    # Keep at least one request of headroom below the provider's own limit.
    local_ceiling = _env_int(
        "RATE_LIMIT_PER_MINUTE",
        default=8,
        minimum=1,
        maximum=max(1, provider_limit - 1),
    )
    delay_ms = _env_int("INTER_REQUEST_DELAY_MS", default=200, minimum=0, maximum=10000)

    return Settings(
        provider=provider,
        football_data_api_key=os.getenv("FOOTBALL_DATA_API_KEY", "").strip(),
        football_data_base_url=os.getenv(
            "FOOTBALL_DATA_BASE_URL", "https://api.football-data.org/v4"
        ).strip().rstrip("/"),
        thesportsdb_base_url=os.getenv(
            "THESPORTSDB_BASE_URL", "https://www.thesportsdb.com/api/v1/json/123"
        ).strip().rstrip("/"),
        competitions=[code.upper() for code in _parse_csv_env("COMPETITIONS", "PL,PD,BL1,SA,FL1,CL")],
        lookahead_days=_env_int("LOOKAHEAD_DAYS", default=7, minimum=1, maximum=14),
        timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10")),
        inter_request_delay_seconds=delay_ms / 1000.0,
        rate_limit_per_minute=local_ceiling,
        provider_rate_limit_per_minute=provider_limit,
        cache_ttl_seconds=_env_int("CACHE_TTL_SECONDS", default=300, minimum=1, maximum=86400),
        max_events=_env_int("MAX_EVENTS", default=10, minimum=1, maximum=500),
        cors_origins=_parse_csv_env("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
