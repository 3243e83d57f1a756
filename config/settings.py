from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from config.sirene_codes import DEFAULT_EXCLUDED_ROLES


def _load_env() -> None:
    # Centralized dotenv loading; safe if .env missing
    load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(";") if item.strip()]


@dataclass(frozen=True)
class Settings:
    # Core/runtime
    data_dir: str
    log_level: str
    run_env: str
    request_timeout_seconds: int

    # SIRENE registry + geo labels
    sirene_search_url: str
    geo_api_url: str
    sirene_delay_seconds: float
    sirene_revenue_min: int
    sirene_revenue_max: int
    sirene_per_page: int
    excluded_roles: list[str]

    # Social profile discovery
    social_platform_domain: str
    social_platform_name: str
    search_engine_url: str
    nav_timeout_short_ms: int
    nav_timeout_long_ms: int

    # Browser
    browser_headless: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_env()
    revenue_min = int(os.getenv("SIRENE_CA_MIN", "10000000"))
    revenue_max = int(os.getenv("SIRENE_CA_MAX", "300000000"))
    if revenue_min > revenue_max:
        raise RuntimeError("SIRENE_CA_MIN must not exceed SIRENE_CA_MAX")
    return Settings(
        data_dir=os.getenv("DATA_DIR", "data"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        run_env=os.getenv("RUN_ENV", "local"),
        request_timeout_seconds=int(os.getenv("REQUEST_TIMEOUT", "30")),
        sirene_search_url=os.getenv("SIRENE_SEARCH_URL", "https://recherche-entreprises.api.gouv.fr/search"),
        geo_api_url=os.getenv("GEO_API_URL", "https://geo.api.gouv.fr").rstrip("/"),
        sirene_delay_seconds=float(os.getenv("SIRENE_DELAY", "0.25")),
        sirene_revenue_min=revenue_min,
        sirene_revenue_max=revenue_max,
        sirene_per_page=int(os.getenv("SIRENE_PER_PAGE", "25")),
        excluded_roles=_as_list(os.getenv("EXCLUDED_ROLES"), DEFAULT_EXCLUDED_ROLES),
        social_platform_domain=os.getenv("SOCIAL_PLATFORM_DOMAIN", "linkedin.com"),
        social_platform_name=os.getenv("SOCIAL_PLATFORM_NAME", "linkedin"),
        search_engine_url=os.getenv("SEARCH_ENGINE_URL", "https://html.duckduckgo.com/html/"),
        nav_timeout_short_ms=int(os.getenv("NAV_TIMEOUT_SHORT_MS", "5000")),
        nav_timeout_long_ms=int(os.getenv("NAV_TIMEOUT_LONG_MS", "10000")),
        browser_headless=_as_bool(os.getenv("BROWSER_HEADLESS"), default=True),
        user_agent=os.getenv(
            "USER_AGENT",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        ),
    )
