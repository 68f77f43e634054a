"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _get_list(name: str, default: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in _get_env(name, default).split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    es_host: str = _get_env("ES_HOST", "http://localhost:9200")
    es_index: str = _get_env("ES_INDEX", "products")
    mapping_path: str = _get_env("MAPPING_PATH", "product-mapping.json")
    products_path: str = _get_env("PRODUCTS_PATH", "products.json")
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    cache_ttl_seconds: int = int(_get_env("CACHE_TTL_SECONDS", "300"))
    cache_max_entries: int = int(_get_env("CACHE_MAX_ENTRIES", "1024"))
    load_on_startup: bool = _get_env("LOAD_ON_STARTUP", "true").lower() in {"1", "true", "yes"}
    search_timeout_seconds: float = float(_get_env("SEARCH_TIMEOUT_SECONDS", "5"))
    max_page_size: int = int(_get_env("MAX_PAGE_SIZE", "100"))
    # Must match the index setting index.max_result_window.
    max_result_window: int = int(_get_env("MAX_RESULT_WINDOW", "10000"))
    cors_origins: tuple[str, ...] = _get_list("CORS_ORIGINS", "*")
    host: str = _get_env("HOST", "0.0.0.0")
    port: int = int(_get_env("PORT", "5000"))
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
