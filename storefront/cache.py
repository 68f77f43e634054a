"""Search result cache: Redis when reachable, a bounded local map otherwise.

Entries are whole ``SearchResult`` objects keyed by index and request. The
index is read-only between reindexes, so expiry plus ``clear()`` on
``/reindex`` is enough to keep results fresh.
"""
from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional, Protocol

import redis
from pydantic import ValidationError

from .config import settings
from .models import SearchRequest, SearchResult

logger = logging.getLogger(__name__)

KEY_PREFIX = "storefront:search:"


class ResultCache(Protocol):
    def get(self, key: str) -> Optional[SearchResult]: ...

    def put(self, key: str, result: SearchResult) -> None: ...

    def clear(self) -> None: ...


def cache_key(index: str, request: SearchRequest) -> str:
    digest = hashlib.sha1(f"{index}\n{request.model_dump_json()}".encode("utf-8")).hexdigest()
    return f"{KEY_PREFIX}{digest}"


@dataclass
class RedisResultCache:
    client: redis.Redis
    ttl: int

    def get(self, key: str) -> Optional[SearchResult]:
        try:
            data = self.client.get(key)
        except redis.RedisError as exc:
            logger.warning("cache get failed key=%s: %s", key, exc)
            return None
        if not data:
            return None
        try:
            return SearchResult.model_validate_json(data)
        except ValidationError:
            # Written by an older model version; treat as a miss.
            logger.info("cache entry key=%s no longer parses, dropping", key)
            self.client.delete(key)
            return None

    def put(self, key: str, result: SearchResult) -> None:
        try:
            self.client.setex(key, self.ttl, result.model_dump_json(by_alias=True))
        except redis.RedisError as exc:
            logger.warning("cache put failed key=%s: %s", key, exc)

    def clear(self) -> None:
        try:
            keys = list(self.client.scan_iter(match=f"{KEY_PREFIX}*"))
            if keys:
                self.client.delete(*keys)
        except redis.RedisError as exc:
            logger.warning("cache clear failed: %s", exc)


class LocalResultCache:
    """Process-local LRU with per-entry expiry."""

    def __init__(self, ttl: int, max_entries: int = 1024) -> None:
        self.ttl = ttl
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, tuple[float, SearchResult]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[SearchResult]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, result = entry
            if expires_at <= time.monotonic():
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return result.model_copy(deep=True)

    def put(self, key: str, result: SearchResult) -> None:
        with self._lock:
            self._entries[key] = (time.monotonic() + self.ttl, result.model_copy(deep=True))
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_cache: ResultCache | None = None


def get_cache() -> ResultCache:
    global _cache
    if _cache is None:
        _cache = _connect()
    return _cache


def _connect() -> ResultCache:
    client = redis.Redis(host=settings.redis_host, port=settings.redis_port)
    try:
        client.ping()
    except redis.RedisError as exc:
        logger.warning("Redis unavailable at %s:%s (%s); caching in process", settings.redis_host, settings.redis_port, exc)
        return LocalResultCache(settings.cache_ttl_seconds, settings.cache_max_entries)
    logger.info("Caching search results in Redis at %s:%s", settings.redis_host, settings.redis_port)
    return RedisResultCache(client, settings.cache_ttl_seconds)
