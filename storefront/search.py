"""Product listing and search execution against Elasticsearch."""
from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, List, Optional, Tuple

from elasticsearch import Elasticsearch, helpers

from .cache import cache_key, get_cache
from .config import settings
from .errors import SearchError, wrap
from .facets import aggregate_facets
from .models import Product, ProductListRequest, ProductPage, SearchRequest, SearchResult
from .query import build_listing_query, build_match_set_query, build_page_query

logger = logging.getLogger(__name__)


def _client(es: Elasticsearch) -> Elasticsearch:
    return es.options(request_timeout=settings.search_timeout_seconds)


def _fetch_page(es: Elasticsearch, index: str, body: Optional[dict]) -> List[Product]:
    # No body means the page lies past the result window: nothing to show.
    if body is None:
        return []
    response = _client(es).search(index=index, body=body)
    hits = response.get("hits", {}).get("hits", [])
    return [Product.from_hit(hit) for hit in hits]


def _fetch_match_set(es: Elasticsearch, index: str, body: dict) -> List[Dict[str, Any]]:
    # Scroll through every match; from/size would stop at max_result_window.
    return [
        hit.get("_source", {})
        for hit in helpers.scan(_client(es), query=body, index=index, preserve_order=False)
    ]


def _count(es: Elasticsearch, index: str) -> int:
    return int(_client(es).count(index=index).get("count", 0))


async def _gather(*calls) -> Tuple[Any, ...]:
    tasks = [asyncio.to_thread(func, *args) for func, *args in calls]
    return tuple(
        await asyncio.wait_for(asyncio.gather(*tasks), timeout=settings.search_timeout_seconds)
    )


def _fail(operation: str, index: str, exc: Exception) -> SearchError:
    error = wrap(operation, exc)
    logger.error(
        "%s failed kind=%s index=%s cause=%r",
        operation,
        error.kind.value,
        index,
        exc,
        exc_info=exc,
    )
    return error


async def list_products(es: Elasticsearch, index: str, request: ProductListRequest) -> ProductPage:
    t0 = perf_counter()
    body = build_listing_query(request.skip, request.limit)
    try:
        products, total = await _gather((_fetch_page, es, index, body), (_count, es, index))
    except Exception as exc:
        raise _fail("fetch", index, exc) from exc
    logger.info(
        "timing: total=%.2fms op=fetch skip=%s limit=%s hits=%s count=%s",
        (perf_counter() - t0) * 1000,
        request.skip,
        request.limit,
        len(products),
        total,
    )
    return ProductPage(products=products, result_count=total)


async def search_products(es: Elasticsearch, index: str, request: SearchRequest) -> SearchResult:
    """Run the paged query and the unpaged match-set query for ``request``.

    Both queries share one predicate and run concurrently. Facet options and
    ``result_count`` come from the match set, so they do not depend on
    ``skip``/``limit``.
    """

    use_cache = settings.cache_ttl_seconds > 0
    key = cache_key(index, request)
    if use_cache:
        cached = get_cache().get(key)
        if cached is not None:
            logger.info("timing: cache_hit=1 op=search term=%r", request.term)
            return cached

    t0 = perf_counter()
    page_body = build_page_query(request)
    match_body = build_match_set_query(request)
    try:
        products, matches = await _gather(
            (_fetch_page, es, index, page_body),
            (_fetch_match_set, es, index, match_body),
        )
    except Exception as exc:
        raise _fail("search", index, exc) from exc
    t1 = perf_counter()

    facets = aggregate_facets(matches)
    result = SearchResult(products=products, result_count=len(matches), facets=facets)
    t2 = perf_counter()

    logger.info(
        "timing: total=%.2fms es=%.2fms facets=%.2fms op=search term=%r filters=%s sort=%s:%s hits=%s count=%s",
        (t2 - t0) * 1000,
        (t1 - t0) * 1000,
        (t2 - t1) * 1000,
        request.term,
        request.filters.model_dump(exclude_defaults=True),
        request.sort.field.value,
        request.sort.order.value,
        len(products),
        result.result_count,
    )
    if use_cache:
        get_cache().put(key, result)
        logger.debug("cache_store term=%r ttl=%s", request.term, settings.cache_ttl_seconds)
    return result
