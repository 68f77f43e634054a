"""Compile search requests into Elasticsearch query bodies.

A search runs two queries built from the same predicate: one paged and sorted
for the visible products, one unpaged for facet options and the total count.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .config import settings
from .models import SearchRequest, SortField, SortSpec

logger = logging.getLogger(__name__)

TEXT_FIELDS = [
    "name^3",
    "shortDescription",
    "manufacturer.text",
    "categories.text",
    "type.text",
]
# Request filter attribute -> keyword field in the index.
FILTER_FIELDS = {
    "categories": "categories",
    "manufacturers": "manufacturer",
    "types": "type",
    "price_ranges": "salePrice_range",
}
FACET_FIELDS = ["categories", "manufacturer", "type", "salePrice_range"]


def build_predicate(request: SearchRequest) -> Dict[str, Any]:
    """Full-text match on the term, AND-ed with one IN-set filter per facet."""

    must: List[dict] = [
        {
            "multi_match": {
                "query": request.term,
                "fields": TEXT_FIELDS,
                "operator": "or",
            }
        }
    ]
    filters: List[dict] = []
    for attr, field in FILTER_FIELDS.items():
        values = getattr(request.filters, attr)
        if values:
            filters.append({"terms": {field: list(values)}})
    return {"bool": {"must": must, "filter": filters}}


def build_sort(sort: SortSpec) -> List[dict]:
    # Natural order leaves ranking to the store (relevance score).
    if sort.field == SortField.NATURAL:
        return []
    return [{sort.field.value: {"order": "desc" if sort.descending else "asc"}}]


def page_size(skip: int, limit: int, window: Optional[int] = None) -> int:
    """Number of hits a from/size page may ask for.

    Elasticsearch rejects ``from + size`` above ``index.max_result_window``, so
    the page is cut at the window and is empty once ``skip`` reaches it.
    """

    window = settings.max_result_window if window is None else window
    return max(0, min(limit, window - skip))


def build_page_query(request: SearchRequest) -> Optional[Dict[str, Any]]:
    size = page_size(request.skip, request.limit)
    if not size:
        return None
    body: Dict[str, Any] = {
        "query": build_predicate(request),
        "from": request.skip,
        "size": size,
        "track_total_hits": False,
    }
    sort = build_sort(request.sort)
    if sort:
        body["sort"] = sort
    logger.debug("ES page query payload=%s", body)
    return body


def build_match_set_query(request: SearchRequest) -> Dict[str, Any]:
    body = {"query": build_predicate(request), "_source": FACET_FIELDS}
    logger.debug("ES match set query payload=%s", body)
    return body


def build_listing_query(skip: int, limit: int) -> Optional[Dict[str, Any]]:
    size = page_size(skip, limit)
    if not size:
        return None
    return {"query": {"match_all": {}}, "from": skip, "size": size}
