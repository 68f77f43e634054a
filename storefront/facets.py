"""Facet option lists derived from a search match set."""
from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

from .models import FacetOptions


def _add(seen: Dict[str, None], value: Any) -> None:
    # Blank values never become facet options.
    if isinstance(value, str) and value.strip():
        seen.setdefault(value, None)


def aggregate_facets(documents: Iterable[Mapping[str, Any]]) -> FacetOptions:
    """Collect distinct facet values in one pass, keeping first-seen order.

    ``documents`` are raw ``_source`` mappings of every product matching the
    predicate, not just the current page.
    """

    categories: Dict[str, None] = {}
    manufacturers: Dict[str, None] = {}
    types: Dict[str, None] = {}
    price_ranges: Dict[str, None] = {}

    for doc in documents:
        categories_value = doc.get("categories") or ()
        if isinstance(categories_value, str):
            categories_value = (categories_value,)
        for category in categories_value:
            _add(categories, category)
        _add(manufacturers, doc.get("manufacturer"))
        _add(types, doc.get("type"))
        _add(price_ranges, doc.get("salePrice_range"))

    return FacetOptions(
        unique_categories=list(categories),
        unique_manufacturers=list(manufacturers),
        price_ranges=list(price_ranges),
        types=list(types),
    )
