"""Bulk loader for the product catalogue JSON export."""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Iterable

from elasticsearch import Elasticsearch, helpers

from .cache import get_cache
from .config import settings
from .indexing import drop_index, ensure_index, index_is_empty

logger = logging.getLogger(__name__)

TEXT_KEYS = ("name", "shortDescription", "thumbnailImage", "url", "image", "shipping")


def _load_products(path: Path) -> list[dict]:
    if not path.exists():
        logger.warning("Products file %s is missing", path)
        return []
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, dict):
        data = data.get("products", [])
    return list(data)


def _as_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None and value != "" else None
    except (TypeError, ValueError):
        return None


def _prepare_product(raw: dict) -> dict:
    """Coerce one catalogue record into the indexed document shape."""

    categories = raw.get("categories") or []
    if isinstance(categories, str):
        categories = [categories]
    product = {
        "objectID": str(raw.get("objectID") or raw.get("_id") or raw.get("sku") or ""),
        "manufacturer": (raw.get("manufacturer") or "").strip(),
        "type": (raw.get("type") or "").strip(),
        "salePrice_range": (raw.get("salePrice_range") or "").strip(),
        "categories": [c.strip() for c in categories if isinstance(c, str) and c.strip()],
        "salePrice": float(raw.get("salePrice") or 0),
        "bestSellingRank": _as_int(raw.get("bestSellingRank")) or 0,
        "customerReviewCount": _as_int(raw.get("customerReviewCount")),
    }
    for key in TEXT_KEYS:
        if raw.get(key) is not None:
            product[key] = raw[key]
    return product


def _iter_actions(index: str, products: Iterable[dict]) -> Iterable[dict]:
    for product in products:
        action = {"_index": index, "_source": product}
        if product.get("objectID"):
            action["_id"] = product["objectID"]
        yield action


async def import_products(es: Elasticsearch, index: str | None = None) -> int:
    index = index or settings.es_index
    raw_products = _load_products(Path(settings.products_path))
    if not raw_products:
        return 0
    products = [_prepare_product(item) for item in raw_products]
    actions = list(_iter_actions(index, products))
    await asyncio.to_thread(helpers.bulk, es, actions, refresh="wait_for")
    logger.info("Indexed %s products into %s", len(actions), index)
    return len(actions)


async def import_if_empty(es: Elasticsearch, index: str | None = None) -> int:
    if not await index_is_empty(es, index):
        return 0
    return await import_products(es, index)


async def reindex_data(es: Elasticsearch, index: str | None = None) -> int:
    await drop_index(es, index)
    await ensure_index(es, index)
    count = await import_products(es, index)
    get_cache().clear()
    return count
