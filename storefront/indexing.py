"""Index creation and maintenance helpers."""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import BadRequestError, NotFoundError

from .config import settings

logger = logging.getLogger(__name__)


def _load_mapping(mapping_path: Path) -> dict:
    with mapping_path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


async def ensure_index(es: Elasticsearch, index: str | None = None) -> bool:
    """Create the products index from the mapping file if it is missing.

    Returns ``True`` when the index was created by this call.
    """

    index = index or settings.es_index
    exists = await asyncio.to_thread(es.indices.exists, index=index)
    if exists:
        return False
    mapping_path = Path(settings.mapping_path)
    body = _load_mapping(mapping_path)
    logger.info("Creating index %s using %s", index, mapping_path)
    try:
        await asyncio.to_thread(es.indices.create, index=index, body=body)
    except BadRequestError as exc:
        if getattr(exc, "error", "") == "resource_already_exists_exception":
            logger.info("Index %s already exists", index)
            return False
        logger.exception("Failed to create index: %s", exc)
        raise
    return True


async def drop_index(es: Elasticsearch, index: str | None = None) -> None:
    try:
        await asyncio.to_thread(es.indices.delete, index=index or settings.es_index)
    except NotFoundError:
        return


async def index_is_empty(es: Elasticsearch, index: str | None = None) -> bool:
    try:
        stats = await asyncio.to_thread(es.count, index=index or settings.es_index)
        return stats.get("count", 0) == 0
    except NotFoundError:
        return True
