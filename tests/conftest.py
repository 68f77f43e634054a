"""Shared fixtures: an in-memory stand-in for the Elasticsearch client.

The fake understands the slice of the query DSL the search layer emits:
``bool`` with ``must``/``filter``, ``multi_match``, ``terms``, ``match_all``,
field sorts and ``from``/``size``.
"""
from __future__ import annotations

import re
import time
from typing import Any, Dict, Iterable, List
from unittest.mock import MagicMock

import pytest
from elasticsearch import BadRequestError

from storefront import cache, search

TOKEN_RE = re.compile(r"[0-9a-z]+")


def _tokens(value: Any) -> set[str]:
    if value is None:
        return set()
    if isinstance(value, (list, tuple)):
        found: set[str] = set()
        for item in value:
            found |= _tokens(item)
        return found
    return set(TOKEN_RE.findall(str(value).lower()))


def _field_name(field: str) -> str:
    return field.split("^", 1)[0].split(".", 1)[0]


def _matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    if "match_all" in query:
        return True
    if "bool" in query:
        clauses = query["bool"]
        return all(_matches(doc, c) for c in clauses.get("must", []) + clauses.get("filter", []))
    if "multi_match" in query:
        spec = query["multi_match"]
        wanted = _tokens(spec["query"])
        present: set[str] = set()
        for field in spec["fields"]:
            present |= _tokens(doc.get(_field_name(field)))
        return bool(wanted & present)
    if "terms" in query:
        ((field, values),) = query["terms"].items()
        value = doc.get(field)
        have = set(value) if isinstance(value, list) else {value}
        return bool(have & set(values))
    raise AssertionError(f"unsupported clause {query}")


class FakeCluster:
    def health(self) -> dict:
        return {"status": "green"}


class FakeIndices:
    def __init__(self) -> None:
        self.created: Dict[str, dict] = {}

    def exists(self, index: str) -> bool:
        return index in self.created

    def create(self, index: str, body: dict) -> None:
        self.created[index] = body

    def delete(self, index: str) -> None:
        self.created.pop(index, None)


class FakeElasticsearch:
    def __init__(self, docs: Iterable[Dict[str, Any]] = (), fail_with: Exception | None = None, delay: float = 0.0):
        self.docs: List[Dict[str, Any]] = [dict(d) for d in docs]
        self.fail_with = fail_with
        self.delay = delay
        self.searches: List[dict] = []
        self.cluster = FakeCluster()
        self.indices = FakeIndices()
        self.max_result_window = 10000

    def options(self, **kwargs) -> "FakeElasticsearch":
        return self

    def _check(self) -> None:
        if self.delay:
            time.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with

    def _hits(self, query: Dict[str, Any]) -> List[dict]:
        return [
            {"_id": doc.get("objectID", str(pos)), "_score": 1.0, "_source": doc}
            for pos, doc in enumerate(self.docs)
            if _matches(doc, query)
        ]

    def search(self, index: str, body: Dict[str, Any]) -> dict:
        self._check()
        self.searches.append(body)
        if body.get("from", 0) + body.get("size", 10) > self.max_result_window:
            raise BadRequestError(
                "illegal_argument_exception: Result window is too large",
                meta=MagicMock(status=400),
                body={},
            )
        hits = self._hits(body.get("query", {"match_all": {}}))
        for clause in reversed(body.get("sort", [])):
            ((field, spec),) = clause.items()
            hits.sort(key=lambda h: h["_source"].get(field) or 0, reverse=spec["order"] == "desc")
        start = body.get("from", 0)
        page = hits[start : start + body.get("size", 10)]
        return {"took": 1, "hits": {"hits": page}}

    def count(self, index: str) -> dict:
        self._check()
        return {"count": len(self.docs)}

    def scan(self, client, query: Dict[str, Any], index: str, **kwargs):
        assert client is self
        self._check()
        fields = query.get("_source")
        for hit in self._hits(query["query"]):
            source = hit["_source"]
            if fields:
                source = {k: v for k, v in source.items() if k in fields}
            yield {**hit, "_source": source}


def make_product(object_id: str, name: str, price: float, **extra: Any) -> Dict[str, Any]:
    doc = {
        "objectID": object_id,
        "name": name,
        "shortDescription": extra.pop("shortDescription", f"{name} description"),
        "salePrice": price,
        "manufacturer": "Acme",
        "type": "HardGood",
        "salePrice_range": "1 - 50",
        "categories": ["Footwear"],
        "bestSellingRank": 100,
        "customerReviewCount": 0,
        "thumbnailImage": "",
        "url": "",
        "shipping": "",
    }
    doc.update(extra)
    return doc


@pytest.fixture
def shoe_catalog() -> List[Dict[str, Any]]:
    """Five footwear shoes plus unrelated and partially matching products."""

    return [
        make_product("s1", "Trail Shoe", 30, manufacturer="Acme", bestSellingRank=3, customerReviewCount=12),
        make_product("s2", "Canvas Shoe", 10, manufacturer="Stride", bestSellingRank=5, customerReviewCount=40),
        make_product(
            "s3",
            "Leather Shoe",
            50,
            manufacturer="Stride",
            salePrice_range="50 - 100",
            bestSellingRank=1,
            customerReviewCount=7,
        ),
        make_product("s4", "Running Shoe", 20, manufacturer="Acme", bestSellingRank=4, customerReviewCount=99),
        make_product(
            "s5",
            "Court Shoe",
            40,
            manufacturer="Pace",
            type="Sport",
            categories=["Footwear", "Sports"],
            bestSellingRank=2,
            customerReviewCount=3,
        ),
        make_product("x1", "Shoe Rack", 25, manufacturer="Homely", categories=["Furniture"], type="Home"),
        make_product("x2", "Desk Lamp", 15, manufacturer="Homely", categories=["Lighting"], type="Home"),
    ]


@pytest.fixture
def fake_es(shoe_catalog, monkeypatch) -> FakeElasticsearch:
    es = FakeElasticsearch(shoe_catalog)
    monkeypatch.setattr(search.helpers, "scan", es.scan)
    return es


@pytest.fixture(autouse=True)
def fresh_cache(monkeypatch) -> cache.LocalResultCache:
    backend = cache.LocalResultCache(ttl=300)
    monkeypatch.setattr(cache, "_cache", backend)
    return backend
