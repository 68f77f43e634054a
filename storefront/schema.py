"""GraphQL schema exposing product listing and search."""
from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

import strawberry
from graphql import GraphQLError
from pydantic import ValidationError
from strawberry.types import Info

from . import models
from .config import settings
from .errors import ErrorKind, SearchError
from .search import list_products, search_products

logger = logging.getLogger(__name__)


@strawberry.enum
class SortOrder(Enum):
    ASC = "ASC"
    DESC = "DESC"


@strawberry.type
class Product:
    id: strawberry.ID = strawberry.field(name="_id")
    name: str
    short_description: str
    best_selling_rank: int
    thumbnail_image: str
    sale_price: float
    manufacturer: str
    url: str
    type: str
    image: Optional[str]
    customer_review_count: Optional[int]
    shipping: str
    sale_price_range: str = strawberry.field(name="salePrice_range")
    object_id: str = strawberry.field(name="objectID")
    categories: List[str]

    @classmethod
    def from_model(cls, product: models.Product) -> "Product":
        return cls(
            id=strawberry.ID(product.id),
            name=product.name,
            short_description=product.short_description,
            best_selling_rank=product.best_selling_rank,
            thumbnail_image=product.thumbnail_image,
            sale_price=product.sale_price,
            manufacturer=product.manufacturer,
            url=product.url,
            type=product.type,
            image=product.image,
            customer_review_count=product.customer_review_count,
            shipping=product.shipping,
            sale_price_range=product.sale_price_range,
            object_id=product.object_id,
            categories=list(product.categories),
        )


@strawberry.type
class ProductResult:
    products: List[Product]
    result_count: Optional[int]


@strawberry.type
class SearchResult:
    products: List[Optional[Product]]
    unique_categories: List[Optional[str]]
    unique_manufacturers: List[Optional[str]]
    price_ranges: List[Optional[str]]
    type: List[Optional[str]]
    result_count: Optional[int]


@strawberry.input
class FilterInput:
    categories: Optional[List[Optional[str]]] = None
    manufacturers: Optional[List[Optional[str]]] = None
    types: Optional[List[Optional[str]]] = None
    price_ranges: Optional[List[Optional[str]]] = None


@strawberry.input
class SortInput:
    field: str
    order: SortOrder


def _graphql_error(error: SearchError) -> GraphQLError:
    return GraphQLError(error.message, extensions={"code": error.kind.value})


def _validated(operation: str, model, **values):
    try:
        return model.model_validate(values)
    except ValidationError as exc:
        logger.info("%s rejected kind=%s errors=%s", operation, ErrorKind.MALFORMED_QUERY.value, exc.errors())
        raise _graphql_error(SearchError(operation, ErrorKind.MALFORMED_QUERY, exc)) from exc


@strawberry.type
class Query:
    @strawberry.field
    async def get_products(
        self, info: Info, skip: Optional[int] = 0, limit: Optional[int] = 20
    ) -> ProductResult:
        request = _validated(
            "fetch",
            models.ProductListRequest,
            skip=0 if skip is None else skip,
            limit=20 if limit is None else limit,
        )
        try:
            page = await list_products(info.context["es"], _index(info), request)
        except SearchError as exc:
            raise _graphql_error(exc) from exc
        return ProductResult(
            products=[Product.from_model(p) for p in page.products],
            result_count=page.result_count,
        )

    @strawberry.field
    async def search_products(
        self,
        info: Info,
        term: str,
        skip: Optional[int] = 0,
        limit: Optional[int] = 10,
        filters: Optional[FilterInput] = None,
        sort: Optional[SortInput] = None,
    ) -> Optional[SearchResult]:
        request = _validated(
            "search",
            models.SearchRequest,
            term=term,
            skip=0 if skip is None else skip,
            limit=10 if limit is None else limit,
            filters=strawberry.asdict(filters) if filters else None,
            sort={"field": sort.field, "order": sort.order.value} if sort else None,
        )
        try:
            result = await search_products(info.context["es"], _index(info), request)
        except SearchError as exc:
            raise _graphql_error(exc) from exc
        return SearchResult(
            products=[Product.from_model(p) for p in result.products],
            unique_categories=result.facets.unique_categories,
            unique_manufacturers=result.facets.unique_manufacturers,
            price_ranges=result.facets.price_ranges,
            type=result.facets.types,
            result_count=result.result_count,
        )


def _index(info: Info) -> str:
    return info.context.get("index") or settings.es_index


schema = strawberry.Schema(query=Query)
