"""Pydantic models for request/response payloads."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import settings

logger = logging.getLogger(__name__)


class SortField(str, Enum):
    NATURAL = "natural"
    SALE_PRICE = "salePrice"
    BEST_SELLING_RANK = "bestSellingRank"
    CUSTOMER_REVIEW_COUNT = "customerReviewCount"


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


def _check_limit(value: int) -> int:
    if value > settings.max_page_size:
        raise ValueError(f"limit must not exceed {settings.max_page_size}")
    return value


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    object_id: str = Field("", alias="objectID")
    name: str = ""
    short_description: str = Field("", alias="shortDescription")
    best_selling_rank: int = Field(0, alias="bestSellingRank")
    thumbnail_image: str = Field("", alias="thumbnailImage")
    sale_price: float = Field(0.0, alias="salePrice")
    manufacturer: str = ""
    url: str = ""
    type: str = ""
    image: Optional[str] = None
    customer_review_count: Optional[int] = Field(None, alias="customerReviewCount")
    shipping: str = ""
    sale_price_range: str = Field("", alias="salePrice_range")
    categories: list[str] = Field(default_factory=list)
    score: Optional[float] = None

    @classmethod
    def from_hit(cls, hit: dict[str, Any]) -> "Product":
        source = dict(hit.get("_source") or {})
        source["_id"] = str(hit.get("_id") or source.get("objectID") or "")
        source["score"] = hit.get("_score")
        source["categories"] = source.get("categories") or []
        return cls.model_validate(source)


class FilterOptions(BaseModel):
    """Facet selections. Empty lists impose no constraint."""

    categories: list[str] = Field(default_factory=list)
    manufacturers: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    price_ranges: list[str] = Field(default_factory=list)

    @field_validator("categories", "manufacturers", "types", "price_ranges", mode="before")
    @classmethod
    def _drop_blank(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (list, tuple, set)):
            return [item for item in value if item is not None and str(item).strip()]
        return value

    def is_empty(self) -> bool:
        return not (self.categories or self.manufacturers or self.types or self.price_ranges)


class SortSpec(BaseModel):
    field: SortField = SortField.NATURAL
    order: SortOrder = SortOrder.ASC

    @field_validator("field", mode="before")
    @classmethod
    def _unknown_is_natural(cls, value: Any) -> Any:
        if value is None or isinstance(value, SortField):
            return value or SortField.NATURAL
        try:
            return SortField(value)
        except ValueError:
            logger.warning("Unknown sort field %r; using natural order", value)
            return SortField.NATURAL

    @property
    def descending(self) -> bool:
        return self.order == SortOrder.DESC


class SearchRequest(BaseModel):
    term: str
    skip: int = Field(0, ge=0)
    limit: int = Field(10, ge=1)
    filters: FilterOptions = Field(default_factory=FilterOptions)
    sort: SortSpec = Field(default_factory=SortSpec)

    @field_validator("term")
    @classmethod
    def _term_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("term must not be empty")
        return value

    @field_validator("limit")
    @classmethod
    def _limit_bounded(cls, value: int) -> int:
        return _check_limit(value)

    @field_validator("filters", mode="before")
    @classmethod
    def _default_filters(cls, value: Any) -> Any:
        return FilterOptions() if value is None else value

    @field_validator("sort", mode="before")
    @classmethod
    def _default_sort(cls, value: Any) -> Any:
        return SortSpec() if value is None else value


class ProductListRequest(BaseModel):
    skip: int = Field(0, ge=0)
    limit: int = Field(20, ge=1)

    @field_validator("limit")
    @classmethod
    def _limit_bounded(cls, value: int) -> int:
        return _check_limit(value)


class ProductPage(BaseModel):
    products: list[Product]
    result_count: int


class FacetOptions(BaseModel):
    unique_categories: list[str] = Field(default_factory=list)
    unique_manufacturers: list[str] = Field(default_factory=list)
    price_ranges: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)


class SearchResult(BaseModel):
    products: list[Product]
    result_count: int
    facets: FacetOptions
