"""Terminal client that reuses the in-process search logic."""
from __future__ import annotations

import argparse
import asyncio
from typing import Iterable

from pydantic import ValidationError

from storefront.config import settings
from storefront.errors import SearchError
from storefront.es_client import get_client
from storefront.models import SearchRequest, SearchResult
from storefront.search import search_products

GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


def build_request(args: argparse.Namespace) -> SearchRequest:
    return SearchRequest(
        term=args.term,
        skip=args.skip,
        limit=args.limit,
        filters={
            "categories": args.category,
            "manufacturers": args.manufacturer,
            "types": args.type,
            "price_ranges": args.price_range,
        },
        sort={"field": args.sort, "order": args.order},
    )


async def perform_query(request: SearchRequest) -> SearchResult:
    return await search_products(get_client(), settings.es_index, request)


def pretty_print_result(request: SearchRequest, result: SearchResult) -> None:
    shown_to = request.skip + len(result.products)
    color = GREEN if result.result_count else RED
    count_label = f"{color}{result.result_count}{RESET}"
    print(f"Term: {request.term} | showing {request.skip + 1}-{shown_to} of {count_label}")
    for idx, item in enumerate(result.products, start=request.skip + 1):
        print(
            f"  {idx:02d}. ${item.sale_price:>9.2f} | rank={item.best_selling_rank} | "
            f"reviews={item.customer_review_count or 0} | {item.manufacturer} | {item.name}"
        )
    facets = result.facets
    print(f"  categories:    {', '.join(facets.unique_categories) or '-'}")
    print(f"  manufacturers: {', '.join(facets.unique_manufacturers) or '-'}")
    print(f"  types:         {', '.join(facets.types) or '-'}")
    print(f"  price ranges:  {', '.join(facets.price_ranges) or '-'}")


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CLI client for the storefront search")
    parser.add_argument("term", help="Free-text search term")
    parser.add_argument("--skip", type=int, default=0)
    parser.add_argument("--limit", type=int, default=10)
    parser.add_argument("--category", action="append", default=[], help="Category filter, repeatable")
    parser.add_argument("--manufacturer", action="append", default=[], help="Manufacturer filter, repeatable")
    parser.add_argument("--type", action="append", default=[], help="Product type filter, repeatable")
    parser.add_argument("--price-range", action="append", default=[], help="Price bucket filter, repeatable")
    parser.add_argument(
        "--sort",
        default="natural",
        help="salePrice, bestSellingRank or customerReviewCount (default: natural order)",
    )
    parser.add_argument("--order", choices=["ASC", "DESC"], default="ASC")
    return parser


def main(argv: Iterable[str] | None = None) -> int:
    args = make_parser().parse_args(list(argv) if argv is not None else None)
    try:
        request = build_request(args)
    except ValidationError as exc:
        print(f"{RED}Invalid request:{RESET} {exc}")
        return 2
    try:
        result = asyncio.run(perform_query(request))
    except SearchError as exc:
        print(f"{RED}{exc.message}{RESET}")
        return 1
    pretty_print_result(request, result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
