"""Facet aggregation over a match set."""

from storefront.facets import aggregate_facets


def test_facets_are_deduplicated_and_categories_flattened():
    docs = [
        {"categories": ["Footwear", "Sports"], "manufacturer": "Acme", "type": "HardGood", "salePrice_range": "1 - 50"},
        {"categories": ["Footwear"], "manufacturer": "Stride", "type": "HardGood", "salePrice_range": "50 - 100"},
        {"categories": ["Sports"], "manufacturer": "Acme", "type": "Sport", "salePrice_range": "1 - 50"},
    ]

    facets = aggregate_facets(docs)

    assert facets.unique_categories == ["Footwear", "Sports"]
    assert facets.unique_manufacturers == ["Acme", "Stride"]
    assert facets.types == ["HardGood", "Sport"]
    assert facets.price_ranges == ["1 - 50", "50 - 100"]


def test_empty_and_missing_values_are_not_facet_options():
    docs = [
        {"categories": [], "manufacturer": "", "type": None},
        {"categories": ["", "Audio"], "salePrice_range": "  "},
        {"categories": None, "manufacturer": "Sony"},
    ]

    facets = aggregate_facets(docs)

    assert facets.unique_categories == ["Audio"]
    assert facets.unique_manufacturers == ["Sony"]
    assert facets.types == []
    assert facets.price_ranges == []


def test_single_string_category_is_one_option():
    facets = aggregate_facets([{"categories": "Cameras"}])

    assert facets.unique_categories == ["Cameras"]


def test_empty_match_set_gives_empty_facets():
    facets = aggregate_facets([])

    assert facets.model_dump() == {
        "unique_categories": [],
        "unique_manufacturers": [],
        "price_ranges": [],
        "types": [],
    }
