import pytest

from catalog_server.app.domain.models import FacetDimension, FacetedSearchQuery, SearchQuery
from catalog_server.app.domain.query_compiler import QueryCompiler


ACTIVE = {"term": {"is_active": True}}


def test_empty_query_is_match_all_active_only(compiler):
    body = compiler.compile_search(SearchQuery())

    assert body["query"]["bool"]["must"] == [{"match_all": {}}]
    assert body["query"]["bool"]["filter"] == [ACTIVE]
    assert body["from"] == 0
    assert body["size"] == 10


def test_text_query_uses_boosted_fuzzy_multi_match(compiler):
    body = compiler.compile_search(SearchQuery(text="  gaming laptop "))
    mm = body["query"]["bool"]["must"][0]["multi_match"]

    assert mm["query"] == "gaming laptop"
    assert mm["fields"] == ["title^2", "description"]
    assert mm["fuzziness"] == "AUTO"


def test_active_filter_precedes_user_filters(compiler):
    q = SearchQuery(filters={"category": "Electronics", "brand": "TechBrand"})
    filters = compiler.compile_search(q)["query"]["bool"]["filter"]

    assert filters[0] == ACTIVE
    assert {"term": {"category": "Electronics"}} in filters
    assert {"term": {"brand": "TechBrand"}} in filters


def test_price_bounds_combined_into_single_range(compiler):
    q = SearchQuery(filters={"minPrice": 50, "max_price": "100"})
    filters = compiler.compile_search(q)["query"]["bool"]["filter"]

    ranges = [f for f in filters if "range" in f]
    assert ranges == [{"range": {"price": {"gte": 50.0, "lte": 100.0}}}]


def test_one_sided_price_bound(compiler):
    filters = compiler.compile_search(SearchQuery(filters={"min_price": 10}))["query"]["bool"]["filter"]
    assert filters[-1] == {"range": {"price": {"gte": 10.0}}}


def test_blank_and_unparsable_filters_are_skipped(compiler):
    q = SearchQuery(filters={"category": "  ", "brand": None, "minPrice": "abc", "color": "red"})
    assert compiler.compile_search(q)["query"]["bool"]["filter"] == [ACTIVE]


@pytest.mark.parametrize("sort,primary", [
    ("relevance", {"_score": {"order": "desc"}}),
    ("price_asc", {"price": {"order": "asc"}}),
    ("price-descending", {"price": {"order": "desc"}}),
    ("unknown", {"_score": {"order": "desc"}}),
])
def test_sort_modes(compiler, sort, primary):
    body = compiler.compile_search(SearchQuery(sort=sort))
    assert body["sort"] == [primary, {"id": {"order": "asc"}}]


def test_pagination_offset(compiler):
    body = compiler.compile_search(SearchQuery(page=3, page_size=20))
    assert body["from"] == 40
    assert body["size"] == 20


def test_faceted_query_aggregations(compiler):
    body = compiler.compile_faceted(FacetedSearchQuery(text="mouse"))
    aggs = body["aggs"]

    assert aggs["categories"]["terms"] == {"field": "category", "size": 20, "order": {"_count": "desc"}}
    assert aggs["brands"]["terms"]["size"] == 15
    ranges = aggs["price_ranges"]["range"]["ranges"]
    assert ranges == [
        {"to": 50},
        {"from": 50, "to": 100},
        {"from": 100, "to": 250},
        {"from": 250, "to": 500},
        {"from": 500, "to": 1000},
        {"from": 1000},
    ]
    # 검색 부분은 일반 검색과 동일
    assert body["query"] == compiler.compile_search(SearchQuery(text="mouse"))["query"]


def test_faceted_query_requested_dimensions_and_sizes(compiler):
    q = FacetedSearchQuery(facets=[FacetDimension.brand], facet_sizes={FacetDimension.brand: 3})
    aggs = compiler.compile_faceted(q)["aggs"]

    assert list(aggs) == ["brands"]
    assert aggs["brands"]["terms"]["size"] == 3


def test_custom_price_ranges_are_injected():
    c = QueryCompiler(price_ranges=[(None, 10), (10, None)])
    ranges = c.compile_faceted(FacetedSearchQuery())["aggs"]["price_ranges"]["range"]["ranges"]
    assert ranges == [{"to": 10}, {"from": 10}]


def test_suggest_query_overfetches_with_field_boosts(compiler):
    body = compiler.compile_suggest("gam", 5)

    assert body["size"] == 15
    b = body["query"]["bool"]
    assert b["filter"] == [ACTIVE]
    assert b["minimum_should_match"] == 1
    boosts = {next(iter(c["prefix"])): c["prefix"][next(iter(c["prefix"]))]["boost"] for c in b["should"]}
    assert boosts == {"title.keyword": 3, "brand": 2, "category": 1}
    assert all(next(iter(c["prefix"].values()))["case_insensitive"] for c in b["should"])


def test_listing_query_by_category(compiler):
    body = compiler.compile_listing(category="Books", size=100)
    assert body["size"] == 100
    assert body["query"]["bool"]["filter"] == [ACTIVE, {"term": {"category": "Books"}}]
    assert body["sort"] == [{"id": {"order": "asc"}}]


def test_stats_query_shape(compiler):
    body = compiler.compile_stats()
    assert body["size"] == 0
    assert body["aggs"]["active_products"]["filter"] == ACTIVE
    assert body["aggs"]["deleted_products"]["filter"] == {"term": {"is_active": False}}
    assert "price_stats" in body["aggs"]["active_products"]["aggs"]


@pytest.mark.parametrize("text,expected", [("laptop", True), (None, False), ("  ", False)])
def test_track_scores_only_for_text_queries(compiler, text, expected):
    """가격 정렬에서도 텍스트 검색이면 엔진이 점수를 돌려주도록 요청"""
    body = compiler.compile_search(SearchQuery(text=text, sort="price_asc"))
    assert body["track_scores"] is expected
