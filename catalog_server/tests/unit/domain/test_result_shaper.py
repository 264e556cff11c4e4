import pytest

from catalog_server.app.domain.models import (
    EngineHit,
    EngineResponse,
    FacetDimension,
    FacetedSearchQuery,
    SearchQuery,
)
from catalog_server.app.domain.result_shaper import (
    shape_facets,
    shape_faceted_result,
    shape_search_result,
    shape_stats,
    total_pages,
)


def _doc(i, price=10.0, **kw):
    return {
        "id": i, "title": f"Product {i}", "description": "desc", "category": "Electronics",
        "brand": "TechBrand", "price": price, "is_active": True, **kw,
    }


@pytest.mark.parametrize("total,size,expected", [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 5, 5)])
def test_total_pages(total, size, expected):
    assert total_pages(total, size) == expected


def test_empty_response_is_well_formed():
    res = shape_search_result(EngineResponse(), SearchQuery(text="gaming"))
    assert res.total == 0
    assert res.products == []
    assert res.total_pages == 0


def test_scores_are_correlated_by_id_not_position():
    """hits 순서가 documents 순서와 달라도 id로 점수를 연결한다"""
    response = EngineResponse(
        total=2,
        documents=[_doc(1), _doc(2)],
        hits=[EngineHit(id="2", score=0.5), EngineHit(id="1", score=2.0)],
    )
    res = shape_search_result(response, SearchQuery(text="product"))

    assert [p.id for p in res.products] == [1, 2]
    assert [p.score for p in res.products] == [2.0, 0.5]


def test_scores_omitted_without_text():
    response = EngineResponse(total=1, documents=[_doc(1)], hits=[EngineHit(id="1", score=1.0)])
    res = shape_search_result(response, SearchQuery())
    assert res.products[0].score is None


def test_price_range_buckets_keep_boundaries():
    aggs = {
        "categories": {"buckets": [{"key": "Electronics", "doc_count": 2}]},
        "price_ranges": {"buckets": [
            {"key": "*-50.0", "to": 50.0, "doc_count": 0},
            {"key": "1000.0-*", "from": 1000.0, "doc_count": 1},
        ]},
    }
    facets = shape_facets(aggs, [FacetDimension.category, FacetDimension.brand, FacetDimension.price_range])

    assert [(b.key, b.count) for b in facets["categories"]] == [("Electronics", 2)]
    assert facets["brands"] == []
    first, last = facets["price_ranges"]
    assert (first.lower, first.upper) == (None, 50.0)
    assert (last.lower, last.upper, last.count) == (1000.0, None, 1)


def test_keyed_range_buckets_are_accepted():
    aggs = {"price_ranges": {"buckets": {"50.0-100.0": {"from": 50.0, "to": 100.0, "doc_count": 3}}}}
    bucket = shape_facets(aggs, [FacetDimension.price_range])["price_ranges"][0]
    assert bucket.key == "50.0-100.0"
    assert bucket.count == 3


def test_faceted_result_includes_page_and_facets():
    response = EngineResponse(
        total=1, documents=[_doc(1)], hits=[EngineHit(id="1")],
        aggregations={"brands": {"buckets": [{"key": "TechBrand", "doc_count": 1}]}},
    )
    res = shape_faceted_result(response, FacetedSearchQuery(facets=[FacetDimension.brand]))
    assert res.total == 1
    assert list(res.facets) == ["brands"]


def test_shape_stats():
    response = EngineResponse(aggregations={
        "active_products": {
            "doc_count": 2,
            "categories": {"buckets": [{"key": "Electronics", "doc_count": 2}]},
            "brands": {"buckets": [{"key": "A", "doc_count": 1}, {"key": "B", "doc_count": 1}]},
            "price_stats": {"count": 2, "min": 10.0, "max": 30.0, "avg": 20.0},
        },
        "deleted_products": {"doc_count": 1},
    })
    stats = shape_stats(response)
    assert stats.total_products == 2
    assert stats.total_deleted == 1
    assert stats.price_range.average == 20.0
    assert len(stats.brands) == 2


def test_shape_stats_empty_catalog():
    stats = shape_stats(EngineResponse())
    assert stats.total_products == 0
    assert stats.price_range is None
