from unittest.mock import MagicMock
import pytest

from catalog_server.app.domain.models import (
    EngineHit,
    EngineResponse,
    FacetDimension,
    FacetedSearchQuery,
    SearchQuery,
)
from catalog_server.app.domain.services.search_service import SearchService
from catalog_server.app.platform.exceptions import InvalidInput, SearchEngineFailure


@pytest.fixture
def engine():
    e = MagicMock()
    e.search.return_value = EngineResponse(
        total=1,
        documents=[{
            "id": 1, "title": "Gaming Laptop", "description": "Fast laptop",
            "category": "Electronics", "brand": "TechBrand", "price": 1299.99, "is_active": True,
        }],
        hits=[EngineHit(id="1", score=3.2)],
    )
    e.search_with_facets.return_value = EngineResponse(
        aggregations={"categories": {"buckets": [{"key": "Electronics", "doc_count": 1}]}})
    return e


@pytest.fixture
def svc(engine, compiler):
    return SearchService(engine, compiler, max_page_size=100, max_suggestions=20)


def test_search_compiles_and_shapes(svc, engine, compiler):
    """
    given: 텍스트 검색 요청
    when: search 호출
    then: 컴파일된 바디로 엔진을 호출하고 점수가 붙은 결과를 반환
    """
    q = SearchQuery(text="gaming")
    res = svc.search(q)

    engine.search.assert_called_once_with(compiler.compile_search(q))
    assert res.total == 1
    assert res.total_pages == 1
    assert res.products[0].score == 3.2


@pytest.mark.parametrize("page_size", [0, 101])
def test_search_rejects_page_size_without_engine_call(engine, compiler, page_size):
    svc = SearchService(engine, compiler, max_page_size=100)
    q = SearchQuery.model_construct(text=None, filters={}, sort="relevance", page=1, page_size=page_size)
    with pytest.raises(InvalidInput):
        svc.search(q)
    engine.search.assert_not_called()


def test_search_propagates_engine_failure(svc, engine):
    engine.search.side_effect = SearchEngineFailure("search", "connection refused")
    with pytest.raises(SearchEngineFailure):
        svc.search(SearchQuery(text="gaming"))


def test_faceted_search_uses_facet_call(svc, engine):
    res = svc.faceted_search(FacetedSearchQuery(facets=[FacetDimension.category]))

    engine.search_with_facets.assert_called_once()
    body = engine.search_with_facets.call_args.args[0]
    assert "categories" in body["aggs"]
    assert res.facets["categories"][0].key == "Electronics"


def test_faceted_search_rejects_non_positive_facet_size(svc, engine):
    q = FacetedSearchQuery(facet_sizes={FacetDimension.brand: 0})
    with pytest.raises(InvalidInput):
        svc.faceted_search(q)
    engine.search_with_facets.assert_not_called()


def test_suggest_overfetches_and_extracts(svc, engine):
    out = svc.suggest("gam", 2)

    body = engine.search.call_args.args[0]
    assert body["size"] == 6
    assert [s.text for s in out] == ["Gaming Laptop"]


@pytest.mark.parametrize("prefix,size", [("", 5), ("   ", 5), ("gam", 0), ("gam", 21)])
def test_suggest_validation(svc, engine, prefix, size):
    with pytest.raises(InvalidInput):
        svc.suggest(prefix, size)
    engine.search.assert_not_called()
