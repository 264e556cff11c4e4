"""
엔진 응답(EngineResponse)을 소비자용 결과 모델로 가공한다.

엔진 호출이 실패하면 이 모듈은 호출되지 않는다(호출자가 SearchEngineFailure 처리).
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List

from catalog_server.app.domain.models import (
    CatalogStats,
    EngineResponse,
    FacetBucket,
    FacetDimension,
    FacetedSearchQuery,
    FacetedSearchResult,
    PriceStats,
    Product,
    ScoredProduct,
    SearchQuery,
    SearchResult,
)


def total_pages(total: int, page_size: int) -> int:
    # page_size <= 0 은 상위에서 검증 오류로 처리된다
    return math.ceil(total / page_size) if total else 0


def _score_index(response: EngineResponse) -> Dict[str, float | None]:
    return {hit.id: hit.score for hit in response.hits}


def _scored_products(response: EngineResponse, with_score: bool) -> List[ScoredProduct]:
    """documents 순서를 유지하고, 점수는 hits에서 id로 찾아 붙인다."""
    scores = _score_index(response) if with_score else {}
    products = []
    for doc in response.documents:
        score = scores.get(str(doc.get("id"))) if with_score else None
        products.append(ScoredProduct.model_validate({**doc, "score": score}))
    return products


def shape_search_result(response: EngineResponse, query: SearchQuery) -> SearchResult:
    """
    Args:
        response: 엔진 응답
        query: 원 검색 요청(페이지 정보, 텍스트 유무)
    Returns:
        SearchResult: 페이지 결과(결과 없음도 빈 결과로 반환)
    """
    return SearchResult(
        total=response.total,
        page=query.page,
        page_size=query.page_size,
        total_pages=total_pages(response.total, query.page_size),
        products=_scored_products(response, with_score=query.has_text),
    )


def _terms_buckets(agg: Dict[str, Any]) -> List[FacetBucket]:
    return [
        FacetBucket(key=str(b.get("key")), count=int(b.get("doc_count", 0)))
        for b in agg.get("buckets", [])
    ]


def _range_buckets(agg: Dict[str, Any]) -> List[FacetBucket]:
    buckets = agg.get("buckets", [])
    # keyed 응답(dict)도 허용
    if isinstance(buckets, dict):
        buckets = [{"key": k, **v} for k, v in buckets.items()]
    return [
        FacetBucket(
            key=str(b.get("key")),
            count=int(b.get("doc_count", 0)),
            lower=b.get("from"),
            upper=b.get("to"),
        )
        for b in buckets
    ]


def shape_facets(
    aggregations: Dict[str, Any],
    dimensions: Iterable[FacetDimension],
) -> Dict[str, List[FacetBucket]]:
    """
    요청한 차원의 집계 버킷을 FacetBucket 목록으로 변환한다.
    응답에 해당 집계가 없으면 빈 목록.
    """
    facets: Dict[str, List[FacetBucket]] = {}
    for dimension in dimensions:
        name = dimension.aggregation_name
        agg = aggregations.get(name) or {}
        if dimension is FacetDimension.price_range:
            facets[name] = _range_buckets(agg)
        else:
            facets[name] = _terms_buckets(agg)
    return facets


def shape_faceted_result(response: EngineResponse, query: FacetedSearchQuery) -> FacetedSearchResult:
    base = shape_search_result(response, query)
    return FacetedSearchResult(
        **base.model_dump(),
        facets=shape_facets(response.aggregations, query.facets),
    )


def shape_products(response: EngineResponse) -> List[Product]:
    return [Product.model_validate(doc) for doc in response.documents]


def shape_stats(response: EngineResponse) -> CatalogStats:
    aggs = response.aggregations
    active = aggs.get("active_products") or {}
    deleted = aggs.get("deleted_products") or {}
    price = active.get("price_stats") or {}

    price_range = None
    if price.get("count"):
        price_range = PriceStats(
            min=price["min"], max=price["max"], average=price["avg"])

    return CatalogStats(
        total_products=int(active.get("doc_count", 0)),
        total_deleted=int(deleted.get("doc_count", 0)),
        categories=_terms_buckets(active.get("categories") or {}),
        brands=_terms_buckets(active.get("brands") or {}),
        price_range=price_range,
    )
