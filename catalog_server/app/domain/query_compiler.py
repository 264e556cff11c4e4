"""
검색 요청(Query Model)을 엔진 쿼리 바디(OpenSearch DSL)로 변환한다.

- 부수효과가 없는 순수 변환이며 네트워크 호출 없이 구조만으로 테스트한다.
- 모든 쿼리는 is_active=true 필터를 가장 먼저 포함한다.
- 가격 구간 집계 경계는 설정값으로 주입된다.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from catalog_server.app.domain.models import (
    FacetDimension,
    FacetedSearchQuery,
    SearchQuery,
    SortMode,
)

PriceRange = Tuple[Optional[float], Optional[float]]

ACTIVE_FIELD = "is_active"
TEXT_FIELDS = ["title^2", "description"]


def _normalize_filter_key(key: str) -> str:
    return key.strip().lower().replace("_", "")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class QueryCompiler:

    def __init__(
        self,
        price_ranges: Sequence[PriceRange],
        category_facet_size: int = 20,
        brand_facet_size: int = 15,
        overfetch_factor: int = 3,
    ) -> None:
        """
        Args:
            price_ranges: 가격 구간 경계 목록 [(from, to), ...], None은 열린 구간
            category_facet_size: category 패싯 기본 버킷 수
            brand_facet_size: brand 패싯 기본 버킷 수
            overfetch_factor: 자동완성 후보 과다 조회 배수
        """
        self.price_ranges = list(price_ranges)
        self.category_facet_size = category_facet_size
        self.brand_facet_size = brand_facet_size
        self.overfetch_factor = overfetch_factor

    # ================= public API =================

    def compile_search(self, query: SearchQuery) -> Dict[str, Any]:
        """
        필터/정렬/페이지네이션이 적용된 검색 쿼리 바디를 구성한다.

        Args:
            query (SearchQuery): 검증이 끝난 검색 요청(page, page_size >= 1)
        Returns:
            Dict[str, Any]: 검색 쿼리 바디
        """
        return {
            "query": {
                "bool": {
                    "must": [self._text_clause(query)],
                    "filter": self._filter_clauses(query.filters),
                }
            },
            "sort": self._sort_clauses(query.sort_mode),
            "from": (query.page - 1) * query.page_size,
            "size": query.page_size,
            "track_total_hits": True,
            # 가격 정렬이어도 텍스트 검색이면 점수를 계산
            "track_scores": query.has_text,
        }

    def compile_faceted(self, query: FacetedSearchQuery) -> Dict[str, Any]:
        """
        검색 쿼리 바디에 category/brand/price_range 집계를 추가한다.

        Args:
            query (FacetedSearchQuery): 패싯 검색 요청
        Returns:
            Dict[str, Any]: 집계가 포함된 검색 쿼리 바디
        """
        body = self.compile_search(query)
        aggs: Dict[str, Any] = {}
        for dimension in query.facets:
            size = query.facet_sizes.get(dimension)
            if dimension is FacetDimension.category:
                aggs[dimension.aggregation_name] = self._terms_agg(
                    "category", size or self.category_facet_size)
            elif dimension is FacetDimension.brand:
                aggs[dimension.aggregation_name] = self._terms_agg(
                    "brand", size or self.brand_facet_size)
            elif dimension is FacetDimension.price_range:
                aggs[dimension.aggregation_name] = self._price_range_agg()
        body["aggs"] = aggs
        return body

    def compile_suggest(self, prefix: str, size: int) -> Dict[str, Any]:
        """
        title(3) > brand(2) > category(1) 가중치의 접두어 검색 쿼리를 구성한다.
        중복 제거 후에도 충분한 후보가 남도록 size * overfetch_factor 건을 요청한다.

        Args:
            prefix (str): 입력 접두어
            size (int): 최종 제안 개수
        Returns:
            Dict[str, Any]: 검색 쿼리 바디
        """
        return {
            "size": size * self.overfetch_factor,
            "query": {
                "bool": {
                    "filter": [self._active_clause()],
                    "should": [
                        self._prefix_clause("title.keyword", prefix, 3),
                        self._prefix_clause("brand", prefix, 2),
                        self._prefix_clause("category", prefix, 1),
                    ],
                    "minimum_should_match": 1,
                }
            },
            "sort": [{"_score": {"order": "desc"}}],
        }

    def compile_listing(self, category: str | None = None, size: int = 1000) -> Dict[str, Any]:
        """활성 상품 목록(선택적으로 카테고리 한정)을 id 순으로 조회하는 쿼리."""
        filters: List[Dict[str, Any]] = [self._active_clause()]
        if not _is_blank(category):
            filters.append({"term": {"category": category}})
        return {
            "size": size,
            "query": {"bool": {"must": [{"match_all": {}}], "filter": filters}},
            "sort": [{"id": {"order": "asc"}}],
        }

    def compile_stats(self) -> Dict[str, Any]:
        """활성/삭제 건수, 카테고리/브랜드 분포, 가격 통계 집계 쿼리."""
        return {
            "size": 0,
            "query": {"match_all": {}},
            "aggs": {
                "active_products": {
                    "filter": self._active_clause(),
                    "aggs": {
                        "categories": {"terms": {"field": "category"}},
                        "brands": {"terms": {"field": "brand"}},
                        "price_stats": {"stats": {"field": "price"}},
                    },
                },
                "deleted_products": {
                    "filter": {"term": {ACTIVE_FIELD: False}},
                },
            },
        }

    # ================= internal helpers =================

    def _active_clause(self) -> Dict[str, Any]:
        return {"term": {ACTIVE_FIELD: True}}

    def _text_clause(self, query: SearchQuery) -> Dict[str, Any]:
        if not query.has_text:
            return {"match_all": {}}
        return {
            "multi_match": {
                "query": query.text.strip(),
                "fields": list(TEXT_FIELDS),
                "type": "best_fields",
                "fuzziness": "AUTO",
            }
        }

    def _filter_clauses(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        활성 필터를 먼저 두고, 인식 가능한 사용자 필터를 뒤에 붙인다.
        min/max 가격은 하나의 range 절로 합친다(양 끝 포함).
        """
        clauses: List[Dict[str, Any]] = [self._active_clause()]
        normalized = {_normalize_filter_key(k): v for k, v in (filters or {}).items()}

        for field in ("category", "brand"):
            value = normalized.get(field)
            if not _is_blank(value):
                clauses.append({"term": {field: str(value).strip()}})

        price_range: Dict[str, float] = {}
        min_price = _to_number(normalized.get("minprice"))
        max_price = _to_number(normalized.get("maxprice"))
        if min_price is not None:
            price_range["gte"] = min_price
        if max_price is not None:
            price_range["lte"] = max_price
        if price_range:
            clauses.append({"range": {"price": price_range}})
        return clauses

    def _sort_clauses(self, mode: SortMode) -> List[Dict[str, Any]]:
        if mode is SortMode.price_asc:
            primary = {"price": {"order": "asc"}}
        elif mode is SortMode.price_desc:
            primary = {"price": {"order": "desc"}}
        else:
            primary = {"_score": {"order": "desc"}}
        # 동점 시 페이지 간 순서 고정
        return [primary, {"id": {"order": "asc"}}]

    def _terms_agg(self, field: str, size: int) -> Dict[str, Any]:
        return {"terms": {"field": field, "size": size, "order": {"_count": "desc"}}}

    def _price_range_agg(self) -> Dict[str, Any]:
        ranges = []
        for lower, upper in self.price_ranges:
            r: Dict[str, float] = {}
            if lower is not None:
                r["from"] = lower
            if upper is not None:
                r["to"] = upper
            ranges.append(r)
        return {"range": {"field": "price", "ranges": ranges}}

    def _prefix_clause(self, field: str, prefix: str, boost: float) -> Dict[str, Any]:
        return {
            "prefix": {
                field: {
                    "value": prefix,
                    "boost": boost,
                    "case_insensitive": True,
                }
            }
        }
