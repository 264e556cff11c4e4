# catalog_server/app/domain/services/search_service.py
"""
SearchService
==============

상품 검색 유스케이스 오케스트레이터.

Flow:
    SearchQuery → QueryCompiler → SearchEnginePort → result_shaper / suggestions

- 도메인은 **Port(인터페이스)** 에만 의존합니다. (DIP)
- 구현체는 adapters 레이어에서 주입(의존성 주입; DI)합니다.
- 요청 검증 실패는 엔진 호출 없이 InvalidInput으로 즉시 반환합니다.
- 엔진 실패(SearchEngineFailure)는 재시도하지 않고 그대로 전파합니다.

예시:
    svc = SearchService(engine, compiler, max_page_size=100)
    result = svc.search(SearchQuery(text="laptop", page=1, page_size=10))
"""

from __future__ import annotations

import logging
from typing import List

from catalog_server.app.domain.ports import SearchEnginePort
from catalog_server.app.domain.query_compiler import QueryCompiler
from catalog_server.app.domain.result_shaper import (
    shape_search_result,
    shape_faceted_result,
)
from catalog_server.app.domain.suggestions import extract_suggestions
from catalog_server.app.domain.models import (
    SearchQuery,
    SearchResult,
    FacetedSearchQuery,
    FacetedSearchResult,
    Suggestion,
)
from catalog_server.app.platform.exceptions import InvalidInput

logger = logging.getLogger(__name__)

class SearchService:

    def __init__(
        self,
        engine: SearchEnginePort,
        compiler: QueryCompiler,
        max_page_size: int = 100,
        max_suggestions: int = 20) -> None:
        self._engine = engine
        self._compiler = compiler
        self._max_page_size = max_page_size
        self._max_suggestions = max_suggestions

    # ================= public API =================
    def search(self, query: SearchQuery) -> SearchResult:
        """
        필터/정렬/페이지네이션 검색을 수행하는 메서드.
        Args:
            query: SearchQuery  : 검색 요청
        Returns:
            SearchResult: 페이지 결과(점수 포함)
        """
        self._validate_paging(query)
        logger.info(
            "service.search: text=%s filters=%s sort=%s page=%s size=%s",
            query.text, query.filters, query.sort, query.page, query.page_size)
        body = self._compiler.compile_search(query)
        response = self._engine.search(body)
        return shape_search_result(response, query)

    def faceted_search(self, query: FacetedSearchQuery) -> FacetedSearchResult:
        """
        검색 결과와 함께 category/brand/price_range 패싯을 집계하는 메서드.
        Args:
            query: FacetedSearchQuery : 패싯 검색 요청
        Returns:
            FacetedSearchResult: 페이지 결과 + 패싯 버킷
        """
        self._validate_paging(query)
        for dimension, size in query.facet_sizes.items():
            if size < 1:
                raise InvalidInput(f"facet size for {dimension.value} must be >= 1")
        logger.info(
            "service.faceted_search: text=%s filters=%s facets=%s",
            query.text, query.filters, [f.value for f in query.facets])
        body = self._compiler.compile_faceted(query)
        response = self._engine.search_with_facets(body)
        return shape_faceted_result(response, query)

    def suggest(self, prefix: str, size: int = 5) -> List[Suggestion]:
        """
        접두어 기반 자동완성 제안을 반환하는 메서드.
        Args:
            prefix: str : 입력 접두어
            size: int   : 최대 제안 개수
        Returns:
            List[Suggestion]: 중복 제거된 제안 목록
        """
        if not prefix or not prefix.strip():
            raise InvalidInput("query parameter is required")
        if size < 1 or size > self._max_suggestions:
            raise InvalidInput(f"size must be between 1 and {self._max_suggestions}")
        logger.info("service.suggest: prefix=%s size=%s", prefix, size)
        body = self._compiler.compile_suggest(prefix.strip(), size)
        response = self._engine.search(body)
        return extract_suggestions(response.documents, prefix, size)

    #================= internal helpers =================
    def _validate_paging(self, query: SearchQuery) -> None:
        if query.page < 1:
            raise InvalidInput("page must be >= 1")
        if query.page_size < 1 or query.page_size > self._max_page_size:
            raise InvalidInput(f"page_size must be between 1 and {self._max_page_size}")
