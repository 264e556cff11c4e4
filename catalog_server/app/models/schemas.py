from pydantic import BaseModel, Field, AliasChoices
from typing import Any, Dict, List

from catalog_server.app.domain.models import (
    FacetDimension,
    FacetedSearchQuery,
    ProductCreate,
    SearchQuery,
)
from catalog_server.app.platform.config import settings
from catalog_server.app.platform.logging import request_id_ctx


class ApiResponse(BaseModel):
    """
    공통 응답 봉투
    """
    success: bool = Field(..., description="성공 여부")
    message: str = Field(..., description="결과 메시지")
    data: Any = Field(None, description="결과 데이터. 내부 구조는 작업 타입에 따라 상이")
    trace_id: str | None = Field(
        default_factory=lambda: request_id_ctx.get(), description="요청 추적 ID(X-Request-ID)")


class SearchFilters(BaseModel):
    category: str | None = Field(None, description="카테고리(정확 매칭)")
    brand: str | None = Field(None, description="브랜드(정확 매칭)")
    min_price: float | None = Field(
        None, ge=0, validation_alias=AliasChoices("min_price", "minPrice"), description="최소 가격(포함)")
    max_price: float | None = Field(
        None, ge=0, validation_alias=AliasChoices("max_price", "maxPrice"), description="최대 가격(포함)")

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class SearchRequest(BaseModel):
    query: str | None = Field(None, description="검색 쿼리")
    filters: SearchFilters = Field(default_factory=SearchFilters)
    sort: str = Field("relevance", description="relevance | price_asc | price_desc")
    page: int = Field(1, ge=1, description="페이지(1부터)")
    size: int = Field(settings.SEARCH_DEFAULT_PAGE_SIZE, ge=1, description="페이지 크기")

    def to_query(self) -> SearchQuery:
        return SearchQuery(
            text=self.query,
            filters=self.filters.as_dict(),
            sort=self.sort,
            page=self.page,
            page_size=self.size,
        )


class FacetedSearchRequest(SearchRequest):
    facets: List[FacetDimension] = Field(
        default_factory=lambda: list(FacetDimension), description="category | brand | price_range")
    facet_sizes: Dict[FacetDimension, int] = Field(
        default_factory=dict, description="차원별 최대 버킷 수")

    def to_query(self) -> FacetedSearchQuery:
        return FacetedSearchQuery(
            **super().to_query().model_dump(),
            facets=self.facets,
            facet_sizes=self.facet_sizes,
        )


class BulkCreateRequest(BaseModel):
    products: List[ProductCreate] = Field(..., min_length=1, max_length=100)
