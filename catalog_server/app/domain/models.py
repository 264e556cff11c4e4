"""
도메인 모델 정의.

- Product / ProductCreate / ProductUpdate: 카탈로그 상품과 생성/부분수정 요청
- SearchQuery / FacetedSearchQuery: 정규화된 검색 요청(Query Model)
- SearchResult / FacetedSearchResult / FacetBucket / Suggestion: 소비자용 결과
- IndexResult / BulkIndexResult / EngineResponse: 검색 엔진 포트의 결과

모든 모델은 요청 단위로 새로 만들어지는 DTO이며, 상품 원본은 검색 엔진이 소유한다.
Pydantic v2 기반 모델이라 검증/직렬화가 용이합니다.
"""

from __future__ import annotations

from enum import Enum
from typing import Any
from datetime import datetime, timezone
from pydantic import BaseModel, Field


JSONDict = dict[str, Any]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ================= 상품 =================

class Product(BaseModel):
    """
    카탈로그 상품 1건. 검색 엔진 문서 1건과 1:1로 매핑된다(_id = str(id)).
    OpenSearch 매핑:
      - id: integer
      - title: text (+ keyword 서브필드)
      - description: text
      - category / brand: keyword
      - price: float
      - attributes: object
      - created_at: date
      - is_active: boolean
    """
    id: int = Field(..., ge=1, description="상품 식별자(할당기에서 발급)")
    title: str = Field(..., description="상품명")
    description: str = Field("", description="상품 설명")
    category: str = Field(..., description="카테고리(정확 매칭/집계용)")
    brand: str = Field(..., description="브랜드(정확 매칭/집계용)")
    price: float = Field(..., ge=0, description="가격")
    attributes: dict[str, str] = Field(default_factory=dict, description="부가 속성")
    created_at: datetime = Field(default_factory=utcnow, description="생성 시각(최초 1회)")
    is_active: bool = Field(True, description="활성 여부(False = soft delete)")

    def to_document(self) -> JSONDict:
        return self.model_dump(mode="json")


class ProductCreate(BaseModel):
    """상품 생성 요청."""
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=500)
    category: str = Field(..., min_length=1, max_length=50)
    brand: str = Field(..., min_length=1, max_length=50)
    price: float = Field(..., ge=0.01, le=999999.99)
    attributes: dict[str, str] | None = None

    def to_product(self, product_id: int) -> Product:
        return Product(
            id=product_id,
            title=self.title,
            description=self.description,
            category=self.category,
            brand=self.brand,
            price=self.price,
            attributes=dict(self.attributes or {}),
        )


class ProductUpdate(BaseModel):
    """상품 부분 수정 요청. 값이 주어진 필드만 변경된다."""
    title: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = Field(None, min_length=10, max_length=500)
    category: str | None = Field(None, min_length=1, max_length=50)
    brand: str | None = Field(None, min_length=1, max_length=50)
    price: float | None = Field(None, ge=0.01, le=999999.99)
    attributes: dict[str, str] | None = None
    is_active: bool | None = None

    def changed_fields(self) -> JSONDict:
        return self.model_dump(mode="json", exclude_none=True)


# ================= Query Model =================

class SortMode(str, Enum):
    relevance = "relevance"
    price_asc = "price_asc"
    price_desc = "price_desc"

    @classmethod
    def resolve(cls, value: str | None) -> "SortMode":
        """알 수 없는 정렬 값은 relevance로 대체한다(오류 아님)."""
        if not value:
            return cls.relevance
        key = value.strip().lower().replace("-", "_")
        return _SORT_ALIASES.get(key, cls.relevance)


_SORT_ALIASES = {
    "relevance": SortMode.relevance,
    "price_asc": SortMode.price_asc,
    "price_ascending": SortMode.price_asc,
    "price_desc": SortMode.price_desc,
    "price_descending": SortMode.price_desc,
}


class FacetDimension(str, Enum):
    category = "category"
    brand = "brand"
    price_range = "price_range"

    @property
    def aggregation_name(self) -> str:
        return {
            FacetDimension.category: "categories",
            FacetDimension.brand: "brands",
            FacetDimension.price_range: "price_ranges",
        }[self]


class SearchQuery(BaseModel):
    """정규화된 검색 요청."""
    text: str | None = Field(None, description="자유 텍스트 검색어")
    filters: JSONDict = Field(
        default_factory=dict,
        description="category, brand, min_price, max_price (대소문자/밑줄 무시)",
    )
    sort: str = Field(SortMode.relevance.value, description="relevance | price_asc | price_desc")
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1)

    @property
    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())

    @property
    def sort_mode(self) -> SortMode:
        return SortMode.resolve(self.sort)


class FacetedSearchQuery(SearchQuery):
    """패싯 요청이 추가된 검색 요청."""
    facets: list[FacetDimension] = Field(
        default_factory=lambda: list(FacetDimension),
        description="집계할 패싯 차원",
    )
    facet_sizes: dict[FacetDimension, int] = Field(
        default_factory=dict, description="차원별 최대 버킷 수"
    )


# ================= 결과 =================

class ScoredProduct(Product):
    score: float | None = Field(None, description="엔진 관련도 점수(텍스트 검색일 때만)")


class SearchResult(BaseModel):
    total: int = Field(0, ge=0)
    page: int = 1
    page_size: int = 10
    total_pages: int = 0
    products: list[ScoredProduct] = Field(default_factory=list)


class FacetBucket(BaseModel):
    key: str
    count: int = Field(0, ge=0)
    lower: float | None = Field(None, description="구간 하한(포함), None이면 열린 구간")
    upper: float | None = Field(None, description="구간 상한(미포함), None이면 열린 구간")


class FacetedSearchResult(SearchResult):
    facets: dict[str, list[FacetBucket]] = Field(default_factory=dict)


class SuggestionType(str, Enum):
    product = "Product"
    brand = "Brand"
    category = "Category"


class Suggestion(BaseModel):
    text: str
    type: SuggestionType
    metadata: JSONDict = Field(default_factory=dict)


class PriceStats(BaseModel):
    min: float
    max: float
    average: float


class CatalogStats(BaseModel):
    total_products: int = 0
    total_deleted: int = 0
    categories: list[FacetBucket] = Field(default_factory=list)
    brands: list[FacetBucket] = Field(default_factory=list)
    price_range: PriceStats | None = None


# ================= 검색 엔진 포트 결과 =================

class IndexResult(BaseModel):
    """단건 색인/수정 결과."""
    success: bool
    id: str | None = None
    error: str | None = None


class BulkItemError(BaseModel):
    """벌크 색인 실패 항목(입력 순서 기준 position)."""
    position: int = Field(..., ge=0)
    id: str | None = None
    reason: str


class BulkIndexResult(BaseModel):
    """벌크 색인 결과. 일부 성공이 가능하며 실패 항목은 위치별로 보고된다."""
    success: bool
    indexed: int = Field(0, ge=0)
    errors: list[BulkItemError] = Field(default_factory=list)

    @property
    def failed_positions(self) -> set[int]:
        return {e.position for e in self.errors}


class BulkCreateResult(BaseModel):
    products: list[Product] = Field(default_factory=list)
    indexed: int = 0
    errors: list[BulkItemError] = Field(default_factory=list)


class EngineHit(BaseModel):
    id: str
    score: float | None = None


class EngineResponse(BaseModel):
    """
    엔진 응답의 중립 표현.
    documents와 hits는 별도 컬렉션이며 순서가 같다고 가정하지 않는다(id로 연결).
    """
    total: int = 0
    documents: list[JSONDict] = Field(default_factory=list)
    hits: list[EngineHit] = Field(default_factory=list)
    aggregations: JSONDict = Field(default_factory=dict)
    took: int | None = None

    @classmethod
    def from_raw(cls, raw: JSONDict) -> "EngineResponse":
        """OpenSearch 형식의 검색 응답(dict)을 변환한다."""
        hits_meta = raw.get("hits") or {}
        total = hits_meta.get("total", 0)
        if isinstance(total, dict):
            total = total.get("value", 0)
        raw_hits = hits_meta.get("hits") or []
        return cls(
            total=int(total or 0),
            documents=[h.get("_source") or {} for h in raw_hits],
            hits=[EngineHit(id=str(h.get("_id")), score=h.get("_score")) for h in raw_hits],
            aggregations=raw.get("aggregations") or {},
            took=raw.get("took"),
        )
