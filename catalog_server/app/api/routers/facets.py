from fastapi import APIRouter, Depends, Query
from typing import List
from catalog_server.app.api.deps import get_search_service, SearchService
from catalog_server.app.domain.models import FacetDimension
from catalog_server.app.models.schemas import ApiResponse, FacetedSearchRequest, SearchFilters
from catalog_server.app.platform.config import settings
import logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/facets", tags=["facets"])

@router.post(
    "",
    summary="패싯 검색",
    description=(
        "검색 결과와 함께 category/brand 버킷(건수 내림차순)과 "
        "고정 경계 가격 구간 버킷을 반환합니다. "
        "`facet_sizes`로 차원별 최대 버킷 수를 지정할 수 있습니다(기본 category 20, brand 15)."
    ),
    operation_id="facetedSearch",
    status_code=200,
    response_model=ApiResponse,
    responses={
        200: {
            "description": "패싯 검색 성공",
            "content": {
                "application/json": {
                    "examples": {
                        "electronics": {
                            "summary": "category=Electronics 예시",
                            "value": {
                                "success": True,
                                "message": "패싯 검색 성공",
                                "data": {
                                    "total": 2,
                                    "facets": {
                                        "categories": [{"key": "Electronics", "count": 2}],
                                        "price_ranges": [
                                            {"key": "50.0-100.0", "count": 1, "lower": 50.0, "upper": 100.0},
                                            {"key": "1000.0-*", "count": 1, "lower": 1000.0, "upper": None}
                                        ]
                                    }
                                }
                            }
                        }
                    }
                }
            },
        },
        400: {"description": "잘못된 요청 값"},
        500: {"description": "검색 엔진 오류"},
    },
)
def faceted_search(req: FacetedSearchRequest, svc: SearchService = Depends(get_search_service)):
    logger.info(f"FacetedSearchRequest: {req}")
    result = svc.faceted_search(req.to_query())
    return ApiResponse(success=True, message="패싯 검색 성공", data=result.model_dump(mode="json"))


@router.get("", summary="패싯 검색(쿼리스트링)", response_model=ApiResponse)
def faceted_search_get(
    query: str | None = None,
    category: str | None = None,
    brand: str | None = None,
    min_price: float | None = Query(None, ge=0, alias="minPrice"),
    max_price: float | None = Query(None, ge=0, alias="maxPrice"),
    sort: str = "relevance",
    page: int = Query(1, ge=1),
    size: int = Query(settings.SEARCH_DEFAULT_PAGE_SIZE, ge=1),
    facets: List[FacetDimension] | None = Query(None),
    svc: SearchService = Depends(get_search_service),
):
    req = FacetedSearchRequest(
        query=query,
        filters=SearchFilters(category=category, brand=brand, min_price=min_price, max_price=max_price),
        sort=sort,
        page=page,
        size=size,
        facets=facets or list(FacetDimension),
    )
    return faceted_search(req, svc)
