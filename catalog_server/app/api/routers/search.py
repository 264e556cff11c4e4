from fastapi import APIRouter, Depends, Query
from catalog_server.app.api.deps import get_search_service, SearchService
from catalog_server.app.models.schemas import ApiResponse, SearchRequest, SearchFilters
from catalog_server.app.platform.config import settings
import logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])

@router.post(
    "",
    summary="상품 검색",
    description=(
        "텍스트 검색어와 category/brand/가격 필터로 활성 상품을 검색합니다. "
        "`sort`는 relevance(기본), price_asc, price_desc를 지원하며 "
        "알 수 없는 값은 relevance로 처리합니다."
    ),
    operation_id="searchProducts",
    status_code=200,
    response_model=ApiResponse,
    responses={
        200: {
            "description": "검색 성공",
            "content": {
                "application/json": {
                    "examples": {
                        "basic": {
                            "summary": "기본 검색 예시",
                            "value": {
                                "success": True,
                                "message": "검색 성공",
                                "data": {
                                    "total": 2,
                                    "page": 1,
                                    "page_size": 10,
                                    "total_pages": 1,
                                    "products": [
                                        {
                                            "id": 1,
                                            "title": "Gaming Laptop",
                                            "category": "Electronics",
                                            "brand": "TechBrand",
                                            "price": 1299.99,
                                            "score": 3.21
                                        }
                                    ]
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
def search(req: SearchRequest, svc: SearchService = Depends(get_search_service)):
    logger.info(f"SearchRequest: {req}")
    result = svc.search(req.to_query())
    return ApiResponse(success=True, message="검색 성공", data=result.model_dump(mode="json"))


@router.get("", summary="상품 검색(쿼리스트링)", response_model=ApiResponse)
def search_get(
    query: str | None = None,
    category: str | None = None,
    brand: str | None = None,
    min_price: float | None = Query(None, ge=0, alias="minPrice"),
    max_price: float | None = Query(None, ge=0, alias="maxPrice"),
    sort: str = "relevance",
    page: int = Query(1, ge=1),
    size: int = Query(settings.SEARCH_DEFAULT_PAGE_SIZE, ge=1),
    svc: SearchService = Depends(get_search_service),
):
    req = SearchRequest(
        query=query,
        filters=SearchFilters(category=category, brand=brand, min_price=min_price, max_price=max_price),
        sort=sort,
        page=page,
        size=size,
    )
    return search(req, svc)
