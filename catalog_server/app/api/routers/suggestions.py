from fastapi import APIRouter, Depends, Query
from catalog_server.app.api.deps import get_search_service, SearchService
from catalog_server.app.models.schemas import ApiResponse
from catalog_server.app.platform.config import settings
import logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/suggestions", tags=["suggestions"])

@router.get(
    "/complete",
    summary="자동완성 제안",
    description=(
        "입력 접두어로 상품명(Product), 브랜드(Brand), 카테고리(Category) 제안을 반환합니다. "
        "상품명 일치가 브랜드/카테고리 일치보다 우선하며, 대소문자 구분 없이 중복을 제거합니다."
    ),
    operation_id="completeSuggestions",
    response_model=ApiResponse,
    responses={
        400: {"description": "query 누락 또는 size 범위 오류"},
        500: {"description": "검색 엔진 오류"},
    },
)
def complete(
    query: str | None = Query(None, description="입력 접두어"),
    size: int = Query(settings.SUGGEST_DEFAULT_SIZE, description="최대 제안 개수"),
    svc: SearchService = Depends(get_search_service),
):
    logger.info(f"SuggestionRequest: query={query} size={size}")
    suggestions = svc.suggest(query or "", size)
    return ApiResponse(
        success=True,
        message="자동완성 제안 성공",
        data={
            "query": query,
            "suggestions": [s.model_dump(mode="json") for s in suggestions],
            "total": len(suggestions),
        },
    )
