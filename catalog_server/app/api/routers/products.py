from fastapi import APIRouter, Depends, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from catalog_server.app.api.deps import get_catalog_service, CatalogService
from catalog_server.app.domain.models import ProductCreate, ProductUpdate
from catalog_server.app.models.schemas import ApiResponse, BulkCreateRequest
from catalog_server.app.platform.exceptions import ResourceNotFound
from catalog_server.app.platform.response import partial
import logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def _not_found(product_id: int) -> ResourceNotFound:
    return ResourceNotFound("product", f"Product with ID {product_id} not found")


@router.get("", summary="활성 상품 목록", response_model=ApiResponse)
def list_products(svc: CatalogService = Depends(get_catalog_service)):
    products = svc.list_active()
    return ApiResponse(
        success=True, message="상품 목록 조회 성공",
        data=[p.model_dump(mode="json") for p in products])


# 경로 충돌 방지: 고정 경로를 /{product_id} 보다 먼저 등록
@router.get("/stats", summary="카탈로그 통계", response_model=ApiResponse)
def product_stats(svc: CatalogService = Depends(get_catalog_service)):
    stats = svc.stats()
    return ApiResponse(success=True, message="통계 조회 성공", data=stats.model_dump(mode="json"))


@router.get("/category/{category}", summary="카테고리별 상품 목록", response_model=ApiResponse)
def list_by_category(category: str, svc: CatalogService = Depends(get_catalog_service)):
    products = svc.list_by_category(category)
    return ApiResponse(
        success=True, message="카테고리 상품 조회 성공",
        data=[p.model_dump(mode="json") for p in products])


@router.get(
    "/{product_id}",
    summary="상품 단건 조회",
    description="soft delete된 상품은 조회되지 않습니다(404).",
    response_model=ApiResponse,
    responses={404: {"description": "상품 없음"}},
)
def get_product(product_id: int, svc: CatalogService = Depends(get_catalog_service)):
    product = svc.get(product_id)
    if product is None:
        logger.warning("Product with ID %s not found", product_id)
        raise _not_found(product_id)
    return ApiResponse(success=True, message="상품 조회 성공", data=product.model_dump(mode="json"))


@router.post(
    "",
    summary="상품 등록",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    responses={400: {"description": "잘못된 요청 값"}, 500: {"description": "검색 엔진 오류"}},
)
def create_product(req: ProductCreate, svc: CatalogService = Depends(get_catalog_service)):
    logger.info(f"CreateProductRequest: title={req.title}")
    product = svc.create(req)
    return ApiResponse(success=True, message="상품 등록 성공", data=product.model_dump(mode="json"))


@router.post(
    "/bulk",
    summary="상품 일괄 등록",
    description=(
        "최대 100개 상품을 한 번에 등록합니다. 원자적이지 않으며 "
        "일부 실패 시 207과 함께 위치(position)별 실패 목록을 반환합니다."
    ),
    response_model=ApiResponse,
    responses={207: {"description": "일부 상품 등록 실패"}},
)
def create_products_bulk(req: BulkCreateRequest, svc: CatalogService = Depends(get_catalog_service)):
    logger.info(f"BulkCreateRequest: count={len(req.products)}")
    result = svc.create_bulk(req.products)
    data = result.model_dump(mode="json")
    if result.errors:
        return JSONResponse(
            status_code=status.HTTP_207_MULTI_STATUS,
            content=jsonable_encoder(partial(data, message=f"{result.indexed}개 상품 등록, {len(result.errors)}개 실패")),
        )
    return ApiResponse(success=True, message=f"{result.indexed}개 상품 등록 성공", data=data)


@router.put(
    "/{product_id}",
    summary="상품 부분 수정",
    response_model=ApiResponse,
    responses={404: {"description": "상품 없음"}},
)
def update_product(product_id: int, req: ProductUpdate, svc: CatalogService = Depends(get_catalog_service)):
    logger.info(f"UpdateProductRequest: id={product_id}")
    product = svc.update(product_id, req)
    if product is None:
        raise _not_found(product_id)
    return ApiResponse(success=True, message="상품 수정 성공", data=product.model_dump(mode="json"))


@router.delete(
    "/{product_id}",
    summary="상품 삭제(soft delete)",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "상품 없음"}},
)
def delete_product(product_id: int, svc: CatalogService = Depends(get_catalog_service)):
    logger.info(f"DeleteProductRequest: id={product_id}")
    if not svc.delete(product_id):
        raise _not_found(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
