from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi import status
from catalog_server.app.platform.logging import request_id_ctx
from catalog_server.app.platform import exceptions as domainex
import logging

logger = logging.getLogger(__name__)

# 도메인 예외 → (HTTP 상태, 오류 코드). 위에서부터 먼저 일치하는 항목을 사용
DOMAIN_ERROR_MAP = (
    (domainex.ResourceNotFound, status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    (domainex.InvalidInput, status.HTTP_400_BAD_REQUEST, "INVALID_INPUT"),
    (domainex.SearchEngineFailure, status.HTTP_500_INTERNAL_SERVER_ERROR, "SEARCH_ENGINE_FAILURE"),
)


def error_envelope(message, code="BAD_REQUEST", details=None, trace_id=None):
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details},
        "trace_id": trace_id,
    }


def _error_response(http_status: int, message, code: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=http_status,
        content=error_envelope(message, code=code, details=details, trace_id=request_id_ctx.get()),
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    # 4xx, 5xx 에러
    return _error_response(exc.status_code, exc.detail, f"HTTP_{exc.status_code}")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # 요청 파라미터 검증 실패는 엔진 호출 전에 400으로 반환
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "Invalid request parameters",
        "VALIDATION_ERROR",
        details=jsonable_encoder(exc.errors()),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception path=%s", request.url.path)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", "INTERNAL_ERROR")


def _domain_details(exc: domainex.DomainError):
    if isinstance(exc, domainex.ResourceNotFound):
        return {"resource": exc.resource}
    if isinstance(exc, domainex.SearchEngineFailure):
        return {"operation": exc.operation}
    return None


async def domain_exception_handler(request: Request, exc: domainex.DomainError):
    """
    도메인/유즈케이스 예외를 HTTP로 매핑.
    검색 엔진 실패는 빈 결과와 구분되도록 500으로 응답한다.
    """
    http_status, code = status.HTTP_400_BAD_REQUEST, "SERVICE_ERROR"
    for exc_type, mapped_status, mapped_code in DOMAIN_ERROR_MAP:
        if isinstance(exc, exc_type):
            http_status, code = mapped_status, mapped_code
            break

    log = logger.error if http_status >= 500 else logger.warning
    log("Domain error: %s (%s) path=%s", exc, code, request.url.path)
    return _error_response(http_status, str(exc), code, details=_domain_details(exc))
