from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from catalog_server.app.api.deps import init_search_backend
from catalog_server.app.api.routers import (
    health,
    products,
    search,
    facets,
    suggestions,
)
from catalog_server.app.adapters.searchers.opensearch_client import close_client
from catalog_server.app.platform.config import settings
from catalog_server.app.platform.logging import setup_logging
from catalog_server.app.platform.errors import (
    http_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
    domain_exception_handler
)
from catalog_server.app.platform import exceptions as domainex
from catalog_server.app.middlewares.request_context import RequestContextMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 로깅 등 공통 준비
    setup_logging(
        log_to_file=settings.LOG_TO_FILE,
        log_dir=settings.LOG_DIR,
        as_json=settings.LOG_AS_JSON,
        level=settings.LOG_LEVEL,
    )

    # 엔진 어댑터(OpenSearch 클라이언트 포함)를 한 번만 생성해서 공유
    init_search_backend(app)
    if not app.state.search_engine.ensure_index():
        # 기동은 계속한다. 엔진 상태는 /health 에서 확인
        logger.warning("Search index is not available at startup (engine=%s)", settings.SEARCH_ENGINE)
    try:
        yield
    finally:
        try:
            close_client(getattr(app.state, "opensearch", None))
        except Exception:
            logger.exception("Failed to close OpenSearch client")

app = FastAPI(title="Catalog Search API", debug=settings.DEBUG, lifespan=lifespan)
app.include_router(health.router)
app.include_router(products.router, prefix="/api")
app.include_router(search.router, prefix="/api")
app.include_router(facets.router, prefix="/api")
app.include_router(suggestions.router, prefix="/api")

# Global Exception Filter
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(domainex.DomainError, domain_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# 요청 컨텍스트/액세스 로그 미들웨어
app.add_middleware(RequestContextMiddleware)
