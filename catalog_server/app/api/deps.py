from __future__ import annotations

from fastapi import Depends, FastAPI, Request
from opensearchpy import OpenSearch

from catalog_server.app.domain.ports import SearchEnginePort, IdAllocatorPort
from catalog_server.app.domain.query_compiler import QueryCompiler
from catalog_server.app.domain.services.search_service import SearchService
from catalog_server.app.domain.services.catalog_service import CatalogService
from catalog_server.app.adapters.searchers.opensearch_client import create_client
from catalog_server.app.adapters.searchers.opensearch_engine import OpenSearchSearchEngine
from catalog_server.app.adapters.searchers.memory_engine import InMemorySearchEngine
from catalog_server.app.adapters.allocators.opensearch_sequence import OpenSearchSequenceAllocator
from catalog_server.app.adapters.allocators.memory_sequence import InMemoryIdAllocator
from catalog_server.app.platform.config import settings


# ---- 엔진 어댑터 ----
def init_search_backend(app: FastAPI) -> None:
    """
    SEARCH_ENGINE 설정에 맞는 엔진 어댑터와 식별자 발급기를 한 번만 만들어 app.state에 둔다.
    - opensearch: OpenSearch 클라이언트 공유, 카운터 문서 기반 발급기
    - memory: 프로세스 내 저장소/카운터(단일 인스턴스 전용)
    """
    if settings.SEARCH_ENGINE == "memory":
        app.state.search_engine = InMemorySearchEngine()
        app.state.id_allocator = InMemoryIdAllocator()
        return

    client: OpenSearch | None = getattr(app.state, "opensearch", None)
    if client is None:
        client = create_client(settings)
        app.state.opensearch = client
    app.state.search_engine = OpenSearchSearchEngine(client, settings.OPENSEARCH_INDEX)
    app.state.id_allocator = OpenSearchSequenceAllocator(client, settings.OPENSEARCH_SEQUENCE_INDEX)


def get_search_engine(request: Request) -> SearchEnginePort:
    """
    앱 시작 시 lifespan에서 만들어 둔 엔진 어댑터를 꺼낸다.
    없으면(테스트 등) 즉석 생성.
    """
    if getattr(request.app.state, "search_engine", None) is None:
        init_search_backend(request.app)
    return request.app.state.search_engine


def get_id_allocator(request: Request) -> IdAllocatorPort:
    if getattr(request.app.state, "id_allocator", None) is None:
        init_search_backend(request.app)
    return request.app.state.id_allocator


def get_query_compiler() -> QueryCompiler:
    return QueryCompiler(
        price_ranges=settings.PRICE_RANGES,
        category_facet_size=settings.FACET_CATEGORY_SIZE,
        brand_facet_size=settings.FACET_BRAND_SIZE,
        overfetch_factor=settings.SUGGEST_OVERFETCH_FACTOR,
    )


# ---- 서비스 ----
def get_search_service(
    engine: SearchEnginePort = Depends(get_search_engine),
    compiler: QueryCompiler = Depends(get_query_compiler),
) -> SearchService:
    """
    FastAPI DI에서 엔진 어댑터와 QueryCompiler를 받아 SearchService를 생성해 주입한다.
    """
    return SearchService(
        engine,
        compiler,
        max_page_size=settings.SEARCH_MAX_PAGE_SIZE,
        max_suggestions=settings.SUGGEST_MAX_SIZE,
    )


def get_catalog_service(
    engine: SearchEnginePort = Depends(get_search_engine),
    allocator: IdAllocatorPort = Depends(get_id_allocator),
    compiler: QueryCompiler = Depends(get_query_compiler),
) -> CatalogService:
    """
    FastAPI DI에서 엔진 어댑터/식별자 발급기를 받아 CatalogService를 생성해 주입한다.
    """
    return CatalogService(
        engine,
        allocator,
        compiler,
        list_limit=settings.CATALOG_LIST_LIMIT,
        category_limit=settings.CATEGORY_LIST_LIMIT,
    )
