"""
CatalogService
==============

상품 카탈로그 CRUD 유스케이스.

- 식별자는 IdAllocatorPort에서 발급받는다(프로세스 내 카운터에 의존하지 않음).
- 수정은 부분 문서 업데이트, 삭제는 is_active=false로 처리하는 soft delete.
- soft delete된 상품은 목록/검색/단건 조회 모두에서 제외된다.
"""

from __future__ import annotations

import logging
from typing import List

from catalog_server.app.domain.ports import SearchEnginePort, IdAllocatorPort
from catalog_server.app.domain.query_compiler import QueryCompiler
from catalog_server.app.domain.result_shaper import shape_products, shape_stats
from catalog_server.app.domain.models import (
    Product,
    ProductCreate,
    ProductUpdate,
    BulkCreateResult,
    CatalogStats,
)
from catalog_server.app.platform.exceptions import InvalidInput, SearchEngineFailure

logger = logging.getLogger(__name__)


class CatalogService:
    """상품 생성/조회/수정/삭제를 수행하는 유스케이스 서비스."""

    def __init__(
        self,
        engine: SearchEnginePort,
        allocator: IdAllocatorPort,
        compiler: QueryCompiler,
        list_limit: int = 1000,
        category_limit: int = 100,
    ) -> None:
        """
        Args:
            engine: SearchEnginePort     : 상품 문서 저장소
            allocator: IdAllocatorPort   : 상품 식별자 발급기
            compiler: QueryCompiler      : 목록/통계 쿼리 생성
            list_limit: int              : 전체 목록 최대 건수
            category_limit: int          : 카테고리 목록 최대 건수
        """
        self._engine = engine
        self._allocator = allocator
        self._compiler = compiler
        self._list_limit = list_limit
        self._category_limit = category_limit

    # ================= 조회 =================

    def list_active(self) -> List[Product]:
        body = self._compiler.compile_listing(size=self._list_limit)
        return shape_products(self._engine.search(body))

    def list_by_category(self, category: str) -> List[Product]:
        if not category or not category.strip():
            raise InvalidInput("category is required")
        body = self._compiler.compile_listing(category=category.strip(), size=self._category_limit)
        return shape_products(self._engine.search(body))

    def get(self, product_id: int) -> Product | None:
        """활성 상품만 반환한다. 없거나 soft delete된 경우 None."""
        doc = self._engine.get_document(product_id)
        if doc is None or not doc.get("is_active", True):
            return None
        return Product.model_validate(doc)

    def stats(self) -> CatalogStats:
        return shape_stats(self._engine.search_with_facets(self._compiler.compile_stats()))

    # ================= 변경 =================

    def create(self, request: ProductCreate) -> Product:
        """
        새 식별자를 발급받아 상품을 색인한다.
        Raises:
            SearchEngineFailure: 색인 실패
        """
        product_id = self._allocator.allocate(1)[0]
        product = request.to_product(product_id)
        result = self._engine.index_document(product.to_document(), product.id)
        if not result.success:
            logger.error("catalog.create failed: id=%s error=%s", product.id, result.error)
            raise SearchEngineFailure("index_document", result.error or "unknown error")
        logger.info("catalog.create: id=%s title=%s", product.id, product.title)
        return product

    def create_bulk(self, requests: List[ProductCreate]) -> BulkCreateResult:
        """
        여러 상품을 한 번에 색인한다. 원자적이지 않으며 실패 항목은 위치별로 보고된다.
        Returns:
            BulkCreateResult: 성공한 상품, 성공 건수, 위치별 실패 목록
        """
        if not requests:
            raise InvalidInput("at least one product is required")
        ids = self._allocator.allocate(len(requests))
        products = [req.to_product(pid) for req, pid in zip(requests, ids)]

        result = self._engine.bulk_index([p.to_document() for p in products])
        failed = result.failed_positions
        created = [p for i, p in enumerate(products) if i not in failed]

        if result.errors:
            logger.warning(
                "catalog.create_bulk partial failure: indexed=%s failed=%s",
                result.indexed, len(result.errors))
        logger.info("catalog.create_bulk: requested=%s indexed=%s", len(products), result.indexed)
        return BulkCreateResult(products=created, indexed=result.indexed, errors=result.errors)

    def update(self, product_id: int, request: ProductUpdate) -> Product | None:
        """
        주어진 필드만 변경한다.
        Returns:
            Product | None: 변경된 상품, 활성 상품이 없으면 None
        """
        existing = self.get(product_id)
        if existing is None:
            return None

        fields = request.changed_fields()
        if not fields:
            return existing

        result = self._engine.update_document(product_id, fields)
        if not result.success:
            logger.error("catalog.update failed: id=%s error=%s", product_id, result.error)
            raise SearchEngineFailure("update_document", result.error or "unknown error")
        logger.info("catalog.update: id=%s fields=%s", product_id, sorted(fields))
        return Product.model_validate({**existing.to_document(), **fields})

    def delete(self, product_id: int) -> bool:
        """
        soft delete(is_active=false).
        Returns:
            bool: 삭제 여부, 활성 상품이 없으면 False
        """
        if self.get(product_id) is None:
            return False
        result = self._engine.update_document(product_id, {"is_active": False})
        if not result.success:
            logger.error("catalog.delete failed: id=%s error=%s", product_id, result.error)
            raise SearchEngineFailure("update_document", result.error or "unknown error")
        logger.info("catalog.delete: id=%s (soft)", product_id)
        return True
