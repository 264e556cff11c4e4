"""
도메인 포트(추상 인터페이스).

애플리케이션 서비스(유스케이스)는 아래 포트들(추상)에만 의존합니다.
구체 구현은 adapters 레이어에서 제공하고, FastAPI DI로 주입합니다.

쿼리 생성(QueryCompiler)과 결과 가공(result_shaper)은 도메인에 있고,
어댑터는 엔진 와이어 프로토콜 변환만 담당합니다.
"""

from __future__ import annotations

from typing import Protocol, Iterable
from .models import (
    JSONDict,
    IndexResult,
    BulkIndexResult,
    EngineResponse,
)


class SearchEnginePort(Protocol):
    """
    상품 문서 저장/조회/검색을 담당하는 검색 엔진 경계.

    실패 규약:
    - index/update/bulk/delete/health: 엔진 오류를 실패 결과(success=False, False)로 변환
    - get/search/search_with_facets: 엔진 오류 시 SearchEngineFailure를 던진다
      (문서 없음 = None, 검색 결과 없음 = total 0 과 구분)
    """

    def ensure_index(self) -> bool:
        """상품 인덱스가 없으면 생성한다."""
        ...

    def index_document(self, document: JSONDict, id: str | int | None = None) -> IndexResult:
        """
        Args:
            document: 색인할 문서(_source)
            id: 문서 식별자(없으면 엔진이 발급)
        Returns:
            IndexResult: 성공 여부/식별자/오류
        """
        ...

    def bulk_index(self, documents: Iterable[JSONDict]) -> BulkIndexResult:
        """
        Returns:
            BulkIndexResult: 성공 건수 및 위치별 실패 상세
        """
        ...

    def get_document(self, id: str | int) -> JSONDict | None:
        """
        Returns:
            JSONDict | None: 문서(_source), 없으면 None
        """
        ...

    def update_document(self, id: str | int, fields: JSONDict) -> IndexResult:
        """주어진 최상위 필드만 변경한다. 값은 병합하지 않고 통째로 교체한다(attributes 포함)."""
        ...

    def delete_document(self, id: str | int) -> bool:
        """문서를 물리 삭제한다(soft delete 여부는 호출자가 결정)."""
        ...

    def search(self, body: JSONDict) -> EngineResponse:
        """컴파일된 쿼리로 검색한다."""
        ...

    def search_with_facets(self, body: JSONDict) -> EngineResponse:
        """컴파일된 쿼리 + 집계로 검색한다."""
        ...

    def health_check(self) -> bool:
        ...


class IdAllocatorPort(Protocol):
    """상품 식별자 발급기(엔진/저장소 기반 원자적 시퀀스)."""

    def allocate(self, count: int = 1) -> range:
        """
        Args:
            count: 발급할 식별자 수
        Returns:
            range: 연속된 신규 식별자 구간
        """
        ...
