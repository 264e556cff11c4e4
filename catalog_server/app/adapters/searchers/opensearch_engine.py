"""
OpenSearch 클라이언트(opensearch-py)로 SearchEnginePort를 구현한 어댑터.

쿼리 바디는 도메인의 QueryCompiler가 만든 것을 그대로 전달하고,
여기서는 와이어 레벨 변환(요청 파라미터, 응답 파싱, 예외 변환)만 한다.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List

from opensearchpy import OpenSearch, helpers
from opensearchpy.exceptions import NotFoundError, OpenSearchException

from catalog_server.app.domain.ports import SearchEnginePort
from catalog_server.app.domain.models import (
    BulkIndexResult,
    BulkItemError,
    EngineResponse,
    IndexResult,
    JSONDict,
)
from catalog_server.app.platform.exceptions import SearchEngineFailure

logger = logging.getLogger(__name__)


def _error_reason(error: Any) -> str:
    if isinstance(error, dict):
        return f"{error.get('type', 'error')} - {error.get('reason', '')}".strip(" -")
    return str(error)


def _assign_script(fields: JSONDict) -> JSONDict:
    source = " ".join(f"ctx._source.{name} = params.{name};" for name in sorted(fields))
    return {"script": {"source": source, "lang": "painless", "params": dict(fields)}}


class OpenSearchSearchEngine(SearchEnginePort):

    def __init__(self, client: OpenSearch, index_name: str, refresh: bool = True) -> None:
        """
        Args:
            client: OpenSearch 클라이언트
            index_name: 상품 인덱스 이름
            refresh: 쓰기 직후 refresh 요청 여부(읽기 지연 최소화)
        """
        self.client = client
        self.index_name = index_name
        self.refresh = refresh
        self._load_index_schema()

    def _load_index_schema(self) -> None:
        """
            인덱스 스키마를 JSON 파일에서 로드한다.
        """
        root_dir = Path(os.path.dirname(__file__)).resolve().parents[2]
        schema_path = root_dir / "resources/schema/products_index.json"
        with open(schema_path, "r", encoding="utf-8") as f:
            self.index_schema = json.load(f)

    # ================== 인덱스 ==================
    def ensure_index(self) -> bool:
        """
            인덱스가 없으면 로드된 스키마로 생성한다.
            Returns:
                bool: 인덱스 사용 가능 여부
        """
        try:
            if self.client.indices.exists(index=self.index_name):
                logger.info("Index '%s' already exists.", self.index_name)
                return True
            self.client.indices.create(index=self.index_name, body=self.index_schema)
            logger.info("Index '%s' created successfully.", self.index_name)
            return True
        except OpenSearchException as e:
            logger.error("Failed to create index '%s': %s", self.index_name, e)
            return False

    # ================== 쓰기 ==================
    def index_document(self, document: JSONDict, id: str | int | None = None) -> IndexResult:
        params: Dict[str, Any] = {
            "index": self.index_name,
            "body": document,
            "refresh": self.refresh,
        }
        if id is not None:
            params["id"] = str(id)
        try:
            resp = self.client.index(**params)
        except OpenSearchException as e:
            logger.error("Error indexing document id=%s: %s", id, e)
            return IndexResult(success=False, id=None if id is None else str(id), error=str(e))
        return IndexResult(success=True, id=str(resp.get("_id", id)))

    def bulk_index(self, documents: Iterable[JSONDict]) -> BulkIndexResult:
        """
            문서들을 bulk 색인한다.

            - 문서에 id 필드가 있으면 _id로 사용한다.
            - 입력 순서(position) 기준으로 항목별 성공/실패를 보고한다.

            Returns:
                BulkIndexResult: 성공 건수와 위치별 실패 상세
        """
        docs: List[JSONDict] = list(documents)

        def actions():
            for d in docs:
                action = {
                    "_op_type": "index",
                    "_index": self.index_name,
                    "_source": d,
                }
                if d.get("id") is not None:
                    action["_id"] = str(d["id"])
                yield action

        indexed = 0
        errors: List[BulkItemError] = []
        reported = 0
        try:
            for ok, item in helpers.streaming_bulk(
                self.client,
                actions(),
                raise_on_error=False,
                raise_on_exception=False,
                refresh=self.refresh,
            ):
                info = item.get("index", {})
                if ok:
                    indexed += 1
                else:
                    errors.append(BulkItemError(
                        position=reported,
                        id=None if info.get("_id") is None else str(info.get("_id")),
                        reason=_error_reason(info.get("error", info))))
                reported += 1
        except OpenSearchException as e:
            logger.error("Error bulk indexing documents: %s", e)
            # 응답을 받지 못한 나머지 항목은 모두 실패로 보고
            for position in range(reported, len(docs)):
                doc_id = docs[position].get("id")
                errors.append(BulkItemError(
                    position=position,
                    id=None if doc_id is None else str(doc_id),
                    reason=str(e)))

        if errors:
            logger.warning("Bulk indexing: %s indexed, %s failed", indexed, len(errors))
        return BulkIndexResult(success=not errors, indexed=indexed, errors=errors)

    def update_document(self, id: str | int, fields: JSONDict) -> IndexResult:
        """
            주어진 최상위 필드 값을 통째로 교체한다.
            partial doc 업데이트는 object 필드(attributes)를 병합하므로 스크립트 대입을 사용한다.
        """
        try:
            self.client.update(
                index=self.index_name,
                id=str(id),
                body=_assign_script(fields),
                refresh=self.refresh,
            )
        except NotFoundError:
            return IndexResult(success=False, id=str(id), error="document not found")
        except OpenSearchException as e:
            logger.error("Error updating document id=%s: %s", id, e)
            return IndexResult(success=False, id=str(id), error=str(e))
        return IndexResult(success=True, id=str(id))

    def delete_document(self, id: str | int) -> bool:
        try:
            self.client.delete(index=self.index_name, id=str(id), refresh=self.refresh)
        except NotFoundError:
            return False
        except OpenSearchException as e:
            logger.error("Error deleting document id=%s: %s", id, e)
            return False
        return True

    # ================== 읽기 ==================
    def get_document(self, id: str | int) -> JSONDict | None:
        try:
            resp = self.client.get(index=self.index_name, id=str(id))
        except NotFoundError:
            return None
        except OpenSearchException as e:
            logger.error("Error getting document id=%s: %s", id, e)
            raise SearchEngineFailure("get_document", str(e)) from e
        return resp.get("_source") if resp.get("found") else None

    def search(self, body: JSONDict) -> EngineResponse:
        """
        Opensearch에 검색을 수행하여 결과를 반환한다.

        Args:
            body: QueryCompiler가 만든 쿼리 바디
        Returns:
            EngineResponse: hits, total, took
        """
        return self._execute("search", body)

    def search_with_facets(self, body: JSONDict) -> EngineResponse:
        return self._execute("search_with_facets", body)

    def health_check(self) -> bool:
        try:
            return bool(self.client.ping())
        except OpenSearchException as e:
            logger.error("Error checking health: %s", e)
            return False

    def _execute(self, operation: str, body: JSONDict) -> EngineResponse:
        try:
            raw = self.client.search(index=self.index_name, body=body)
        except OpenSearchException as e:
            logger.error("%s failed: %s", operation, e)
            raise SearchEngineFailure(operation, str(e)) from e
        if raw.get("timed_out"):
            logger.error("%s timed out", operation)
            raise SearchEngineFailure(operation, "search timed out")
        return EngineResponse.from_raw(raw)
