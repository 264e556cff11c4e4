"""
OpenSearch 카운터 문서 기반 IdAllocatorPort 구현체.

scripted update + upsert로 카운터를 원자적으로 증가시키므로
여러 서비스 인스턴스가 동시에 발급해도 식별자가 겹치지 않는다.
"""

from __future__ import annotations

import logging

from opensearchpy import OpenSearch
from opensearchpy.exceptions import OpenSearchException

from catalog_server.app.domain.ports import IdAllocatorPort
from catalog_server.app.platform.exceptions import SearchEngineFailure

logger = logging.getLogger(__name__)

INCREMENT_SCRIPT = "ctx._source.value += params.count"


class OpenSearchSequenceAllocator(IdAllocatorPort):

    def __init__(
        self,
        client: OpenSearch,
        index_name: str,
        sequence_name: str = "products",
        retry_on_conflict: int = 5) -> None:
        self.client = client
        self.index_name = index_name
        self.sequence_name = sequence_name
        self.retry_on_conflict = retry_on_conflict

    def allocate(self, count: int = 1) -> range:
        """
        카운터를 count만큼 증가시키고 증가된 구간을 반환한다.
        카운터 문서가 없으면 value=count로 생성된다(첫 식별자는 1).

        Raises:
            SearchEngineFailure: 카운터 갱신 실패
        """
        if count < 1:
            raise ValueError("count must be >= 1")
        body = {
            "script": {
                "source": INCREMENT_SCRIPT,
                "lang": "painless",
                "params": {"count": count},
            },
            "upsert": {"value": count},
        }
        try:
            resp = self.client.update(
                index=self.index_name,
                id=self.sequence_name,
                body=body,
                retry_on_conflict=self.retry_on_conflict,
                refresh=True,
                _source=True,
            )
            upper = int(resp["get"]["_source"]["value"])
        except OpenSearchException as e:
            logger.error("Failed to allocate %s id(s) from '%s': %s", count, self.sequence_name, e)
            raise SearchEngineFailure("allocate_id", str(e)) from e
        except (KeyError, TypeError, ValueError) as e:
            raise SearchEngineFailure("allocate_id", f"unexpected sequence response: {e}") from e
        return range(upper - count + 1, upper + 1)
