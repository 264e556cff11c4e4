"""
프로세스 내 카운터 기반 IdAllocatorPort 구현체.

in-memory 검색 엔진과 함께 단일 인스턴스(로컬 개발/테스트)에서만 사용한다.
여러 인스턴스가 동시에 뜨는 배포에서는 OpenSearchSequenceAllocator를 사용한다.
"""

from __future__ import annotations

import threading

from catalog_server.app.domain.ports import IdAllocatorPort


class InMemoryIdAllocator(IdAllocatorPort):

    def __init__(self, start: int = 1) -> None:
        self._next = start
        self._lock = threading.Lock()

    def allocate(self, count: int = 1) -> range:
        if count < 1:
            raise ValueError("count must be >= 1")
        with self._lock:
            first = self._next
            self._next += count
        return range(first, first + count)
