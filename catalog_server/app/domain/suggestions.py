"""
자동완성 제안 추출.

접두어 검색으로 과다 조회한 문서들을 엔진 관련도 순서대로 훑으며
title(Product) → brand(Brand) → category(Category) 후보를 만든다.
productCount는 조회된 후보 집합 기준의 근사값이다(전체 카탈로그 아님).
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Sequence

from catalog_server.app.domain.models import Suggestion, SuggestionType


def _matches(value: Any, prefix: str) -> bool:
    return isinstance(value, str) and bool(value.strip()) and value.lower().startswith(prefix)


def extract_suggestions(
    documents: Sequence[Dict[str, Any]],
    prefix: str,
    size: int,
) -> List[Suggestion]:
    """
    Args:
        documents: 엔진 관련도 순서의 후보 문서
        prefix: 사용자 입력 접두어
        size: 최대 제안 개수
    Returns:
        List[Suggestion]: 소문자 기준 중복이 제거된 제안(최대 size개)
    """
    needle = prefix.strip().lower()
    if not needle or size <= 0:
        return []

    brand_counts = Counter(d.get("brand") for d in documents)
    category_counts = Counter(d.get("category") for d in documents)

    seen: set[str] = set()
    suggestions: List[Suggestion] = []

    def add(text: str, type_: SuggestionType, metadata: Dict[str, Any]) -> None:
        key = text.lower()
        if key in seen:
            return
        seen.add(key)
        suggestions.append(Suggestion(text=text, type=type_, metadata=metadata))

    for doc in documents:
        title, brand, category = doc.get("title"), doc.get("brand"), doc.get("category")

        if _matches(title, needle):
            add(title, SuggestionType.product,
                {"category": category or "", "brand": brand or ""})
        if _matches(brand, needle):
            add(brand, SuggestionType.brand, {"productCount": brand_counts[brand]})
        if _matches(category, needle):
            add(category, SuggestionType.category, {"productCount": category_counts[category]})

        if len(suggestions) >= size:
            break

    return suggestions[:size]
