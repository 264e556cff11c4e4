"""
프로세스 메모리에 문서를 보관하는 SearchEnginePort 구현체.

QueryCompiler가 만드는 OpenSearch DSL 중 이 서비스가 쓰는 부분만 해석한다.
  - query: bool(must/filter/should/must_not), match_all, term, range,
           multi_match(best_fields, fuzziness AUTO), prefix
  - sort(_score / 필드, asc|desc), from/size
  - aggs: terms, range, filter(+하위 aggs), stats
점수는 엔진 점수를 흉내 낸 근사값이며, 지원하지 않는 절은 SearchEngineFailure로 거부한다.

단일 인스턴스(로컬 개발/테스트) 전용이다.
"""

from __future__ import annotations

import copy
import re
import threading
import uuid
from collections import Counter
from typing import Any, Dict, Iterable, List, Tuple

from catalog_server.app.domain.ports import SearchEnginePort
from catalog_server.app.domain.models import (
    BulkIndexResult,
    BulkItemError,
    EngineResponse,
    IndexResult,
    JSONDict,
)
from catalog_server.app.platform.exceptions import SearchEngineFailure

Match = Tuple[bool, float]
_TOKEN = re.compile(r"\w+", re.UNICODE)


# ================== 텍스트 매칭 ==================

def _tokens(text: Any) -> List[str]:
    return _TOKEN.findall(str(text).lower()) if text is not None else []


def _auto_fuzziness(term: str) -> int:
    if len(term) <= 2:
        return 0
    return 1 if len(term) <= 5 else 2


def _edit_distance(a: str, b: str, limit: int) -> int:
    if abs(len(a) - len(b)) > limit:
        return limit + 1
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        cur = [i]
        for j, cb in enumerate(b, 1):
            cur.append(min(prev[j] + 1, cur[j - 1] + 1, prev[j - 1] + (ca != cb)))
        prev = cur
    return prev[-1]


def _term_matches(term: str, candidates: Iterable[str], fuzzy: bool) -> bool:
    limit = _auto_fuzziness(term) if fuzzy else 0
    for c in candidates:
        if c == term or (limit and _edit_distance(term, c, limit) <= limit):
            return True
    return False


def _field_value(doc: JSONDict, field: str) -> Any:
    if field.endswith(".keyword"):
        field = field[: -len(".keyword")]
    return doc.get(field)


def _split_boost(field: str) -> Tuple[str, float]:
    name, _, boost = field.partition("^")
    return name, float(boost) if boost else 1.0


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


# ================== 쿼리 평가 ==================

def _evaluate(clause: JSONDict, doc: JSONDict) -> Match:
    if len(clause) != 1:
        raise SearchEngineFailure("search", f"malformed query clause: {list(clause)}")
    kind, spec = next(iter(clause.items()))

    if kind == "match_all":
        return True, 1.0
    if kind == "bool":
        return _evaluate_bool(spec, doc)
    if kind == "term":
        field, value = next(iter(spec.items()))
        if isinstance(value, dict):
            value = value.get("value")
        return _field_value(doc, field) == value, 1.0
    if kind == "range":
        field, bounds = next(iter(spec.items()))
        return _in_range(_field_value(doc, field), bounds), 1.0
    if kind == "multi_match":
        return _evaluate_multi_match(spec, doc)
    if kind == "prefix":
        field, value = next(iter(spec.items()))
        if not isinstance(value, dict):
            value = {"value": value}
        actual = _field_value(doc, field)
        if not isinstance(actual, str):
            return False, 0.0
        needle = str(value.get("value", ""))
        if value.get("case_insensitive"):
            actual, needle = actual.lower(), needle.lower()
        return actual.startswith(needle), float(value.get("boost", 1.0))

    raise SearchEngineFailure("search", f"unsupported query clause: {kind}")


def _evaluate_bool(spec: JSONDict, doc: JSONDict) -> Match:
    score = 0.0
    for clause in _as_list(spec.get("must")):
        ok, s = _evaluate(clause, doc)
        if not ok:
            return False, 0.0
        score += s
    for clause in _as_list(spec.get("filter")):
        if not _evaluate(clause, doc)[0]:
            return False, 0.0
    for clause in _as_list(spec.get("must_not")):
        if _evaluate(clause, doc)[0]:
            return False, 0.0

    shoulds = _as_list(spec.get("should"))
    matched = 0
    for clause in shoulds:
        ok, s = _evaluate(clause, doc)
        if ok:
            matched += 1
            score += s
    required = spec.get("minimum_should_match")
    if required is None:
        required = 1 if shoulds and not spec.get("must") and not spec.get("filter") else 0
    return matched >= int(required), score


def _evaluate_multi_match(spec: JSONDict, doc: JSONDict) -> Match:
    terms = _tokens(spec.get("query"))
    fuzzy = str(spec.get("fuzziness", "")).upper() == "AUTO"
    best = 0.0
    for field in spec.get("fields", []):
        name, boost = _split_boost(field)
        candidates = _tokens(_field_value(doc, name))
        hits = sum(1 for t in terms if _term_matches(t, candidates, fuzzy))
        best = max(best, hits * boost)
    return best > 0, best


def _in_range(value: Any, bounds: JSONDict) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    if "gte" in bounds and value < bounds["gte"]:
        return False
    if "gt" in bounds and value <= bounds["gt"]:
        return False
    if "lte" in bounds and value > bounds["lte"]:
        return False
    if "lt" in bounds and value >= bounds["lt"]:
        return False
    return True


# ================== 정렬 ==================

def _sort(rows: List[Tuple[str, JSONDict, float]], sort_spec: Any) -> List[Tuple[str, JSONDict, float]]:
    """뒤쪽 정렬 키부터 안정 정렬을 반복한다. 값이 없는 문서는 항상 뒤로."""
    keys = []
    for item in _as_list(sort_spec):
        if isinstance(item, str):
            keys.append((item, "desc" if item == "_score" else "asc"))
        else:
            field, opts = next(iter(item.items()))
            order = opts.get("order", "asc") if isinstance(opts, dict) else opts
            keys.append((field, order))

    for field, order in reversed(keys):
        def value(row, field=field):
            return row[2] if field == "_score" else _field_value(row[1], field)
        present = [r for r in rows if value(r) is not None]
        missing = [r for r in rows if value(r) is None]
        rows = sorted(present, key=value, reverse=(order == "desc")) + missing
    return rows


# ================== 집계 ==================

def _range_key(lower: Any, upper: Any) -> str:
    lo = "*" if lower is None else str(float(lower))
    hi = "*" if upper is None else str(float(upper))
    return f"{lo}-{hi}"


def _aggregate(spec: JSONDict, docs: List[JSONDict]) -> JSONDict:
    sub_aggs = spec.get("aggs") or spec.get("aggregations") or {}
    kinds = [k for k in spec if k not in ("aggs", "aggregations")]
    if len(kinds) != 1:
        raise SearchEngineFailure("search", f"malformed aggregation: {list(spec)}")
    kind = kinds[0]
    body = spec[kind]

    if kind == "terms":
        counts = Counter(
            v for v in (_field_value(d, body["field"]) for d in docs) if v is not None)
        ordered = sorted(counts.items(), key=lambda kv: (-kv[1], str(kv[0])))
        size = int(body.get("size", 10))
        buckets = [{"key": k, "doc_count": c} for k, c in ordered[:size]]
        return {
            "doc_count_error_upper_bound": 0,
            "sum_other_doc_count": sum(c for _, c in ordered[size:]),
            "buckets": buckets,
        }

    if kind == "range":
        buckets = []
        for r in body.get("ranges", []):
            lower, upper = r.get("from"), r.get("to")
            bounds = {}
            if lower is not None:
                bounds["gte"] = lower
            if upper is not None:
                bounds["lt"] = upper
            bucket: JSONDict = {
                "key": r.get("key") or _range_key(lower, upper),
                "doc_count": sum(1 for d in docs if _in_range(_field_value(d, body["field"]), bounds)),
            }
            if lower is not None:
                bucket["from"] = float(lower)
            if upper is not None:
                bucket["to"] = float(upper)
            buckets.append(bucket)
        return {"buckets": buckets}

    if kind == "filter":
        matched = [d for d in docs if _evaluate(body, d)[0]]
        result: JSONDict = {"doc_count": len(matched)}
        for name, sub in sub_aggs.items():
            result[name] = _aggregate(sub, matched)
        return result

    if kind == "stats":
        values = [
            v for v in (_field_value(d, body["field"]) for d in docs)
            if isinstance(v, (int, float)) and not isinstance(v, bool)
        ]
        if not values:
            return {"count": 0, "min": None, "max": None, "avg": None, "sum": 0.0}
        return {
            "count": len(values),
            "min": float(min(values)),
            "max": float(max(values)),
            "avg": sum(values) / len(values),
            "sum": float(sum(values)),
        }

    raise SearchEngineFailure("search", f"unsupported aggregation: {kind}")


# ================== 어댑터 ==================

class InMemorySearchEngine(SearchEnginePort):

    def __init__(self) -> None:
        self._docs: Dict[str, JSONDict] = {}
        self._lock = threading.Lock()

    def ensure_index(self) -> bool:
        return True

    def index_document(self, document: JSONDict, id: str | int | None = None) -> IndexResult:
        if id is None:
            id = document.get("id", uuid.uuid4().hex)
        key = str(id)
        with self._lock:
            self._docs[key] = copy.deepcopy(document)
        return IndexResult(success=True, id=key)

    def bulk_index(self, documents: Iterable[JSONDict]) -> BulkIndexResult:
        indexed = 0
        errors: List[BulkItemError] = []
        for position, doc in enumerate(documents):
            if not isinstance(doc, dict):
                errors.append(BulkItemError(
                    position=position, reason="mapper_parsing_exception - document must be an object"))
                continue
            self.index_document(doc, doc.get("id"))
            indexed += 1
        return BulkIndexResult(success=not errors, indexed=indexed, errors=errors)

    def get_document(self, id: str | int) -> JSONDict | None:
        with self._lock:
            doc = self._docs.get(str(id))
            return copy.deepcopy(doc) if doc is not None else None

    def update_document(self, id: str | int, fields: JSONDict) -> IndexResult:
        key = str(id)
        with self._lock:
            if key not in self._docs:
                return IndexResult(success=False, id=key, error="document not found")
            self._docs[key].update(copy.deepcopy(fields))
        return IndexResult(success=True, id=key)

    def delete_document(self, id: str | int) -> bool:
        with self._lock:
            return self._docs.pop(str(id), None) is not None

    def search(self, body: JSONDict) -> EngineResponse:
        return EngineResponse.from_raw(self._execute(body))

    def search_with_facets(self, body: JSONDict) -> EngineResponse:
        return EngineResponse.from_raw(self._execute(body))

    def health_check(self) -> bool:
        return True

    def _execute(self, body: JSONDict) -> JSONDict:
        """OpenSearch 검색 응답과 같은 형태의 dict를 만든다."""
        with self._lock:
            snapshot = [(k, copy.deepcopy(v)) for k, v in self._docs.items()]

        query = body.get("query") or {"match_all": {}}
        rows = []
        for doc_id, doc in snapshot:
            ok, score = _evaluate(query, doc)
            if ok:
                rows.append((doc_id, doc, score))

        matched_docs = [doc for _, doc, _ in rows]
        rows = _sort(rows, body.get("sort"))
        start = int(body.get("from", 0))
        size = int(body.get("size", 10))
        page = rows[start:start + size]

        aggs = body.get("aggs") or body.get("aggregations") or {}
        return {
            "took": 0,
            "timed_out": False,
            "hits": {
                "total": {"value": len(rows), "relation": "eq"},
                "hits": [{"_id": i, "_score": s, "_source": d} for i, d, s in page],
            },
            "aggregations": {name: _aggregate(spec, matched_docs) for name, spec in aggs.items()},
        }
