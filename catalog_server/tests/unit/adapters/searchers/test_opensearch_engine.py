# catalog_server/tests/unit/adapters/searchers/test_opensearch_engine.py

from unittest.mock import MagicMock, patch
import pytest
from opensearchpy.exceptions import ConnectionError, NotFoundError

from catalog_server.app.adapters.searchers.opensearch_engine import OpenSearchSearchEngine
from catalog_server.app.platform.exceptions import SearchEngineFailure

STREAMING_BULK = "catalog_server.app.adapters.searchers.opensearch_engine.helpers.streaming_bulk"


@pytest.fixture
def mock_client():
    c = MagicMock()
    return c


@pytest.fixture
def engine(mock_client):
    return OpenSearchSearchEngine(client=mock_client, index_name="products")


def test_loads_index_schema(engine):
    props = engine.index_schema["mappings"]["properties"]
    assert props["category"]["type"] == "keyword"
    assert props["title"]["fields"]["keyword"]["type"] == "keyword"
    assert props["is_active"]["type"] == "boolean"


def test_ensure_index_creates_when_missing(engine, mock_client):
    mock_client.indices.exists.return_value = False
    assert engine.ensure_index() is True
    mock_client.indices.create.assert_called_once_with(index="products", body=engine.index_schema)


def test_ensure_index_reports_failure(engine, mock_client):
    mock_client.indices.exists.side_effect = ConnectionError("N/A", "refused", None)
    assert engine.ensure_index() is False


def test_index_document_success(engine, mock_client):
    mock_client.index.return_value = {"_id": "5", "result": "created"}
    res = engine.index_document({"id": 5, "title": "t"}, 5)

    assert res.success is True
    assert res.id == "5"
    kwargs = mock_client.index.call_args.kwargs
    assert kwargs["id"] == "5"
    assert kwargs["refresh"] is True


def test_index_document_failure_is_result(engine, mock_client):
    mock_client.index.side_effect = ConnectionError("N/A", "refused", None)
    res = engine.index_document({"id": 5}, 5)
    assert res.success is False
    assert res.error


def test_bulk_index_reports_positions(engine, mock_client):
    """
    given: 3건 중 두 번째가 매핑 오류
    when: bulk_index
    then: indexed=2, position=1 실패
    """
    results = [
        (True, {"index": {"_id": "1", "status": 201}}),
        (False, {"index": {"_id": "2", "status": 400,
                           "error": {"type": "mapper_parsing_exception", "reason": "bad price"}}}),
        (True, {"index": {"_id": "3", "status": 201}}),
    ]
    with patch(STREAMING_BULK, return_value=iter(results)) as sb:
        res = engine.bulk_index([{"id": 1}, {"id": 2}, {"id": 3}])

    assert sb.call_args.kwargs["raise_on_error"] is False
    assert res.success is False
    assert res.indexed == 2
    assert len(res.errors) == 1
    err = res.errors[0]
    assert (err.position, err.id) == (1, "2")
    assert err.reason == "mapper_parsing_exception - bad price"


def test_bulk_index_exception_fails_remaining(engine, mock_client):
    def _gen(*args, **kwargs):
        yield True, {"index": {"_id": "1", "status": 201}}
        raise ConnectionError("N/A", "connection reset", None)

    with patch(STREAMING_BULK, side_effect=_gen):
        res = engine.bulk_index([{"id": 1}, {"id": 2}, {"id": 3}])

    assert res.indexed == 1
    assert [e.position for e in res.errors] == [1, 2]
    assert [e.id for e in res.errors] == ["2", "3"]


def test_update_document_not_found(engine, mock_client):
    mock_client.update.side_effect = NotFoundError(404, "document_missing_exception", {})
    res = engine.update_document(9, {"is_active": False})
    assert res.success is False
    assert res.error == "document not found"


def test_update_document_assigns_fields_by_script(engine, mock_client):
    """
    given: attributes 교체 + price 변경
    when: update_document
    then: partial doc 병합이 아니라 필드별 스크립트 대입으로 전송
    """
    fields = {"price": 10.0, "attributes": {"color": "red"}}
    res = engine.update_document(1, fields)

    assert res.success is True
    body = mock_client.update.call_args.kwargs["body"]
    assert "doc" not in body
    assert body["script"]["source"] == (
        "ctx._source.attributes = params.attributes; ctx._source.price = params.price;")
    assert body["script"]["lang"] == "painless"
    assert body["script"]["params"] == fields


def test_get_document(engine, mock_client):
    mock_client.get.return_value = {"found": True, "_source": {"id": 1}}
    assert engine.get_document(1) == {"id": 1}

    mock_client.get.side_effect = NotFoundError(404, "not_found", {})
    assert engine.get_document(1) is None


def test_get_document_engine_error_raises(engine, mock_client):
    mock_client.get.side_effect = ConnectionError("N/A", "refused", None)
    with pytest.raises(SearchEngineFailure):
        engine.get_document(1)


def test_delete_document(engine, mock_client):
    assert engine.delete_document(1) is True
    mock_client.delete.side_effect = NotFoundError(404, "not_found", {})
    assert engine.delete_document(1) is False


def test_search_calls_client_with_index_and_body(engine, mock_client):
    mock_client.search.return_value = {
        "took": 2,
        "timed_out": False,
        "hits": {"total": {"value": 1}, "hits": [{"_id": "1", "_score": 1.2, "_source": {"id": 1}}]},
    }
    body = {"query": {"match_all": {}}}
    res = engine.search(body)

    mock_client.search.assert_called_once_with(index="products", body=body)
    assert res.total == 1
    assert res.hits[0].score == 1.2


def test_search_failures_are_raised(engine, mock_client):
    mock_client.search.side_effect = ConnectionError("N/A", "refused", None)
    with pytest.raises(SearchEngineFailure):
        engine.search({})

    mock_client.search.side_effect = None
    mock_client.search.return_value = {"timed_out": True, "hits": {"total": {"value": 0}, "hits": []}}
    with pytest.raises(SearchEngineFailure):
        engine.search_with_facets({})


def test_health_check(engine, mock_client):
    mock_client.ping.return_value = True
    assert engine.health_check() is True
    mock_client.ping.side_effect = ConnectionError("N/A", "refused", None)
    assert engine.health_check() is False
