from fastapi.testclient import TestClient
import pytest

from catalog_server.app.main import app
from catalog_server.app.api.deps import get_search_engine, get_id_allocator
from catalog_server.app.adapters.searchers.memory_engine import InMemorySearchEngine
from catalog_server.app.adapters.allocators.memory_sequence import InMemoryIdAllocator


@pytest.fixture
def engine():
    return InMemorySearchEngine()


@pytest.fixture(autouse=True)
def override_dependency(engine):
    allocator = InMemoryIdAllocator()
    app.dependency_overrides[get_search_engine] = lambda: engine
    app.dependency_overrides[get_id_allocator] = lambda: allocator
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def seed(client):
    """API로 상품을 등록하고 응답 data 목록을 반환"""
    def _seed(*products):
        created = []
        for title, category, brand, price in products:
            resp = client.post("/api/products", json={
                "title": title,
                "description": f"{title} for everyday use",
                "category": category,
                "brand": brand,
                "price": price,
            })
            assert resp.status_code == 201
            created.append(resp.json()["data"])
        return created
    return _seed
