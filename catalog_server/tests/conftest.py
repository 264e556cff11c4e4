import sys
from pathlib import Path

# 프로젝트 루트 경로를 sys.path에 추가 (…/<project-root>)
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from catalog_server.app.domain.models import ProductCreate
from catalog_server.app.domain.query_compiler import QueryCompiler
from catalog_server.app.platform.config import DEFAULT_PRICE_RANGES


@pytest.fixture
def compiler():
    return QueryCompiler(price_ranges=DEFAULT_PRICE_RANGES)


@pytest.fixture
def make_product():
    """ProductCreate 생성 헬퍼(필수 필드 기본값 채움)"""
    def _make(title="Gaming Laptop", category="Electronics", brand="TechBrand", price=1299.99, **kwargs):
        return ProductCreate(
            title=title,
            description=kwargs.pop("description", f"{title} for everyday use"),
            category=category,
            brand=brand,
            price=price,
            **kwargs,
        )
    return _make
