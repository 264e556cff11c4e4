from typing import Literal, Optional, Tuple, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# 가격 구간 집계 기본값: (from 포함, to 미포함), None은 열린 구간
DEFAULT_PRICE_RANGES: List[Tuple[Optional[float], Optional[float]]] = [
    (None, 50),
    (50, 100),
    (100, 250),
    (250, 500),
    (500, 1000),
    (1000, None),
]

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "catalog-search-api"
    DEBUG: bool = False

    # 엔진 어댑터 선택(opensearch | memory)
    SEARCH_ENGINE: Literal["opensearch", "memory"] = "opensearch"

    OPENSEARCH_HOST: str = "http://opensearch:9200"
    OPENSEARCH_INDEX: str = "products"
    OPENSEARCH_SEQUENCE_INDEX: str = "catalog-sequences"
    OPENSEARCH_TIMEOUT: int = 10
    OPENSEARCH_VERIFY_CERTS: bool = False

    # 검색/목록 제한
    SEARCH_DEFAULT_PAGE_SIZE: int = Field(10, ge=1)
    SEARCH_MAX_PAGE_SIZE: int = Field(100, ge=1)
    CATALOG_LIST_LIMIT: int = 1000
    CATEGORY_LIST_LIMIT: int = 100

    # 패싯
    FACET_CATEGORY_SIZE: int = 20
    FACET_BRAND_SIZE: int = 15
    PRICE_RANGES: List[Tuple[Optional[float], Optional[float]]] = Field(
        default_factory=lambda: list(DEFAULT_PRICE_RANGES)
    )

    # 자동완성
    SUGGEST_OVERFETCH_FACTOR: int = Field(3, ge=1)
    SUGGEST_DEFAULT_SIZE: int = 5
    SUGGEST_MAX_SIZE: int = 20

    # 로깅
    LOG_LEVEL: str = "INFO"
    LOG_AS_JSON: bool = True
    LOG_TO_FILE: bool = False
    LOG_DIR: str = "/var/log/app"

settings = Settings()
