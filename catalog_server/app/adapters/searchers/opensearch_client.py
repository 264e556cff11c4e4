from urllib.parse import urlparse
from opensearchpy import OpenSearch
from catalog_server.app.platform.config import Settings

def create_client(settings: Settings) -> OpenSearch:
    """
    설정의 OPENSEARCH_HOST(URL)로 OpenSearch 클라이언트를 생성한다.
    타임아웃은 전송 계층에 위임하며, 타임아웃은 호출 실패로 보고된다.
    """
    u = urlparse(settings.OPENSEARCH_HOST)
    return OpenSearch(
        hosts=[{"host": u.hostname, "port": u.port or 9200, "scheme": u.scheme or "http"}],
        verify_certs=settings.OPENSEARCH_VERIFY_CERTS,
        timeout=settings.OPENSEARCH_TIMEOUT,
    )

def close_client(client: OpenSearch | None) -> None:
    if client is not None:
        client.close()
