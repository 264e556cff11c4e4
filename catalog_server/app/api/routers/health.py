from fastapi import APIRouter, Depends
from catalog_server.app.api.deps import get_search_engine
from catalog_server.app.domain.ports import SearchEnginePort
from catalog_server.app.platform.response import ok

router = APIRouter(prefix="/health", tags=["health"])

@router.get("")
def health(engine: SearchEnginePort = Depends(get_search_engine)):
    # 프로세스는 살아 있음. 엔진 연결 여부는 별도 플래그로 노출
    return ok({"ok": True, "search_engine": engine.health_check()}, message="healthy")
