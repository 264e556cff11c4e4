class DomainError(Exception):
    """도메인/유즈케이스 공통 베이스 예외"""
    pass

class ResourceNotFound(DomainError):
    def __init__(self, resource: str, detail: str | None = None):
        super().__init__(detail or f"{resource} not found")
        self.resource = resource

class InvalidInput(DomainError):
    def __init__(self, message: str):
        super().__init__(message)

class SearchEngineFailure(DomainError):
    """
    검색 엔진 호출 실패(연결 오류, 타임아웃, 잘못된 쿼리 등).
    원본 엔진 예외는 진단용 문자열로만 노출한다.
    """
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Search engine failure during {operation}: {reason}")
        self.operation = operation
        self.reason = reason
