"""
서비스 계층에서 발생하는 예외 정의

- ValidationError: 빈 이름, 자기 자신을 부모로 지정, 순환 참조, 잘못된 가격 등
- NotFoundError: 참조한 ID가 존재하지 않음
- StorageError: DB 계층 오류 (재시도하지 않고 그대로 전파)

각 예외는 로그 extra 와 사용자 메시지에 쓸 수 있도록 context(관련 id/name)를 가진다.
"""
from typing import Any, Dict, Optional


class CatalogError(Exception):
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        return self.message


class ValidationError(CatalogError):
    pass


class NotFoundError(CatalogError):
    pass


class StorageError(CatalogError):
    pass
