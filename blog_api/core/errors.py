# blog_api/core/errors.py
"""
서비스 계층에서 발생시키는 도메인 예외 정의.

라우트는 예외를 직접 잡지 않고, create_app에서 등록한 에러 핸들러가
ServiceError를 응답 봉투(envelope)와 HTTP 상태 코드로 변환합니다.
"""
from typing import Optional, List, Dict


class ServiceError(Exception):
    """모든 서비스 예외의 기반 클래스"""
    status_code = 500
    error_code = "INTERNAL_SERVER_ERROR"
    default_message = "서버 내부에서 예상치 못한 오류가 발생했습니다."

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, str]]] = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"success": False, "error_code": self.error_code, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(ServiceError):
    """입력값 형식/범위 오류. errors에 [{field, message}] 목록을 담습니다."""
    status_code = 400
    error_code = "VALIDATION_ERROR"
    default_message = "입력값이 올바르지 않습니다."

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(errors=[{"field": field, "message": message}])

    @classmethod
    def from_messages(cls, messages) -> "ValidationError":
        """marshmallow의 err.messages(dict 또는 list)를 필드 단위 목록으로 펼칩니다."""
        errors = []
        if isinstance(messages, dict):
            for field, value in messages.items():
                for message in _flatten(value):
                    errors.append({"field": str(field), "message": message})
        else:
            for message in _flatten(messages):
                errors.append({"field": "_schema", "message": message})
        return cls(errors=errors)


class NotFoundError(ServiceError):
    """리소스가 없거나 조회 권한이 없어 숨겨진 경우 (호출자는 두 경우를 구분할 수 없음)"""
    status_code = 404
    error_code = "NOT_FOUND"
    default_message = "리소스를 찾을 수 없습니다."


class AuthorizationError(ServiceError):
    """존재가 확인된 리소스에 대해 소유자/관리자가 아닌 사용자가 변경을 시도한 경우"""
    status_code = 403
    error_code = "FORBIDDEN"
    default_message = "이 작업을 수행할 권한이 없습니다."


class ConflictError(ServiceError):
    """고유 필드(슬러그 등)가 중복된 경우"""
    status_code = 409
    error_code = "CONFLICT"
    default_message = "이미 존재하는 값입니다."


class InternalError(ServiceError):
    """저장소 장애 등 예상치 못한 오류. 구현 세부 내용은 노출하지 않습니다."""


def _flatten(value) -> List[str]:
    if isinstance(value, dict):
        return [message for nested in value.values() for message in _flatten(nested)]
    if isinstance(value, (list, tuple)):
        return [message for item in value for message in _flatten(item)]
    return [str(value)]
