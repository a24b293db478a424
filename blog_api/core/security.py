# blog_api/core/security.py
from dataclasses import dataclass
from typing import Optional

from flask import jsonify
from flask_jwt_extended import JWTManager, get_jwt, get_jwt_identity

from blog_api.models.user import UserRole

ROLE_CLAIM = "role"


@dataclass(frozen=True)
class Identity:
    """
    요청자 신원. 모든 서비스 호출에 명시적으로 전달됩니다.
    user_id가 None이면 비로그인(anonymous) 요청입니다.
    """
    user_id: Optional[str] = None
    role: UserRole = UserRole.USER

    @classmethod
    def anonymous(cls) -> "Identity":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == UserRole.ADMIN


def current_identity() -> Identity:
    """
    jwt_required(optional=True) 또는 jwt_required()로 검증된 요청에서 Identity를 만듭니다.
    토큰의 identity는 user_id, 추가 클레임 'role'은 사용자 권한입니다.
    """
    user_id = get_jwt_identity()
    if not user_id:
        return Identity.anonymous()
    try:
        role = UserRole(get_jwt().get(ROLE_CLAIM, UserRole.USER.value))
    except ValueError:
        role = UserRole.USER
    return Identity(user_id=str(user_id), role=role)


def register_jwt_handlers(jwt: JWTManager) -> None:
    """토큰 누락/만료/위조 시 flask-jwt-extended 기본 응답 대신 공통 봉투 형식으로 응답합니다."""

    def _unauthorized(error_code: str, message: str):
        return jsonify({"success": False, "error_code": error_code, "message": message}), 401

    @jwt.unauthorized_loader
    def missing_token_callback(reason):
        return _unauthorized("AUTHENTICATION_REQUIRED", "로그인이 필요합니다.")

    @jwt.invalid_token_loader
    def invalid_token_callback(reason):
        return _unauthorized("INVALID_TOKEN", "유효하지 않은 토큰입니다.")

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return _unauthorized("TOKEN_EXPIRED", "토큰이 만료되었습니다.")
