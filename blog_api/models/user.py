# blog_api/models/user.py
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any


class UserRole(Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass
class User:
    """
    'users' 컬렉션의 문서 구조. 계정 관리 영역이 소유하며,
    게시글 서비스는 표시용 정보와 role 확인을 위해 읽기만 합니다.
    """
    user_id: str
    name: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    role: UserRole = UserRole.USER

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        try:
            role = UserRole(data.get('role') or UserRole.USER.value)
        except ValueError:
            role = UserRole.USER
        return cls(
            user_id=data['user_id'],
            name=data.get('name', ''),
            avatar=data.get('avatar'),
            bio=data.get('bio'),
            role=role,
        )

    def public_summary(self, with_bio: bool = False) -> Dict[str, Any]:
        """응답에 포함할 공개 정보 (작성자 표시에는 bio 포함, 댓글 작성자에는 제외)"""
        summary = {"user_id": self.user_id, "name": self.name, "avatar": self.avatar}
        if with_bio:
            summary["bio"] = self.bio
        return summary
