# blog_api/api/posts/visibility.py
"""
게시글 조회/변경 권한 규칙

- 조회: 발행된 글은 누구나, 그 외 상태는 작성자 본인 또는 관리자만.
  실패 시 글의 존재 자체를 숨기기 위해 404로 응답합니다.
- 변경: 로그인한 소유자 또는 관리자만. 리소스 존재는 이미 확인된 상태이므로 403으로 응답합니다.
"""
from typing import Optional

from blog_api.core.errors import NotFoundError, AuthorizationError
from blog_api.core.security import Identity
from blog_api.models.post import Post

POST_NOT_FOUND_MESSAGE = "게시물을 찾을 수 없습니다."


def can_read(post: Post, identity: Identity) -> bool:
    if post.is_published:
        return True
    if not identity.is_authenticated:
        return False
    return identity.user_id == post.author_id or identity.is_admin


def can_mutate(owner_id: Optional[str], identity: Identity) -> bool:
    if not identity.is_authenticated:
        return False
    return identity.user_id == owner_id or identity.is_admin


def should_count_view(post: Post, identity: Identity) -> bool:
    """작성자 본인의 조회는 조회수에 포함하지 않습니다."""
    return identity.user_id != post.author_id


def ensure_readable(post: Optional[Post], identity: Identity) -> Post:
    if post is None or not can_read(post, identity):
        raise NotFoundError(POST_NOT_FOUND_MESSAGE)
    return post


def ensure_can_mutate(owner_id: Optional[str], identity: Identity, message: Optional[str] = None) -> None:
    if not can_mutate(owner_id, identity):
        raise AuthorizationError(message)
