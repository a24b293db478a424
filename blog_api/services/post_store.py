# blog_api/services/post_store.py
"""
게시글 저장소 인터페이스 정의

서비스 계층은 구체적인 저장소(Firestore, 프로세스 내 메모리)를 알지 못하고
아래 프로토콜에만 의존합니다.

- PostStore: 목록 조회/카운트/단건 조회/생성/부분 수정/삭제
- EngagementStore: 좋아요·댓글·조회수를 문서 전체 저장 없이 원자적으로 변경
- UserDirectory: 작성자/댓글 작성자 표시 정보 조회 (읽기 전용)
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple

from blog_api.models.post import Post, Comment
from blog_api.models.user import User


class StoreError(Exception):
    """저장소 구현에서 발생하는 예외의 기반 클래스"""


class PostMissingError(StoreError):
    """대상 게시글 문서가 존재하지 않음"""


class SlugTakenError(StoreError):
    """슬러그가 이미 다른 게시글에 예약되어 있음"""


class SortDirection(Enum):
    # 값은 firestore.Query.ASCENDING / DESCENDING 상수와 동일합니다.
    ASCENDING = "ASCENDING"
    DESCENDING = "DESCENDING"


SortKey = Tuple[str, SortDirection]


@dataclass
class PostQuery:
    """
    저장소에 전달되는 목록 조회 조건.

    statuses: None이면 상태 제한 없음, 빈 리스트이면 어떤 문서도 매칭되지 않음
    search_terms: None이면 검색 없음, 빈 리스트이면 어떤 문서도 매칭되지 않음
    tags / search_terms: 하나라도 겹치면 매칭(OR)
    """
    statuses: Optional[List[str]] = None
    author_id: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    search_terms: Optional[List[str]] = None
    sort: List[SortKey] = field(default_factory=list)
    skip: int = 0
    limit: Optional[int] = None
    include_comments: bool = True

    def matches_nothing(self) -> bool:
        return self.statuses == [] or self.search_terms == []

    def matches_search(self, doc: Dict[str, Any]) -> bool:
        if self.search_terms is None:
            return True
        keywords = set(doc.get('search_keywords') or [])
        return any(term in keywords for term in self.search_terms)

    def matches(self, doc: Dict[str, Any]) -> bool:
        """메모리 상의 문서 딕셔너리에 대해 조건을 평가합니다."""
        if self.matches_nothing():
            return False
        if self.statuses is not None and doc.get('status') not in self.statuses:
            return False
        if self.author_id is not None and doc.get('author_id') != self.author_id:
            return False
        if self.category is not None and doc.get('category') != self.category:
            return False
        if self.tags and not set(self.tags) & set(doc.get('tags') or []):
            return False
        return self.matches_search(doc)


class PostStore(Protocol):
    def find(self, query: PostQuery) -> List[Post]:
        """조건에 맞는 게시글을 정렬/skip/limit 적용하여 반환합니다."""
        ...

    def count(self, query: PostQuery) -> int:
        """페이지와 무관하게 조건에 맞는 전체 게시글 수를 반환합니다."""
        ...

    def find_by_id(self, post_id: str) -> Optional[Post]:
        ...

    def find_by_slug(self, slug: str) -> Optional[Post]:
        ...

    def insert(self, post: Post) -> Post:
        """
        게시글을 저장합니다. 슬러그 예약과 문서 생성은 하나의 원자적 작업입니다.

        Raises:
            SlugTakenError: 슬러그가 이미 사용 중인 경우
        """
        ...

    def update_by_id(self, post_id: str, patch: Dict[str, Any]) -> Post:
        """
        스칼라 필드만 부분 수정합니다. likes/comments 배열은 이 경로로 수정하지 않습니다.

        Raises:
            PostMissingError: 게시글이 없는 경우
        """
        ...

    def delete_by_id(self, post_id: str) -> None:
        """게시글 문서(내장 댓글/좋아요 포함)와 슬러그 예약을 함께 삭제합니다."""
        ...


class EngagementStore(Protocol):
    def toggle_like(self, post_id: str, user_id: str, liked_at: datetime) -> Tuple[bool, int]:
        """
        현재 좋아요 여부 확인과 추가/제거를 하나의 원자적 작업으로 수행합니다.
        (변경 후 좋아요 여부, 변경 후 좋아요 수)를 반환합니다.
        """
        ...

    def add_comment(self, post_id: str, comment: Comment) -> None:
        ...

    def remove_comment(self, post_id: str, comment_id: str) -> bool:
        """댓글을 ID로 제거합니다. 제거되었으면 True."""
        ...

    def increment_views(self, post_id: str, amount: int = 1) -> None:
        ...


class UserDirectory(Protocol):
    def get_user(self, user_id: str) -> Optional[User]:
        ...

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        ...
