# blog_api/models/post.py
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from blog_api.utils.datetime_utils import DateTimeUtils


class PostStatus(Enum):
    """게시글 발행 상태"""
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


@dataclass
class Like:
    """Post 문서 내부 likes 배열의 원소. 한 게시글에서 user_id는 유일합니다."""
    user_id: str
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Like":
        return cls(
            user_id=data['user_id'],
            created_at=DateTimeUtils.coerce(data.get('created_at')) or DateTimeUtils.now(),
        )


@dataclass
class Comment:
    """Post 문서 내부 comments 배열의 원소."""
    comment_id: str
    user_id: str
    text: str
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        return cls(
            comment_id=data['comment_id'],
            user_id=data['user_id'],
            text=data.get('text', ''),
            created_at=DateTimeUtils.coerce(data.get('created_at')) or DateTimeUtils.now(),
        )


@dataclass
class Post:
    """
    'posts' 컬렉션의 문서 구조(Aggregate)를 정의하는 데이터클래스.
    좋아요와 댓글은 별도 컬렉션이 아닌 문서 내부 배열로 함께 저장되므로,
    게시글 삭제 시 함께 사라집니다.
    """
    post_id: str
    title: str
    content: str
    author_id: str
    slug: str
    excerpt: str = ""
    status: PostStatus = PostStatus.DRAFT
    category: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    views: int = 0
    likes: List[Like] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    like_count: int = 0
    comment_count: int = 0
    search_keywords: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)
    published_at: Optional[datetime] = None

    @property
    def is_published(self) -> bool:
        return self.status == PostStatus.PUBLISHED

    def is_liked_by(self, user_id: Optional[str]) -> bool:
        return bool(user_id) and any(like.user_id == user_id for like in self.likes)

    def find_comment(self, comment_id: str) -> Optional[Comment]:
        for comment in self.comments:
            if comment.comment_id == comment_id:
                return comment
        return None

    def to_dict(self) -> Dict[str, Any]:
        """저장소에 기록할 딕셔너리로 변환합니다. (Enum은 문자열 값으로 저장)"""
        data = asdict(self)
        data['status'] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Post":
        """
        저장소에서 읽은 딕셔너리로부터 Post 인스턴스를 생성합니다.
        상태 문자열은 PostStatus로, 타임스탬프는 UTC datetime으로 변환합니다.
        """
        processed = dict(data)

        status = processed.get('status')
        if isinstance(status, str):
            try:
                processed['status'] = PostStatus(status)
            except ValueError:
                logging.warning(f"Invalid PostStatus value '{status}' for post {processed.get('post_id')}. Defaulting to DRAFT.")
                processed['status'] = PostStatus.DRAFT
        elif status is None:
            processed['status'] = PostStatus.DRAFT

        processed['likes'] = [Like.from_dict(like) for like in processed.get('likes') or []]
        processed['comments'] = [Comment.from_dict(c) for c in processed.get('comments') or []]
        processed['tags'] = list(processed.get('tags') or [])
        processed['search_keywords'] = list(processed.get('search_keywords') or [])
        processed.setdefault('like_count', len(processed['likes']))
        processed.setdefault('comment_count', len(processed['comments']))

        for key in ('created_at', 'updated_at'):
            processed[key] = DateTimeUtils.coerce(processed.get(key)) or DateTimeUtils.now()
        processed['published_at'] = DateTimeUtils.coerce(processed.get('published_at'))

        known = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in processed.items() if k in known})
