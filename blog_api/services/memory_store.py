# blog_api/services/memory_store.py
"""
프로세스 내 메모리 저장소

로컬 개발과 테스트(POST_STORE_BACKEND='memory')에서 Firestore 대신 사용합니다.
모든 연산은 하나의 재진입 락 안에서 수행되므로, 좋아요/댓글 변경이 동시에 들어와도
서로의 변경을 덮어쓰지 않습니다.
"""
import copy
import logging
import threading
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from blog_api.models.post import Post, Comment
from blog_api.models.user import User
from blog_api.services.post_store import (
    PostQuery, SortDirection, PostMissingError, SlugTakenError,
)

logger = logging.getLogger(__name__)


class InMemoryPostStore:
    """PostStore와 EngagementStore를 함께 구현하는 메모리 저장소"""

    def __init__(self):
        self._lock = threading.RLock()
        self._posts: Dict[str, Dict[str, Any]] = {}
        self._slugs: Dict[str, str] = {}
        self._sequence: Dict[str, int] = {}
        self._next_sequence = 0

    # ------------------------------------------------------------------
    # PostStore
    # ------------------------------------------------------------------
    def find(self, query: PostQuery) -> List[Post]:
        with self._lock:
            docs = self._sorted(self._matching(query), query)
            end = query.skip + query.limit if query.limit is not None else None
            page = docs[query.skip:end]
            return [self._to_post(doc, query.include_comments) for doc in page]

    def count(self, query: PostQuery) -> int:
        with self._lock:
            return len(self._matching(query))

    def find_by_id(self, post_id: str) -> Optional[Post]:
        with self._lock:
            doc = self._posts.get(post_id)
            return self._to_post(doc) if doc else None

    def find_by_slug(self, slug: str) -> Optional[Post]:
        with self._lock:
            post_id = self._slugs.get(slug)
            return self.find_by_id(post_id) if post_id else None

    def insert(self, post: Post) -> Post:
        with self._lock:
            if post.slug in self._slugs:
                raise SlugTakenError(post.slug)
            self._slugs[post.slug] = post.post_id
            self._posts[post.post_id] = copy.deepcopy(post.to_dict())
            self._sequence[post.post_id] = self._next_sequence
            self._next_sequence += 1
            return self.find_by_id(post.post_id)

    def update_by_id(self, post_id: str, patch: Dict[str, Any]) -> Post:
        with self._lock:
            doc = self._get_doc(post_id)
            doc.update(copy.deepcopy(patch))
            return self._to_post(doc)

    def delete_by_id(self, post_id: str) -> None:
        with self._lock:
            doc = self._posts.pop(post_id, None)
            if doc is None:
                raise PostMissingError(post_id)
            self._slugs.pop(doc.get('slug'), None)
            self._sequence.pop(post_id, None)

    # ------------------------------------------------------------------
    # EngagementStore
    # ------------------------------------------------------------------
    def toggle_like(self, post_id: str, user_id: str, liked_at: datetime) -> Tuple[bool, int]:
        with self._lock:
            doc = self._get_doc(post_id)
            remaining = [like for like in doc['likes'] if like['user_id'] != user_id]
            is_liked = len(remaining) == len(doc['likes'])
            if is_liked:
                remaining.append({'user_id': user_id, 'created_at': liked_at})
            doc['likes'] = remaining
            doc['like_count'] = len(remaining)
            return is_liked, doc['like_count']

    def add_comment(self, post_id: str, comment: Comment) -> None:
        with self._lock:
            doc = self._get_doc(post_id)
            doc['comments'].append(asdict(comment))
            doc['comment_count'] = len(doc['comments'])

    def remove_comment(self, post_id: str, comment_id: str) -> bool:
        with self._lock:
            doc = self._get_doc(post_id)
            remaining = [c for c in doc['comments'] if c['comment_id'] != comment_id]
            removed = len(remaining) != len(doc['comments'])
            doc['comments'] = remaining
            doc['comment_count'] = len(remaining)
            return removed

    def increment_views(self, post_id: str, amount: int = 1) -> None:
        with self._lock:
            doc = self._get_doc(post_id)
            doc['views'] = doc.get('views', 0) + amount

    # ------------------------------------------------------------------
    # 내부 헬퍼
    # ------------------------------------------------------------------
    def _get_doc(self, post_id: str) -> Dict[str, Any]:
        doc = self._posts.get(post_id)
        if doc is None:
            raise PostMissingError(post_id)
        return doc

    def _matching(self, query: PostQuery) -> List[Dict[str, Any]]:
        return [doc for doc in self._posts.values() if query.matches(doc)]

    def _sorted(self, docs: List[Dict[str, Any]], query: PostQuery) -> List[Dict[str, Any]]:
        # 입력 순서를 기본 순서로 두고, 뒤쪽 정렬 키부터 안정 정렬을 반복 적용합니다.
        ordered = sorted(docs, key=lambda d: self._sequence[d['post_id']])
        for field_name, direction in reversed(query.sort):
            present = [d for d in ordered if d.get(field_name) is not None]
            missing = [d for d in ordered if d.get(field_name) is None]
            present.sort(key=lambda d: d[field_name], reverse=direction == SortDirection.DESCENDING)
            ordered = present + missing
        return ordered

    @staticmethod
    def _to_post(doc: Dict[str, Any], include_comments: bool = True) -> Post:
        data = copy.deepcopy(doc)
        if not include_comments:
            data['comments'] = []
        return Post.from_dict(data)


class InMemoryUserDirectory:
    """users 컬렉션을 대신하는 메모리 사용자 목록"""

    def __init__(self, users: Optional[Iterable[User]] = None):
        self._users: Dict[str, User] = {}
        for user in users or []:
            self.add_user(user)

    def add_user(self, user: User) -> None:
        self._users[user.user_id] = user

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        return {uid: self._users[uid] for uid in set(user_ids) if uid in self._users}
