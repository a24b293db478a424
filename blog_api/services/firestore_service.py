# blog_api/services/firestore_service.py
"""
Cloud Firestore 기반 게시글/사용자 저장소

- 좋아요 토글과 댓글 삭제는 @firestore.transactional 트랜잭션에서 현재 상태를 읽고 변경합니다.
  (동시 수정 시 Firestore가 충돌을 감지하고 트랜잭션 함수를 재시도합니다)
- 댓글 추가는 ArrayUnion + Increment, 조회수는 Increment 단일 update로 처리합니다.
- 슬러그 고유성은 문서 ID가 슬러그인 예약 컬렉션으로 보장합니다.
"""
import logging
from dataclasses import asdict, fields as dataclass_fields
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from firebase_admin import firestore
from google.api_core.exceptions import NotFound

from blog_api.models.post import Post, Comment
from blog_api.models.user import User
from blog_api.services.post_store import PostQuery, PostMissingError, SlugTakenError
from blog_api.utils.datetime_utils import DateTimeUtils

# 목록 조회 시 comments 배열을 제외하고 읽어올 필드 목록
LIST_FIELDS = [f.name for f in dataclass_fields(Post) if f.name != 'comments']
# offset/limit는 Int32로 전송되므로 이 값을 넘지 않게 맞춥니다.
FIRESTORE_MAX_INT = 2 ** 31 - 1


class FirestorePostStore:
    """PostStore와 EngagementStore를 Firestore로 구현합니다."""

    def __init__(self, db=None, posts_collection: str = 'posts', slugs_collection: str = 'post_slugs'):
        self.db = db or firestore.client()
        self.posts_ref = self.db.collection(posts_collection)
        self.slugs_ref = self.db.collection(slugs_collection)

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------
    def build_query(self, query: PostQuery):
        """
        PostQuery를 Firestore 쿼리로 변환합니다.
        Firestore는 한 쿼리에 array_contains_any를 하나만 허용하므로, 태그와 검색어가
        함께 주어지면 태그만 서버에서 거르고 검색어는 needs_client_filter()로 알려
        메모리에서 거릅니다.
        """
        fs_query = self.posts_ref
        if query.statuses is not None:
            if len(query.statuses) == 1:
                fs_query = fs_query.where('status', '==', query.statuses[0])
            else:
                fs_query = fs_query.where('status', 'in', query.statuses)
        if query.author_id is not None:
            fs_query = fs_query.where('author_id', '==', query.author_id)
        if query.category is not None:
            fs_query = fs_query.where('category', '==', query.category)
        if query.tags:
            fs_query = fs_query.where('tags', 'array_contains_any', query.tags)
        elif query.search_terms:
            fs_query = fs_query.where('search_keywords', 'array_contains_any', query.search_terms)
        for field_name, direction in query.sort:
            fs_query = fs_query.order_by(field_name, direction=direction.value)
        if not query.include_comments:
            fs_query = fs_query.select(LIST_FIELDS)
        return fs_query

    @staticmethod
    def needs_client_filter(query: PostQuery) -> bool:
        return bool(query.tags) and bool(query.search_terms)

    def find(self, query: PostQuery) -> List[Post]:
        if query.matches_nothing():
            return []
        fs_query = self.build_query(query)
        if self.needs_client_filter(query):
            docs = [d for d in (self._doc_to_dict(s) for s in fs_query.stream()) if query.matches_search(d)]
            end = query.skip + query.limit if query.limit is not None else None
            return [Post.from_dict(d) for d in docs[query.skip:end]]

        if query.skip:
            fs_query = fs_query.offset(min(query.skip, FIRESTORE_MAX_INT))
        if query.limit is not None:
            fs_query = fs_query.limit(min(query.limit, FIRESTORE_MAX_INT))
        return [Post.from_dict(self._doc_to_dict(s)) for s in fs_query.stream()]

    def count(self, query: PostQuery) -> int:
        if query.matches_nothing():
            return 0
        fs_query = self.build_query(query)
        if self.needs_client_filter(query):
            return sum(1 for s in fs_query.stream() if query.matches_search(self._doc_to_dict(s)))
        # count()는 문서를 모두 읽지 않고 서버에서 개수만 집계합니다.
        count_result = fs_query.count().get()
        return count_result[0][0].value

    def find_by_id(self, post_id: str) -> Optional[Post]:
        doc = self.posts_ref.document(post_id).get()
        if not doc.exists:
            return None
        return Post.from_dict(self._doc_to_dict(doc))

    def find_by_slug(self, slug: str) -> Optional[Post]:
        reservation = self.slugs_ref.document(slug).get()
        if not reservation.exists:
            return None
        return self.find_by_id(reservation.to_dict().get('post_id'))

    # ------------------------------------------------------------------
    # 생성/수정/삭제
    # ------------------------------------------------------------------
    def insert(self, post: Post) -> Post:
        post_ref = self.posts_ref.document(post.post_id)
        slug_ref = self.slugs_ref.document(post.slug)
        data = DateTimeUtils.for_firestore(post.to_dict())

        @firestore.transactional
        def _insert_in_transaction(transaction):
            reservation = slug_ref.get(transaction=transaction)
            if reservation.exists:
                raise SlugTakenError(post.slug)
            transaction.set(slug_ref, {'post_id': post.post_id, 'created_at': data['created_at']})
            transaction.set(post_ref, data)

        _insert_in_transaction(self.db.transaction())
        logging.info(f"게시글 문서 생성 완료 (post_id: {post.post_id}, slug: {post.slug})")
        return post

    def update_by_id(self, post_id: str, patch: Dict[str, Any]) -> Post:
        post_ref = self.posts_ref.document(post_id)
        try:
            post_ref.update(DateTimeUtils.for_firestore(patch))
        except NotFound:
            raise PostMissingError(post_id)
        updated = self.find_by_id(post_id)
        if updated is None:
            raise PostMissingError(post_id)
        return updated

    def delete_by_id(self, post_id: str) -> None:
        post_ref = self.posts_ref.document(post_id)

        @firestore.transactional
        def _delete_in_transaction(transaction):
            snapshot = post_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise PostMissingError(post_id)
            slug = snapshot.to_dict().get('slug')
            transaction.delete(post_ref)
            if slug:
                transaction.delete(self.slugs_ref.document(slug))

        _delete_in_transaction(self.db.transaction())

    # ------------------------------------------------------------------
    # 좋아요 / 댓글 / 조회수
    # ------------------------------------------------------------------
    def toggle_like(self, post_id: str, user_id: str, liked_at: datetime) -> Tuple[bool, int]:
        post_ref = self.posts_ref.document(post_id)

        @firestore.transactional
        def _toggle_like_in_transaction(transaction):
            likes = self._read_array(transaction, post_ref, 'likes')
            remaining = [like for like in likes if like.get('user_id') != user_id]
            is_liked = len(remaining) == len(likes)
            if is_liked:
                remaining.append({'user_id': user_id, 'created_at': DateTimeUtils.ensure_utc(liked_at)})
            transaction.update(post_ref, {'likes': remaining, 'like_count': len(remaining)})
            return is_liked, len(remaining)

        return _toggle_like_in_transaction(self.db.transaction())

    def add_comment(self, post_id: str, comment: Comment) -> None:
        try:
            self.posts_ref.document(post_id).update({
                'comments': firestore.ArrayUnion([DateTimeUtils.for_firestore(asdict(comment))]),
                'comment_count': firestore.Increment(1),
            })
        except NotFound:
            raise PostMissingError(post_id)

    def remove_comment(self, post_id: str, comment_id: str) -> bool:
        post_ref = self.posts_ref.document(post_id)

        @firestore.transactional
        def _remove_comment_in_transaction(transaction):
            comments = self._read_array(transaction, post_ref, 'comments')
            remaining = [c for c in comments if c.get('comment_id') != comment_id]
            if len(remaining) == len(comments):
                return False
            transaction.update(post_ref, {'comments': remaining, 'comment_count': len(remaining)})
            return True

        return _remove_comment_in_transaction(self.db.transaction())

    def increment_views(self, post_id: str, amount: int = 1) -> None:
        try:
            self.posts_ref.document(post_id).update({'views': firestore.Increment(amount)})
        except NotFound:
            raise PostMissingError(post_id)

    # ------------------------------------------------------------------
    # 내부 헬퍼
    # ------------------------------------------------------------------
    @staticmethod
    def _read_array(transaction, post_ref, field_name: str) -> List[Dict[str, Any]]:
        snapshot = post_ref.get(transaction=transaction)
        if not snapshot.exists:
            raise PostMissingError(post_ref.id)
        return list(snapshot.to_dict().get(field_name) or [])

    @staticmethod
    def _doc_to_dict(snapshot) -> Dict[str, Any]:
        data = DateTimeUtils.from_firestore(snapshot.to_dict() or {})
        data.setdefault('post_id', snapshot.id)
        return data


class FirestoreUserDirectory:
    """'users' 컬렉션에서 작성자 표시 정보를 읽어옵니다."""

    def __init__(self, db=None, users_collection: str = 'users'):
        self.db = db or firestore.client()
        self.users_ref = self.db.collection(users_collection)

    def get_user(self, user_id: str) -> Optional[User]:
        doc = self.users_ref.document(user_id).get()
        if not doc.exists:
            return None
        return User.from_dict({**doc.to_dict(), 'user_id': doc.id})

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        refs = [self.users_ref.document(uid) for uid in set(user_ids) if uid]
        if not refs:
            return {}
        users = {}
        for doc in self.db.get_all(refs):
            if doc.exists:
                users[doc.id] = User.from_dict({**doc.to_dict(), 'user_id': doc.id})
        return users
