# blog_api/api/posts/services.py
import logging
import uuid
from dataclasses import asdict, dataclass, field
from functools import wraps
from typing import Any, Dict, Iterable, List

from blog_api.core.errors import (
    AuthorizationError, ConflictError, InternalError, NotFoundError, ServiceError,
)
from blog_api.core.security import Identity
from blog_api.models.post import Comment, Post, PostStatus
from blog_api.models.user import User
from blog_api.services.post_store import (
    PostMissingError, PostQuery, PostStore, SlugTakenError, UserDirectory,
)
from blog_api.utils.datetime_utils import DateTimeUtils
from blog_api.utils.text_utils import extract_keywords, make_excerpt, slugify
from blog_api.api.posts.engagement import EngagementEngine, LikeResult
from blog_api.api.posts.query_builder import (
    ListFilter, ListScope, build_list_query, build_pagination,
)
from blog_api.api.posts.schemas import PostSchema, load_payload
from blog_api.api.posts.visibility import (
    POST_NOT_FOUND_MESSAGE, can_mutate, ensure_can_mutate, ensure_readable, should_count_view,
)


@dataclass
class ListResult:
    """목록 조회 결과. count는 현재 페이지의 항목 수, total은 조건에 맞는 전체 수."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0
    pagination: Dict[str, Dict[str, int]] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.items)


def translate_store_errors(method):
    """
    서비스 메서드에서 새어 나온 저장소 예외를 서비스 예외로 바꿉니다.
    예상하지 못한 예외는 로그를 남기고 세부 내용 없이 InternalError로 전달합니다.
    """
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except ServiceError:
            raise
        except PostMissingError:
            raise NotFoundError(POST_NOT_FOUND_MESSAGE)
        except Exception as e:
            logging.error(f"게시글 서비스 처리 실패 ({method.__name__}): {e}", exc_info=True)
            raise InternalError()
    return wrapper


class PostService:
    """
    게시글 관련 공개 작업(목록/상세/작성/수정/삭제/좋아요/댓글)을 제공하는 서비스 클래스.
    요청자 Identity를 모든 호출에 명시적으로 전달받습니다.
    """
    def __init__(self, store: PostStore, users: UserDirectory,
                 slug_max_attempts: int = 5, excerpt_length: int = 150):
        self.store = store
        self.users = users
        self.engine = EngagementEngine(store)
        self.slug_max_attempts = slug_max_attempts
        self.excerpt_length = excerpt_length
        logging.info("PostService initialized with dependencies.")

    # ------------------------------------------------------------------
    # 목록 조회
    # ------------------------------------------------------------------
    @translate_store_errors
    def list_posts(self, list_filter: ListFilter, identity: Identity) -> ListResult:
        """발행된 게시글 피드를 필터/정렬/페이지네이션하여 조회합니다."""
        query = build_list_query(list_filter, ListScope.PUBLIC)
        return self._run_list(query, list_filter, identity)

    @translate_store_errors
    def list_my_posts(self, list_filter: ListFilter, identity: Identity) -> ListResult:
        """내가 작성한 게시글을 상태와 관계없이 조회합니다. (status로 좁힐 수 있음)"""
        self._require_login(identity)
        query = build_list_query(list_filter, ListScope.AUTHOR,
                                 author_id=identity.user_id, include_unpublished=True)
        return self._run_list(query, list_filter, identity)

    @translate_store_errors
    def list_user_posts(self, target_user_id: str, list_filter: ListFilter, identity: Identity) -> ListResult:
        """
        특정 사용자의 게시글을 조회합니다.
        본인 또는 관리자가 아니면 발행된 글만 보입니다.
        """
        if self.users.get_user(target_user_id) is None:
            raise NotFoundError("사용자를 찾을 수 없습니다.")
        query = build_list_query(list_filter, ListScope.AUTHOR, author_id=target_user_id,
                                 include_unpublished=can_mutate(target_user_id, identity))
        return self._run_list(query, list_filter, identity)

    def _run_list(self, query: PostQuery, list_filter: ListFilter, identity: Identity) -> ListResult:
        total = self.store.count(query)
        posts = self.store.find(query) if list_filter.offset < total else []
        users = self.users.get_users(p.author_id for p in posts)
        return ListResult(
            items=[self._present(p, identity, users, include_comments=False) for p in posts],
            total=total,
            pagination=build_pagination(list_filter, total),
        )

    # ------------------------------------------------------------------
    # 단건 조회
    # ------------------------------------------------------------------
    @translate_store_errors
    def get_post(self, post_id: str, identity: Identity) -> Dict[str, Any]:
        post = ensure_readable(self.store.find_by_id(post_id), identity)
        return self._read(post, identity)

    @translate_store_errors
    def get_post_by_slug(self, slug: str, identity: Identity) -> Dict[str, Any]:
        post = ensure_readable(self.store.find_by_slug(slug), identity)
        return self._read(post, identity)

    def _read(self, post: Post, identity: Identity) -> Dict[str, Any]:
        # 작성자가 아닌 사용자의 조회만 집계 (실패해도 조회는 계속)
        if should_count_view(post, identity) and self.engine.record_view(post):
            post.views += 1
        return self._present(post, identity, self._users_for(post))

    # ------------------------------------------------------------------
    # 작성 / 수정 / 삭제
    # ------------------------------------------------------------------
    @translate_store_errors
    def create_post(self, payload: Dict[str, Any], identity: Identity) -> Dict[str, Any]:
        """새 게시글을 생성합니다. 작성자는 항상 요청자이며 슬러그는 제목에서 만듭니다."""
        self._require_login(identity)
        data = load_payload(PostSchema(), payload)

        now = DateTimeUtils.now()
        status = PostStatus(data.get('status', PostStatus.DRAFT.value))
        post = Post(
            post_id=str(uuid.uuid4()),
            title=data['title'],
            content=data['content'],
            author_id=identity.user_id,
            slug=slugify(data['title']),
            excerpt=data.get('excerpt') or make_excerpt(data['content'], self.excerpt_length),
            status=status,
            category=data.get('category'),
            tags=data.get('tags', []),
            search_keywords=extract_keywords(data['title'], data['content']),
            created_at=now,
            updated_at=now,
            published_at=now if status == PostStatus.PUBLISHED else None,
        )
        created = self._insert_with_unique_slug(post)
        logging.info(f"게시글 생성 완료 (post_id: {created.post_id}, author_id: {identity.user_id})")
        return self._present(created, identity, self._users_for(created))

    def _insert_with_unique_slug(self, post: Post) -> Post:
        base_slug = post.slug
        for attempt in range(self.slug_max_attempts):
            post.slug = base_slug if attempt == 0 else f"{base_slug}-{uuid.uuid4().hex[:6]}"
            try:
                return self.store.insert(post)
            except SlugTakenError:
                logging.info(f"슬러그 충돌, 접미사를 붙여 재시도합니다 (slug: {post.slug})")
        raise ConflictError("고유한 슬러그를 생성하지 못했습니다. 제목을 바꿔 다시 시도해주세요.")

    @translate_store_errors
    def update_post(self, post_id: str, payload: Dict[str, Any], identity: Identity) -> Dict[str, Any]:
        """
        게시글을 수정합니다. (작성자 본인 또는 관리자)
        보낸 필드만 반영하며, 작성자와 슬러그는 바뀌지 않습니다.
        """
        post = self._get_existing(post_id)
        ensure_can_mutate(post.author_id, identity, "게시글을 수정할 권한이 없습니다.")
        data = load_payload(PostSchema(partial=True), payload)

        now = DateTimeUtils.now()
        patch: Dict[str, Any] = dict(data)
        title = data.get('title', post.title)
        content = data.get('content', post.content)

        if 'content' in data and 'excerpt' not in data \
                and post.excerpt == make_excerpt(post.content, self.excerpt_length):
            patch['excerpt'] = make_excerpt(content, self.excerpt_length)
        if 'title' in data or 'content' in data:
            patch['search_keywords'] = extract_keywords(title, content)
        if data.get('status') == PostStatus.PUBLISHED.value and post.published_at is None:
            patch['published_at'] = now
        patch['updated_at'] = now

        updated = self.store.update_by_id(post_id, patch)
        logging.info(f"게시글 수정 완료 (post_id: {post_id}, fields: {sorted(data.keys())})")
        return self._present(updated, identity, self._users_for(updated))

    @translate_store_errors
    def delete_post(self, post_id: str, identity: Identity) -> None:
        """게시글을 삭제합니다. 내장된 댓글/좋아요도 함께 삭제됩니다."""
        post = self._get_existing(post_id)
        ensure_can_mutate(post.author_id, identity, "게시글을 삭제할 권한이 없습니다.")
        self.store.delete_by_id(post_id)
        logging.info(f"게시글 삭제 완료 (post_id: {post_id}, by: {identity.user_id})")

    # ------------------------------------------------------------------
    # 좋아요 / 댓글
    # ------------------------------------------------------------------
    @translate_store_errors
    def toggle_like(self, post_id: str, identity: Identity) -> LikeResult:
        post = self._get_existing(post_id)
        return self.engine.toggle_like(post, identity)

    @translate_store_errors
    def add_comment(self, post_id: str, text: str, identity: Identity) -> Dict[str, Any]:
        post = self._get_existing(post_id)
        comment = self.engine.add_comment(post, text, identity)
        return self._present_comment(comment, self.users.get_users([comment.user_id]))

    @translate_store_errors
    def delete_comment(self, post_id: str, comment_id: str, identity: Identity) -> None:
        post = self._get_existing(post_id)
        self.engine.delete_comment(post, comment_id, identity)
        logging.info(f"댓글 삭제 완료 (post_id: {post_id}, comment_id: {comment_id})")

    # ------------------------------------------------------------------
    # 내부 헬퍼
    # ------------------------------------------------------------------
    def _get_existing(self, post_id: str) -> Post:
        post = self.store.find_by_id(post_id)
        if post is None:
            raise NotFoundError(POST_NOT_FOUND_MESSAGE)
        return post

    @staticmethod
    def _require_login(identity: Identity) -> None:
        if not identity.is_authenticated:
            raise AuthorizationError("로그인이 필요합니다.")

    def _users_for(self, post: Post) -> Dict[str, User]:
        user_ids: Iterable[str] = {post.author_id, *(c.user_id for c in post.comments)}
        return self.users.get_users(user_ids)

    @staticmethod
    def _user_summary(user_id: str, users: Dict[str, User], with_bio: bool = False) -> Dict[str, Any]:
        user = users.get(user_id)
        if user is None:
            return {"user_id": user_id}
        return user.public_summary(with_bio=with_bio)

    def _present_comment(self, comment: Comment, users: Dict[str, User]) -> Dict[str, Any]:
        return {
            "comment_id": comment.comment_id,
            "user": self._user_summary(comment.user_id, users),
            "text": comment.text,
            "created_at": comment.created_at,
        }

    def _present(self, post: Post, identity: Identity, users: Dict[str, User],
                 include_comments: bool = True) -> Dict[str, Any]:
        """저장소 모델을 응답용 딕셔너리로 변환합니다. (작성자/댓글 작성자 정보 포함)"""
        data = {
            "post_id": post.post_id,
            "title": post.title,
            "slug": post.slug,
            "content": post.content,
            "excerpt": post.excerpt,
            "author": self._user_summary(post.author_id, users, with_bio=True),
            "status": post.status.value,
            "category": post.category,
            "tags": list(post.tags),
            "views": post.views,
            "like_count": post.like_count,
            "comment_count": post.comment_count,
            "likes": [asdict(like) for like in post.likes],
            "created_at": post.created_at,
            "updated_at": post.updated_at,
            "published_at": post.published_at,
            "is_liked": post.is_liked_by(identity.user_id),
        }
        if include_comments:
            data["comments"] = [self._present_comment(c, users) for c in post.comments]
        return data
