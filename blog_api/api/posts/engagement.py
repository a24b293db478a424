# blog_api/api/posts/engagement.py
import logging
import uuid
from dataclasses import dataclass

from blog_api.core.errors import AuthorizationError, NotFoundError, ValidationError
from blog_api.core.security import Identity
from blog_api.models.post import Post, Comment
from blog_api.services.post_store import EngagementStore, PostMissingError
from blog_api.utils.datetime_utils import DateTimeUtils
from blog_api.api.posts.visibility import POST_NOT_FOUND_MESSAGE, ensure_can_mutate

logger = logging.getLogger(__name__)

COMMENT_MAX_LENGTH = 1000


@dataclass
class LikeResult:
    is_liked: bool
    like_count: int


class EngagementEngine:
    """
    좋아요 토글, 댓글 작성/삭제, 조회수 증가를 담당합니다.

    요청 시점에 읽어온 게시글(Aggregate)은 존재 확인과 댓글 권한 판단에만 쓰고,
    실제 변경은 EngagementStore의 원자적 연산으로 수행합니다.
    발행 상태와 관계없이 로그인한 사용자라면 좋아요/댓글이 가능합니다.
    """

    def __init__(self, store: EngagementStore):
        self.store = store

    def toggle_like(self, post: Post, identity: Identity) -> LikeResult:
        """좋아요 여부는 요청 시점의 post가 아니라 저장소의 현재 상태로 판단합니다."""
        self._require_login(identity)
        try:
            is_liked, like_count = self.store.toggle_like(post.post_id, identity.user_id, DateTimeUtils.now())
        except PostMissingError:
            raise NotFoundError(POST_NOT_FOUND_MESSAGE)
        result = LikeResult(is_liked=is_liked, like_count=like_count)
        logger.info(f"좋아요 {'추가' if result.is_liked else '취소'} (post_id: {post.post_id}, user_id: {identity.user_id})")
        return result

    def add_comment(self, post: Post, text: str, identity: Identity) -> Comment:
        self._require_login(identity)
        text = (text or '').strip()
        if not text:
            raise ValidationError.for_field('text', "댓글 내용을 입력해주세요.")
        if len(text) > COMMENT_MAX_LENGTH:
            raise ValidationError.for_field('text', f"댓글은 {COMMENT_MAX_LENGTH}자 이하여야 합니다.")

        comment = Comment(
            comment_id=str(uuid.uuid4()),
            user_id=identity.user_id,
            text=text,
            created_at=DateTimeUtils.now(),
        )
        try:
            self.store.add_comment(post.post_id, comment)
        except PostMissingError:
            raise NotFoundError(POST_NOT_FOUND_MESSAGE)
        return comment

    def delete_comment(self, post: Post, comment_id: str, identity: Identity) -> Comment:
        """댓글 작성자 또는 관리자만 삭제할 수 있습니다. (게시글 작성자 여부와 무관)"""
        self._require_login(identity)
        comment = post.find_comment(comment_id)
        if comment is None:
            raise NotFoundError("댓글을 찾을 수 없습니다.")
        ensure_can_mutate(comment.user_id, identity, "댓글을 삭제할 권한이 없습니다.")

        try:
            removed = self.store.remove_comment(post.post_id, comment_id)
        except PostMissingError:
            raise NotFoundError(POST_NOT_FOUND_MESSAGE)
        if not removed:
            # 읽은 뒤 다른 요청이 먼저 삭제한 경우
            raise NotFoundError("댓글을 찾을 수 없습니다.")
        return comment

    def record_view(self, post: Post) -> bool:
        """
        조회수를 1 증가시킵니다. 실패해도 조회 자체는 실패시키지 않고 경고만 남깁니다.
        증가에 성공하면 True를 반환합니다.
        """
        try:
            self.store.increment_views(post.post_id)
            return True
        except Exception as e:
            logger.warning(f"조회수 증가 실패 (post_id: {post.post_id}): {e}", exc_info=True)
            return False

    @staticmethod
    def _require_login(identity: Identity) -> None:
        if not identity.is_authenticated:
            raise AuthorizationError("로그인이 필요합니다.")
