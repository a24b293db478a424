# blog_api/api/posts/schemas.py
from typing import Any, Dict

from marshmallow import Schema, fields, validate, pre_load, post_load, EXCLUDE
from marshmallow import ValidationError as SchemaValidationError

from blog_api.core.errors import ValidationError
from blog_api.models.post import PostStatus

TRIMMED_FIELDS = ('title', 'content', 'excerpt', 'category')


# --- API 요청 스키마 ---

class PostSchema(Schema):
    """
    POST /api/posts, PUT /api/posts/{post_id} 요청 본문의 유효성을 검사합니다.
    수정 요청에서는 partial=True로 사용하여 보낸 필드만 검사합니다.
    author 등 정의되지 않은 필드는 무시합니다. (작성자는 항상 요청자)
    """
    class Meta:
        unknown = EXCLUDE

    title = fields.Str(required=True, validate=validate.Length(min=5, max=100, error="제목은 5~100자 사이여야 합니다."))
    content = fields.Str(required=True, validate=validate.Length(min=50, error="본문은 50자 이상이어야 합니다."))
    excerpt = fields.Str(validate=validate.Length(max=300, error="요약은 300자를 넘을 수 없습니다."))
    category = fields.Str(allow_none=True, validate=validate.Length(min=2, max=50, error="카테고리는 2~50자 사이여야 합니다."))
    tags = fields.List(fields.Str(), error_messages={"invalid": "tags는 배열이어야 합니다."})
    status = fields.Str(validate=validate.OneOf(PostStatus.values(), error="status는 draft, published, archived 중 하나여야 합니다."))

    @pre_load
    def strip_strings(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in TRIMMED_FIELDS:
            if isinstance(data.get(key), str):
                data[key] = data[key].strip()
        return data

    @post_load
    def normalize_tags(self, data, **kwargs):
        if 'tags' in data:
            tags = []
            for tag in data['tags']:
                tag = tag.strip()
                if tag and tag not in tags:
                    tags.append(tag)
            data['tags'] = tags
        if data.get('category') == '':
            data['category'] = None
        return data


class CommentCreateSchema(Schema):
    """
    POST /api/posts/{post_id}/comments
    공백만 있는 댓글은 EngagementEngine에서 다시 걸러냅니다.
    """
    class Meta:
        unknown = EXCLUDE

    text = fields.Str(required=True, error_messages={"required": "댓글 내용을 입력해주세요."})


def load_payload(schema: Schema, payload: Any) -> Dict[str, Any]:
    """스키마 검증 실패를 서비스 계층의 ValidationError(필드 목록)로 변환합니다."""
    try:
        return schema.load(payload if payload is not None else {})
    except SchemaValidationError as err:
        raise ValidationError.from_messages(err.messages)


# --- API 응답 스키마 ---

class UserSummarySchema(Schema):
    """게시물/댓글 응답에 포함될 사용자 정보"""
    user_id = fields.Str(required=True)
    name = fields.Str(allow_none=True)
    avatar = fields.Str(allow_none=True)
    bio = fields.Str(allow_none=True)


class LikeSchema(Schema):
    user_id = fields.Str(required=True)
    created_at = fields.DateTime(required=True)


class CommentResponseSchema(Schema):
    comment_id = fields.Str(required=True)
    user = fields.Nested(UserSummarySchema, required=True)
    text = fields.Str(required=True)
    created_at = fields.DateTime(required=True)


class PostResponseSchema(Schema):
    """게시글 응답 JSON 형식. 목록 조회에서는 comments를 제외합니다."""
    post_id = fields.Str(dump_only=True)
    title = fields.Str(required=True)
    slug = fields.Str(required=True)
    content = fields.Str(required=True)
    excerpt = fields.Str()
    author = fields.Nested(UserSummarySchema, required=True)
    status = fields.Str(required=True)
    category = fields.Str(allow_none=True)
    tags = fields.List(fields.Str())
    views = fields.Int()
    like_count = fields.Int()
    comment_count = fields.Int()
    likes = fields.List(fields.Nested(LikeSchema))
    comments = fields.List(fields.Nested(CommentResponseSchema))
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
    published_at = fields.DateTime(allow_none=True)
    is_liked = fields.Bool(dump_only=True, dump_default=False)


class LikeResponseSchema(Schema):
    is_liked = fields.Bool(required=True)
    like_count = fields.Int(required=True)
