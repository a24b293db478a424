# blog_api/api/posts/routes.py
from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required

from blog_api.core.responses import success_response, list_response
from blog_api.core.security import current_identity
from blog_api.api.posts.query_builder import ListFilter
from blog_api.api.posts.schemas import (
    CommentCreateSchema, CommentResponseSchema, LikeResponseSchema, PostResponseSchema, load_payload,
)

posts_bp = Blueprint('posts_bp', __name__)

# 목록 응답에서는 댓글 배열을 제외합니다.
post_list_schema = PostResponseSchema(many=True, exclude=('comments',))


@posts_bp.route('', methods=['GET'])
@jwt_required(optional=True) # 비로그인 사용자도 피드는 볼 수 있도록 허용
def get_posts():
    """
    발행된 게시글 목록을 조회합니다.
    - page, limit, category, tags(쉼표 구분), search, author, sort 쿼리 파라미터를 지원합니다.
    """
    post_service = current_app.services['posts']
    result = post_service.list_posts(ListFilter.from_args(request.args), current_identity())
    return list_response(result, 'posts', post_list_schema.dump(result.items))


@posts_bp.route('/slug/<string:slug>', methods=['GET'])
@jwt_required(optional=True)
def get_post_by_slug(slug: str):
    """슬러그로 게시글 상세를 조회합니다. 비공개 글은 작성자/관리자에게만 보입니다."""
    post_service = current_app.services['posts']
    post = post_service.get_post_by_slug(slug, current_identity())
    return success_response({"post": PostResponseSchema().dump(post)})


@posts_bp.route('/user/my-posts', methods=['GET'])
@jwt_required()
def get_my_posts():
    """내가 작성한 게시글 목록 (초안/보관 포함, status로 필터 가능)"""
    post_service = current_app.services['posts']
    result = post_service.list_my_posts(ListFilter.from_args(request.args), current_identity())
    return list_response(result, 'posts', post_list_schema.dump(result.items))


@posts_bp.route('/<string:post_id>', methods=['GET'])
@jwt_required(optional=True)
def get_post(post_id: str):
    """
    특정 게시글의 상세 정보를 조회합니다.
    작성자가 아닌 사용자가 조회하면 조회수가 1 증가합니다.
    """
    post_service = current_app.services['posts']
    post = post_service.get_post(post_id, current_identity())
    return success_response({"post": PostResponseSchema().dump(post)})


@posts_bp.route('', methods=['POST'])
@jwt_required()
def create_post():
    """새로운 게시글을 생성합니다. 성공 시 201 Created."""
    post_service = current_app.services['posts']
    post = post_service.create_post(request.get_json(silent=True), current_identity())
    return success_response({"post": PostResponseSchema().dump(post)},
                            message="게시글이 생성되었습니다.", status_code=201)


@posts_bp.route('/<string:post_id>', methods=['PUT'])
@jwt_required()
def update_post(post_id: str):
    """게시글을 수정합니다. (작성자 본인 또는 관리자)"""
    post_service = current_app.services['posts']
    post = post_service.update_post(post_id, request.get_json(silent=True), current_identity())
    return success_response({"post": PostResponseSchema().dump(post)}, message="게시글이 수정되었습니다.")


@posts_bp.route('/<string:post_id>', methods=['DELETE'])
@jwt_required()
def delete_post(post_id: str):
    """게시글을 삭제합니다. (작성자 본인 또는 관리자)"""
    post_service = current_app.services['posts']
    post_service.delete_post(post_id, current_identity())
    return success_response(message="게시글이 삭제되었습니다.")


@posts_bp.route('/<string:post_id>/like', methods=['PUT'])
@jwt_required()
def toggle_post_like(post_id: str):
    """게시글의 좋아요를 누르거나 취소합니다."""
    post_service = current_app.services['posts']
    result = post_service.toggle_like(post_id, current_identity())
    message = "좋아요를 눌렀습니다." if result.is_liked else "좋아요를 취소했습니다."
    return success_response(LikeResponseSchema().dump(result), message=message)


@posts_bp.route('/<string:post_id>/comments', methods=['POST'])
@jwt_required()
def create_comment(post_id: str):
    """특정 게시글에 댓글을 작성합니다. 성공 시 201 Created."""
    post_service = current_app.services['posts']
    data = load_payload(CommentCreateSchema(), request.get_json(silent=True))
    comment = post_service.add_comment(post_id, data['text'], current_identity())
    return success_response({"comment": CommentResponseSchema().dump(comment)},
                            message="댓글이 등록되었습니다.", status_code=201)


@posts_bp.route('/<string:post_id>/comments/<string:comment_id>', methods=['DELETE'])
@jwt_required()
def delete_comment(post_id: str, comment_id: str):
    """댓글을 삭제합니다. (댓글 작성자 본인 또는 관리자)"""
    post_service = current_app.services['posts']
    post_service.delete_comment(post_id, comment_id, current_identity())
    return success_response(message="댓글이 삭제되었습니다.")
