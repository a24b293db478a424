# blog_api/api/users/routes.py
from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required

from blog_api.core.responses import list_response
from blog_api.core.security import current_identity
from blog_api.api.posts.query_builder import ListFilter
from blog_api.api.posts.schemas import PostResponseSchema

users_bp = Blueprint('users_bp', __name__)


@users_bp.route('/<string:user_id>/posts', methods=['GET'])
@jwt_required(optional=True)
def get_user_posts(user_id: str):
    """
    특정 사용자가 작성한 게시글 목록을 페이지네이션으로 조회합니다.
    본인 또는 관리자가 아니면 발행된 글만 포함됩니다.
    """
    post_service = current_app.services['posts']
    result = post_service.list_user_posts(user_id, ListFilter.from_args(request.args), current_identity())
    return list_response(result, 'posts', PostResponseSchema(many=True, exclude=('comments',)).dump(result.items))
