# blog_api/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - 설정 및 공통 모듈
from blog_api.core.config import config_by_name
from blog_api.core.errors import ServiceError, ValidationError as ServiceValidationError
from blog_api.core.security import register_jwt_handlers
from blog_api.utils.datetime_utils import DateTimeUtils

# - API 블루프린트
from blog_api.api.posts.routes import posts_bp
from blog_api.api.users.routes import users_bp

# - 서비스 모듈
from blog_api.api.posts.services import PostService
from blog_api.services.memory_store import InMemoryPostStore, InMemoryUserDirectory


def _build_stores(app: Flask):
    """설정된 백엔드에 맞는 게시글 저장소와 사용자 조회 객체를 생성합니다."""
    backend = app.config['POST_STORE_BACKEND']
    if backend == 'memory':
        logging.info("In-memory post store selected")
        return InMemoryPostStore(), InMemoryUserDirectory()

    if backend != 'firestore':
        raise ValueError(f"지원하지 않는 POST_STORE_BACKEND 값입니다: {backend}")

    # firestore.client()는 앱 초기화 이후에만 호출할 수 있으므로 여기서 임포트합니다.
    from blog_api.services.firestore_service import FirestorePostStore, FirestoreUserDirectory

    if not firebase_admin._apps:
        cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
        if not cred_path or not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
        firebase_admin.initialize_app(credentials.Certificate(cred_path))

    post_store = FirestorePostStore(
        posts_collection=app.config['POSTS_COLLECTION'],
        slugs_collection=app.config['SLUGS_COLLECTION'],
    )
    user_directory = FirestoreUserDirectory(users_collection=app.config['USERS_COLLECTION'])
    logging.info("Firestore post store initialized successfully")
    return post_store, user_directory


def create_app(config_name=None, post_store=None, user_directory=None):
    """
    Flask 애플리케이션 팩토리 함수.
    post_store / user_directory를 넘기면 설정 대신 해당 구현을 사용합니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 초기화
    # =====================================================================================
    jwt = JWTManager(app)
    register_jwt_handlers(jwt)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    if post_store is None or user_directory is None:
        try:
            default_store, default_users = _build_stores(app)
        except Exception as e:
            logging.error(f"Failed to initialize post store: {e}")
            raise
        post_store = post_store or default_store
        user_directory = user_directory or default_users

    app.services['post_store'] = post_store
    app.services['users'] = user_directory
    app.services['posts'] = PostService(
        store=post_store,
        users=user_directory,
        slug_max_attempts=app.config['SLUG_MAX_ATTEMPTS'],
        excerpt_length=app.config['EXCERPT_LENGTH'],
    )

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    app.register_blueprint(users_bp, url_prefix='/api/users')

    @app.route('/health', methods=['GET'])
    def health_check():
        return jsonify({
            "success": True,
            "message": "Blog API is running!",
            "timestamp": DateTimeUtils.to_iso_string(DateTimeUtils.now()),
            "environment": config_name,
        }), 200

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ServiceError)
    def handle_service_error(err):
        if err.status_code >= 500:
            logging.error(f"Service error: {err.message}")
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        return handle_service_error(ServiceValidationError.from_messages(err.messages))

    @app.errorhandler(404)
    def handle_not_found(err):
        return jsonify({"success": False, "error_code": "NOT_FOUND", "message": "요청한 경로를 찾을 수 없습니다."}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(err):
        return jsonify({"success": False, "error_code": "METHOD_NOT_ALLOWED", "message": "허용되지 않은 메서드입니다."}), 405

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"success": False, "error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
