# blog_api/conftest.py
"""
공용 pytest 픽스처

- app / client: 'testing' 설정(메모리 저장소)으로 만든 Flask 앱과 테스트 클라이언트
- users: 작성자(alice), 다른 사용자(bob), 관리자(admin)
- auth_header: 사용자 ID로 Bearer 토큰 헤더 생성
- post_service: HTTP를 거치지 않는 서비스 단위 테스트용
"""
import pytest
from flask_jwt_extended import create_access_token

from blog_api import create_app
from blog_api.api.posts.services import PostService
from blog_api.core.security import Identity
from blog_api.models.user import User, UserRole
from blog_api.services.memory_store import InMemoryPostStore, InMemoryUserDirectory

ALICE = User(user_id="alice", name="Alice", avatar="https://example.com/alice.png", bio="글 쓰는 사람")
BOB = User(user_id="bob", name="Bob")
ADMIN = User(user_id="admin", name="Admin", role=UserRole.ADMIN)

LONG_CONTENT = "파이썬으로 블로그 백엔드를 만드는 과정을 정리합니다. " * 3


def make_payload(**overrides):
    """유효한 게시글 작성 요청 본문"""
    payload = {
        "title": "Flask로 블로그 만들기",
        "content": LONG_CONTENT,
        "category": "backend",
        "tags": ["python", "flask"],
        "status": "published",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def store():
    return InMemoryPostStore()


@pytest.fixture
def user_directory():
    return InMemoryUserDirectory([ALICE, BOB, ADMIN])


@pytest.fixture
def post_service(store, user_directory):
    return PostService(store=store, users=user_directory)


@pytest.fixture
def alice():
    return Identity(user_id="alice")


@pytest.fixture
def bob():
    return Identity(user_id="bob")


@pytest.fixture
def admin():
    return Identity(user_id="admin", role=UserRole.ADMIN)


@pytest.fixture
def anonymous():
    return Identity.anonymous()


@pytest.fixture
def app(store, user_directory):
    app = create_app('testing', post_store=store, user_directory=user_directory)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header(app):
    """auth_header('alice') -> {'Authorization': 'Bearer ...'}"""
    def _make(user_id: str, role: str = "user"):
        with app.app_context():
            token = create_access_token(identity=user_id, additional_claims={"role": role})
        return {"Authorization": f"Bearer {token}"}
    return _make
