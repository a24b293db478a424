# blog_api/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다. (.env 파일은 blog_api/__init__.py에서 먼저 로드됩니다.)


class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명 검증에 사용하는 키. 토큰 발급은 인증 서버가 담당하고, 이 서비스는 검증만 합니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')

    # 게시글 저장소 구현 선택: 'firestore' (운영) 또는 'memory' (로컬 개발/테스트)
    POST_STORE_BACKEND = os.getenv('POST_STORE_BACKEND', 'firestore')
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')

    # Firestore 컬렉션 이름
    POSTS_COLLECTION = os.getenv('POSTS_COLLECTION', 'posts')
    USERS_COLLECTION = os.getenv('USERS_COLLECTION', 'users')
    # 문서 ID가 곧 슬러그인 예약 컬렉션. 슬러그 고유성을 트랜잭션으로 보장하는 데 사용합니다.
    SLUGS_COLLECTION = os.getenv('SLUGS_COLLECTION', 'post_slugs')

    # 슬러그 충돌 시 접미사를 붙여 재시도하는 최대 횟수
    SLUG_MAX_ATTEMPTS = int(os.getenv('SLUG_MAX_ATTEMPTS', 5))
    # excerpt를 입력하지 않았을 때 본문에서 잘라낼 길이
    EXCERPT_LENGTH = int(os.getenv('EXCERPT_LENGTH', 150))


class DevelopmentConfig(Config):
    """개발 환경 설정. 코드 변경 시 자동 재시작과 상세 디버그 정보를 활성화합니다."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH', Config.FIREBASE_CREDENTIALS_PATH)


class TestingConfig(Config):
    """테스트 환경 설정. Firestore 대신 프로세스 내 저장소를 사용합니다."""
    TESTING = True
    DEBUG = False
    POST_STORE_BACKEND = 'memory'
    JWT_SECRET_KEY = 'testing-secret-key-with-enough-length-for-hs256'


class ProductionConfig(Config):
    """운영 환경 설정"""
    DEBUG = False


# FLASK_ENV 값에 따라 create_app에서 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
