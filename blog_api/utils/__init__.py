# blog_api/utils/__init__.py
"""
유틸리티 모듈 패키지

프로젝트 전체에서 공통으로 사용되는 시간/텍스트 처리 함수들을 포함합니다.
"""

from .datetime_utils import (
    DateTimeUtils,
    now, to_iso,
    for_firestore, from_firestore,
)
from .text_utils import slugify, make_excerpt, extract_keywords, tokenize_search

__all__ = [
    'DateTimeUtils',
    'now', 'to_iso',
    'for_firestore', 'from_firestore',
    'slugify', 'make_excerpt', 'extract_keywords', 'tokenize_search',
]
