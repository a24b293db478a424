# blog_api/utils/text_utils.py
"""
게시글 텍스트 가공 유틸리티

- slugify: 제목으로부터 URL에 사용할 슬러그 생성 (한글 등 유니코드 단어 문자는 유지)
- make_excerpt: 본문으로부터 목록용 요약문 생성
- extract_keywords / tokenize_search: 저장소 검색 연산자에 쓰이는 키워드 토큰
"""

import re
import unicodedata
from typing import List

DEFAULT_SLUG = "post"
SLUG_MAX_LENGTH = 80
MAX_STORED_KEYWORDS = 500
MAX_SEARCH_TERMS = 30  # Firestore array_contains_any 허용 개수

_NON_SLUG_CHARS = re.compile(r'[^\w\s-]')
_SLUG_SEPARATORS = re.compile(r'[\s_-]+')
_WORD = re.compile(r'\w+')


def slugify(title: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """
    제목을 소문자-하이픈 형태의 슬러그로 변환합니다.
    변환 결과가 비어 있으면 'post'를 반환합니다.
    """
    value = unicodedata.normalize('NFKC', title or '').lower()
    value = _NON_SLUG_CHARS.sub('', value)
    value = _SLUG_SEPARATORS.sub('-', value).strip('-')
    value = value[:max_length].rstrip('-')
    return value or DEFAULT_SLUG


def make_excerpt(content: str, length: int = 150) -> str:
    """본문 앞부분으로 요약문을 만듭니다. 잘린 경우 '...'을 붙입니다."""
    text = ' '.join((content or '').split())
    if len(text) <= length:
        return text
    return text[:length].rstrip() + '...'


def _unique_tokens(text: str) -> List[str]:
    seen = []
    for token in _WORD.findall(unicodedata.normalize('NFKC', text or '').lower()):
        if token not in seen:
            seen.append(token)
    return seen


def extract_keywords(*texts: str) -> List[str]:
    """
    제목/본문에서 검색용 키워드 목록을 추출합니다. (중복 제거, 최대 500개)
    검색어 토큰화(tokenize_search)와 같은 규칙이며 한 글자 토큰도 포함합니다.
    """
    keywords: List[str] = []
    for text in texts:
        for token in _unique_tokens(text):
            if token in keywords:
                continue
            keywords.append(token)
            if len(keywords) >= MAX_STORED_KEYWORDS:
                return keywords
    return keywords


def tokenize_search(search: str) -> List[str]:
    """검색어를 저장된 키워드와 같은 규칙으로 토큰화합니다."""
    return _unique_tokens(search)[:MAX_SEARCH_TERMS]
