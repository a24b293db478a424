# blog_api/api/posts/query_builder.py
"""
게시글 목록 조회 조건 처리

요청 쿼리스트링 -> ListFilter (기본값 적용과 검증은 여기서 한 번만 수행)
ListFilter -> PostQuery (저장소가 이해하는 조건과 정렬)
전체 개수 -> 페이지네이션 메타데이터
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from blog_api.core.errors import ValidationError
from blog_api.models.post import PostStatus
from blog_api.services.post_store import PostQuery, SortDirection, SortKey
from blog_api.utils.text_utils import tokenize_search

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_TAGS = 30  # Firestore array_contains_any 허용 개수


class SortOption(Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    POPULAR = "popular"
    LIKED = "liked"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortOption":
        """알 수 없는 값은 최신순으로 처리합니다."""
        try:
            return cls(value)
        except ValueError:
            return cls.NEWEST


class ListScope(Enum):
    PUBLIC = "public"    # 전체 피드: 발행된 글만
    AUTHOR = "author"    # 내 글 / 특정 사용자 글


def _positive_int(args: Mapping[str, Any], key: str, default: int) -> int:
    raw = args.get(key)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def _split_tags(raw: Optional[str]) -> List[str]:
    tags: List[str] = []
    for tag in (raw or '').split(','):
        tag = tag.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


@dataclass
class ListFilter:
    """
    목록 조회 옵션.

    page, limit: 숫자가 아니거나 1 미만이면 기본값(1, 10). 상한 없음.
    category: 정확히 일치
    tags: 하나라도 겹치면 매칭
    search: 제목/본문 키워드 검색
    author: 작성자 ID (전체 피드에서만 사용)
    sort: newest | oldest | popular | liked
    status: 내 글/사용자 글 목록에서 상태 필터
    """
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    category: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    search: Optional[str] = None
    author: Optional[str] = None
    sort: SortOption = SortOption.NEWEST
    status: Optional[PostStatus] = None

    def __post_init__(self):
        if len(self.tags) > MAX_TAGS:
            raise ValidationError.for_field('tags', f"태그는 최대 {MAX_TAGS}개까지 지정할 수 있습니다.")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "ListFilter":
        """request.args 같은 매핑으로부터 ListFilter를 만듭니다."""
        status = None
        raw_status = args.get('status')
        if raw_status:
            try:
                status = PostStatus(raw_status)
            except ValueError:
                raise ValidationError.for_field(
                    'status', f"status는 {', '.join(PostStatus.values())} 중 하나여야 합니다.")

        return cls(
            page=_positive_int(args, 'page', DEFAULT_PAGE),
            limit=_positive_int(args, 'limit', DEFAULT_LIMIT),
            category=args.get('category') or None,
            tags=_split_tags(args.get('tags')),
            search=(args.get('search') or '').strip() or None,
            author=args.get('author') or None,
            sort=SortOption.parse(args.get('sort')),
            status=status,
        )


def sort_keys(sort: SortOption, scope: ListScope) -> List[SortKey]:
    """정렬 옵션을 저장소 정렬 키로 변환합니다. 동률은 생성 시각 오름차순(입력 순서)."""
    date_field = 'published_at' if scope == ListScope.PUBLIC else 'created_at'
    tie_break: SortKey = ('created_at', SortDirection.ASCENDING)

    if sort == SortOption.OLDEST:
        primary: SortKey = (date_field, SortDirection.ASCENDING)
    elif sort == SortOption.POPULAR:
        primary = ('views', SortDirection.DESCENDING)
    elif sort == SortOption.LIKED:
        primary = ('like_count', SortDirection.DESCENDING)
    else:
        primary = (date_field, SortDirection.DESCENDING)

    if primary[0] == tie_break[0]:
        return [primary]
    return [primary, tie_break]


def build_list_query(list_filter: ListFilter, scope: ListScope = ListScope.PUBLIC,
                     author_id: Optional[str] = None, include_unpublished: bool = False) -> PostQuery:
    """
    ListFilter를 PostQuery로 변환합니다.

    - PUBLIC: 발행된 글만. author 필터는 list_filter.author 사용.
    - AUTHOR: author_id의 글. include_unpublished가 False이면(소유자/관리자가 아니면)
      발행된 글만 보이며, 다른 상태를 요청하면 아무것도 매칭되지 않습니다.
    """
    if scope == ListScope.PUBLIC:
        statuses: Optional[List[str]] = [PostStatus.PUBLISHED.value]
        author = list_filter.author
    else:
        author = author_id
        if include_unpublished:
            statuses = [list_filter.status.value] if list_filter.status else None
        elif list_filter.status in (None, PostStatus.PUBLISHED):
            statuses = [PostStatus.PUBLISHED.value]
        else:
            statuses = []

    search_terms = tokenize_search(list_filter.search) if list_filter.search else None

    return PostQuery(
        statuses=statuses,
        author_id=author,
        category=list_filter.category,
        tags=list(list_filter.tags),
        search_terms=search_terms,
        sort=sort_keys(list_filter.sort, scope),
        skip=list_filter.offset,
        limit=list_filter.limit,
        include_comments=False,
    )


def build_pagination(list_filter: ListFilter, total: int) -> Dict[str, Dict[str, int]]:
    """다음/이전 페이지 정보. 해당 페이지가 없으면 키를 생략합니다."""
    pagination: Dict[str, Dict[str, int]] = {}
    if list_filter.offset + list_filter.limit < total:
        pagination['next'] = {'page': list_filter.page + 1, 'limit': list_filter.limit}
    if list_filter.offset > 0:
        pagination['prev'] = {'page': list_filter.page - 1, 'limit': list_filter.limit}
    return pagination
