# blog_api/api/posts/test_query_builder.py
"""
목록 조회 조건(ListFilter/PostQuery/페이지네이션) 테스트

사용법: python -m pytest blog_api/api/posts/test_query_builder.py -v
"""
import pytest
from werkzeug.datastructures import MultiDict

from blog_api.core.errors import ValidationError
from blog_api.models.post import PostStatus
from blog_api.services.post_store import SortDirection
from blog_api.api.posts.query_builder import (
    ListFilter, ListScope, SortOption, build_list_query, build_pagination,
)


def test_defaults_when_paging_params_missing_or_invalid():
    """page/limit이 없거나 숫자가 아니거나 1 미만이면 기본값"""
    for args in ({}, {'page': 'abc', 'limit': 'x'}, {'page': '0', 'limit': '-5'}):
        list_filter = ListFilter.from_args(MultiDict(args))
        assert list_filter.page == 1
        assert list_filter.limit == 10
        assert list_filter.offset == 0


def test_fractional_paging_params_fall_back_to_defaults():
    list_filter = ListFilter.from_args(MultiDict({'page': '2.5', 'limit': '7.9'}))
    assert list_filter.page == 1
    assert list_filter.limit == 10


def test_large_limit_is_not_capped():
    list_filter = ListFilter.from_args(MultiDict({'page': '3', 'limit': '500'}))
    assert list_filter.limit == 500
    assert list_filter.offset == 1000


def test_tags_are_split_trimmed_and_deduplicated():
    list_filter = ListFilter.from_args(MultiDict({'tags': ' python, flask,,python ,'}))
    assert list_filter.tags == ['python', 'flask']


def test_too_many_tags_is_validation_error():
    tags = ','.join(f"tag{i}" for i in range(31))
    with pytest.raises(ValidationError) as exc_info:
        ListFilter.from_args(MultiDict({'tags': tags}))
    assert exc_info.value.errors[0]['field'] == 'tags'


def test_unknown_sort_falls_back_to_newest():
    assert ListFilter.from_args(MultiDict({'sort': 'random'})).sort == SortOption.NEWEST
    assert ListFilter.from_args(MultiDict({'sort': 'liked'})).sort == SortOption.LIKED


def test_invalid_status_is_validation_error():
    with pytest.raises(ValidationError):
        ListFilter.from_args(MultiDict({'status': 'deleted'}))


def test_public_query_restricts_to_published_and_applies_filters():
    list_filter = ListFilter.from_args(MultiDict({
        'category': 'backend', 'tags': 'python', 'search': 'Flask 입문',
        'author': 'alice', 'page': '2', 'limit': '5',
    }))
    query = build_list_query(list_filter, ListScope.PUBLIC)

    assert query.statuses == ['published']
    assert query.category == 'backend'
    assert query.tags == ['python']
    assert query.search_terms == ['flask', '입문']
    assert query.author_id == 'alice'
    assert query.skip == 5
    assert query.limit == 5
    assert query.include_comments is False


@pytest.mark.parametrize("sort, expected", [
    (SortOption.NEWEST, ('published_at', SortDirection.DESCENDING)),
    (SortOption.OLDEST, ('published_at', SortDirection.ASCENDING)),
    (SortOption.POPULAR, ('views', SortDirection.DESCENDING)),
    (SortOption.LIKED, ('like_count', SortDirection.DESCENDING)),
])
def test_sort_keys_for_public_listing(sort, expected):
    query = build_list_query(ListFilter(sort=sort), ListScope.PUBLIC)
    assert query.sort[0] == expected
    # 동률은 생성 시각 오름차순
    assert query.sort[-1] == ('created_at', SortDirection.ASCENDING)


def test_author_scope_orders_by_creation_time():
    query = build_list_query(ListFilter(), ListScope.AUTHOR, author_id='alice', include_unpublished=True)
    assert query.sort == [('created_at', SortDirection.DESCENDING)]


def test_author_scope_for_owner_includes_every_status():
    query = build_list_query(ListFilter(), ListScope.AUTHOR, author_id='alice', include_unpublished=True)
    assert query.statuses is None
    assert query.author_id == 'alice'

    drafts = build_list_query(ListFilter(status=PostStatus.DRAFT), ListScope.AUTHOR,
                              author_id='alice', include_unpublished=True)
    assert drafts.statuses == ['draft']


def test_author_scope_for_other_viewer_only_published():
    query = build_list_query(ListFilter(), ListScope.AUTHOR, author_id='alice')
    assert query.statuses == ['published']

    drafts = build_list_query(ListFilter(status=PostStatus.DRAFT), ListScope.AUTHOR, author_id='alice')
    assert drafts.matches_nothing()


def test_search_without_word_characters_matches_nothing():
    query = build_list_query(ListFilter(search='!!!'), ListScope.PUBLIC)
    assert query.search_terms == []
    assert query.matches_nothing()


def test_pagination_second_page_has_prev_only_when_total_fits():
    list_filter = ListFilter(page=2, limit=10)
    assert build_pagination(list_filter, 20) == {'prev': {'page': 1, 'limit': 10}}
    assert build_pagination(list_filter, 15) == {'prev': {'page': 1, 'limit': 10}}


def test_pagination_next_and_prev():
    list_filter = ListFilter(page=2, limit=10)
    assert build_pagination(list_filter, 21) == {
        'next': {'page': 3, 'limit': 10},
        'prev': {'page': 1, 'limit': 10},
    }
    assert build_pagination(ListFilter(), 5) == {}
