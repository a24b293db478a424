# blog_api/services/test_firestore_service.py
"""
Firestore 저장소의 쿼리 구성과 예외 변환 테스트.
실제 Firestore 대신 MagicMock 클라이언트를 사용합니다.

사용법: python -m pytest blog_api/services/test_firestore_service.py -v
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock, call

import pytest
from google.api_core.exceptions import NotFound

from blog_api.models.post import Comment
from blog_api.services.firestore_service import (
    FIRESTORE_MAX_INT, LIST_FIELDS, FirestorePostStore, FirestoreUserDirectory,
)
from blog_api.services.post_store import PostQuery, PostMissingError, SortDirection


def _chain():
    """where/order_by/select/offset/limit가 자기 자신을 반환하는 쿼리 목"""
    query = MagicMock(name='query')
    for method in ('where', 'order_by', 'select', 'offset', 'limit'):
        getattr(query, method).return_value = query
    return query


def _snapshot(doc_id, data, exists=True):
    snapshot = MagicMock()
    snapshot.id = doc_id
    snapshot.exists = exists
    snapshot.to_dict.return_value = data
    return snapshot


def _post_doc(post_id, **overrides):
    doc = {
        'post_id': post_id,
        'title': '파이어스토어 글',
        'content': '본문',
        'author_id': 'alice',
        'slug': f'slug-{post_id}',
        'status': 'published',
        'tags': ['python'],
        'search_keywords': ['파이어스토어'],
        'created_at': datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        'updated_at': datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def collections():
    return {'posts': _chain(), 'post_slugs': _chain(), 'users': _chain()}


@pytest.fixture
def db(collections):
    client = MagicMock(name='db')
    client.collection.side_effect = lambda name: collections[name]
    return client


@pytest.fixture
def fs_store(db):
    return FirestorePostStore(db=db)


def test_build_query_applies_filters_sort_and_projection(fs_store, collections):
    posts = collections['posts']
    query = PostQuery(
        statuses=['published'], author_id='alice', category='backend', tags=['python'],
        sort=[('published_at', SortDirection.DESCENDING), ('created_at', SortDirection.ASCENDING)],
        include_comments=False,
    )

    fs_store.build_query(query)

    posts.where.assert_has_calls([
        call('status', '==', 'published'),
        call('author_id', '==', 'alice'),
        call('category', '==', 'backend'),
        call('tags', 'array_contains_any', ['python']),
    ])
    posts.order_by.assert_has_calls([
        call('published_at', direction='DESCENDING'),
        call('created_at', direction='ASCENDING'),
    ])
    posts.select.assert_called_once_with(LIST_FIELDS)
    assert 'comments' not in LIST_FIELDS


def test_build_query_multiple_statuses_use_in(fs_store, collections):
    fs_store.build_query(PostQuery(statuses=['draft', 'archived']))
    collections['posts'].where.assert_called_once_with('status', 'in', ['draft', 'archived'])


def test_search_alone_is_filtered_on_server(fs_store, collections):
    query = PostQuery(search_terms=['파이어스토어'])
    fs_store.build_query(query)

    collections['posts'].where.assert_called_once_with('search_keywords', 'array_contains_any', ['파이어스토어'])
    assert fs_store.needs_client_filter(query) is False


def test_tags_and_search_filters_search_in_memory(fs_store, collections):
    posts = collections['posts']
    posts.stream.return_value = [
        _snapshot('p1', _post_doc('p1')),
        _snapshot('p2', _post_doc('p2', search_keywords=['다른단어'])),
        _snapshot('p3', _post_doc('p3')),
    ]
    query = PostQuery(tags=['python'], search_terms=['파이어스토어'], skip=1, limit=10)

    assert fs_store.needs_client_filter(query) is True
    assert fs_store.count(query) == 2
    assert [p.post_id for p in fs_store.find(query)] == ['p3']
    posts.offset.assert_not_called()


def test_find_applies_offset_and_limit(fs_store, collections):
    posts = collections['posts']
    posts.stream.return_value = [_snapshot('p1', _post_doc('p1'))]

    result = fs_store.find(PostQuery(statuses=['published'], skip=20, limit=10))

    posts.offset.assert_called_once_with(20)
    posts.limit.assert_called_once_with(10)
    assert result[0].post_id == 'p1'
    assert result[0].created_at.tzinfo == timezone.utc


def test_find_clamps_huge_offset_and_limit(fs_store, collections):
    posts = collections['posts']
    posts.stream.return_value = []

    fs_store.find(PostQuery(statuses=['published'], skip=10 ** 10, limit=10 ** 10))

    posts.offset.assert_called_once_with(FIRESTORE_MAX_INT)
    posts.limit.assert_called_once_with(FIRESTORE_MAX_INT)
    assert FIRESTORE_MAX_INT == 2 ** 31 - 1


def test_count_uses_aggregation(fs_store, collections):
    aggregate = MagicMock()
    aggregate.value = 7
    collections['posts'].count.return_value.get.return_value = [[aggregate]]

    assert fs_store.count(PostQuery(statuses=['published'])) == 7


def test_queries_that_match_nothing_skip_firestore(fs_store, collections):
    empty = PostQuery(statuses=[])
    assert fs_store.count(empty) == 0
    assert fs_store.find(empty) == []
    assert fs_store.find(PostQuery(search_terms=[])) == []
    collections['posts'].stream.assert_not_called()


def test_find_by_slug_reads_reservation(fs_store, collections):
    collections['post_slugs'].document.return_value.get.return_value = _snapshot('my-slug', {'post_id': 'p1'})
    collections['posts'].document.return_value.get.return_value = _snapshot('p1', _post_doc('p1'))

    post = fs_store.find_by_slug('my-slug')

    collections['post_slugs'].document.assert_called_with('my-slug')
    collections['posts'].document.assert_called_with('p1')
    assert post.post_id == 'p1'


def test_find_by_slug_without_reservation(fs_store, collections):
    collections['post_slugs'].document.return_value.get.return_value = _snapshot('nope', None, exists=False)
    assert fs_store.find_by_slug('nope') is None


def test_find_by_id_missing(fs_store, collections):
    collections['posts'].document.return_value.get.return_value = _snapshot('p1', None, exists=False)
    assert fs_store.find_by_id('p1') is None


def test_missing_document_updates_raise_post_missing(fs_store, collections):
    collections['posts'].document.return_value.update.side_effect = NotFound('missing')
    comment = Comment(comment_id='c1', user_id='bob', text='댓글')

    with pytest.raises(PostMissingError):
        fs_store.add_comment('p1', comment)
    with pytest.raises(PostMissingError):
        fs_store.increment_views('p1')
    with pytest.raises(PostMissingError):
        fs_store.update_by_id('p1', {'title': '새 제목'})


def test_user_directory_batches_reads(db, collections):
    db.get_all.return_value = [
        _snapshot('alice', {'name': 'Alice', 'role': 'admin'}),
        _snapshot('ghost', None, exists=False),
    ]
    directory = FirestoreUserDirectory(db=db)

    users = directory.get_users(['alice', 'ghost', 'alice', None])

    db.get_all.assert_called_once()
    assert list(users) == ['alice']
    assert users['alice'].name == 'Alice'
    assert directory.get_users([]) == {}
