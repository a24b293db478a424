# blog_api/api/users/test_user_posts_routes.py
"""
/api/users/<user_id>/posts 엔드포인트 테스트

사용법: python -m pytest blog_api/api/users/test_user_posts_routes.py -v
"""
from blog_api.conftest import make_payload


def _seed(client, auth_header):
    client.post('/api/posts', json=make_payload(), headers=auth_header('alice'))
    client.post('/api/posts', json=make_payload(title='작성 중인 초안 글', status='draft'),
                headers=auth_header('alice'))


def test_other_viewers_see_only_published(client, auth_header):
    _seed(client, auth_header)

    anonymous = client.get('/api/users/alice/posts').get_json()
    assert anonymous['total'] == 1
    assert anonymous['data']['posts'][0]['status'] == 'published'

    bob = client.get('/api/users/alice/posts', headers=auth_header('bob')).get_json()
    assert bob['total'] == 1

    drafts = client.get('/api/users/alice/posts?status=draft', headers=auth_header('bob')).get_json()
    assert drafts['total'] == 0
    assert drafts['data']['posts'] == []


def test_owner_and_admin_see_every_status(client, auth_header):
    _seed(client, auth_header)

    assert client.get('/api/users/alice/posts', headers=auth_header('alice')).get_json()['total'] == 2
    admin = client.get('/api/users/alice/posts', headers=auth_header('admin', role='admin')).get_json()
    assert admin['total'] == 2


def test_unknown_user_is_404(client):
    res = client.get('/api/users/nobody/posts')
    assert res.status_code == 404
    assert res.get_json()['success'] is False
