import pytest


@pytest.fixture
def author(register):
    return register('author')


@pytest.fixture
def post(client, author):
    headers, _ = author
    resp = client.post('/api/community/posts', headers=headers,
                       json={'content': 'ETH looks strong this week', 'images': ['https://img.example/1.png']})
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['data']


def test_create_and_list_posts(client, author, post):
    _, user = author
    assert post['user']['id'] == user['id']
    assert post['images'] == ['https://img.example/1.png']
    assert post['likeCount'] == 0

    second = client.post('/api/community/posts', headers=author[0], json={'content': 'Second post'})
    posts = client.get('/api/community/posts').get_json()['data']
    assert [p['id'] for p in posts] == [second.get_json()['data']['id'], post['id']]

    paged = client.get('/api/community/posts?limit=1&offset=1').get_json()['data']
    assert [p['id'] for p in paged] == [post['id']]


def test_post_validation(client, author):
    headers, _ = author
    assert client.post('/api/community/posts', json={'content': 'hi'}).status_code == 401
    assert client.post('/api/community/posts', headers=headers, json={'content': '   '}).status_code == 400
    assert client.post('/api/community/posts', headers=headers, json={'content': 'x' * 2001}).status_code == 400


def test_images_are_capped(client, author):
    headers, _ = author
    images = [f"https://img.example/{i}.png" for i in range(12)]
    resp = client.post('/api/community/posts', headers=headers, json={'content': 'gallery', 'images': images})
    assert len(resp.get_json()['data']['images']) == 9


def test_like_toggles(client, register, post):
    fan, user = register('fan')
    url = f"/api/community/posts/{post['id']}/like"

    liked = client.post(url, headers=fan).get_json()['data']
    assert liked == {'liked': True, 'likeCount': 1}

    posts = client.get('/api/community/posts').get_json()['data']
    assert posts[0]['likes'] == [user['id']]

    unliked = client.post(url, headers=fan).get_json()['data']
    assert unliked == {'liked': False, 'likeCount': 0}

    assert client.post('/api/community/posts/9999/like', headers=fan).status_code == 404


def test_comments(client, register, post):
    reader, user = register('reader')
    url = f"/api/community/posts/{post['id']}/comments"

    resp = client.post(url, headers=reader, json={'content': 'Agreed'})
    assert resp.status_code == 201
    assert resp.get_json()['data']['user']['id'] == user['id']

    assert client.post(url, headers=reader, json={'content': ''}).status_code == 400

    [listed] = client.get('/api/community/posts').get_json()['data']
    assert [c['content'] for c in listed['comments']] == ['Agreed']


def test_only_author_can_delete(client, register, author, post):
    stranger, _ = register('stranger')
    url = f"/api/community/posts/{post['id']}"
    client.post(f"{url}/comments", headers=stranger, json={'content': 'first!'})

    assert client.delete(url, headers=stranger).status_code == 403
    assert client.delete(url, headers=author[0]).status_code == 200
    assert client.get('/api/community/posts').get_json()['data'] == []
    assert client.delete(url, headers=author[0]).status_code == 404
