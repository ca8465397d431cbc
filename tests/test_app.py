def test_root(client):
    body = client.get('/').get_json()
    assert body['status'] == 'ok'
    assert body['message'] == '追风观测后端服务运行中'
    assert 'timestamp' in body


def test_health(client):
    resp = client.get('/health')
    assert resp.status_code == 200
    assert resp.get_json() == {'status': 'ok'}


def test_unknown_route_is_json(client):
    resp = client.get('/api/does-not-exist')
    assert resp.status_code == 404
    assert resp.get_json()['error'] == '接口不存在'


def test_method_not_allowed_is_json(client):
    resp = client.delete('/health')
    assert resp.status_code == 405
    assert 'error' in resp.get_json()


def test_chinese_is_not_escaped(client):
    assert '追风观测'.encode() in client.get('/').data


def test_cors_headers(client):
    resp = client.get('/health', headers={'Origin': 'http://localhost:5173'})
    assert resp.headers.get('Access-Control-Allow-Origin') in ('*', 'http://localhost:5173')
