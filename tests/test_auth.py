from datetime import datetime, timedelta

import jwt
from eth_account import Account
from eth_account.messages import encode_defunct

from backend.utils.auth import decode_token


def login_message(address):
    return f"欢迎登录追风观测\n\n时间: {datetime.utcnow().isoformat()}\n地址: {address}"


def sign(account, message):
    signed = account.sign_message(encode_defunct(text=message))
    return '0x' + bytes(signed.signature).hex()


def test_register_returns_token_and_user(client):
    resp = client.post('/api/auth/register', json={
        'username': 'alice', 'password': 'secret123', 'email': 'alice@example.com'})
    body = resp.get_json()

    assert resp.status_code == 201
    assert body['success'] is True
    assert body['user']['username'] == 'alice'
    assert body['user']['isMember'] is False
    assert 'password_hash' not in body['user']
    assert decode_token(body['token'])['user_id'] == body['user']['id']


def test_register_validation(client, register):
    register('alice', email='alice@example.com')

    cases = [
        ({'username': '', 'password': 'secret123'}, '用户名和密码不能为空'),
        ({'username': 'bob', 'password': '123'}, '密码至少需要6位'),
        ({'username': 'bob', 'password': 'secret123', 'email': 'not-an-email'}, '邮箱格式不正确'),
        ({'username': 'alice', 'password': 'secret123'}, '用户名或邮箱已被使用'),
        ({'username': 'carol', 'password': 'secret123', 'email': 'alice@example.com'}, '用户名或邮箱已被使用'),
    ]
    for payload, message in cases:
        resp = client.post('/api/auth/register', json=payload)
        assert resp.status_code == 400, payload
        assert resp.get_json()['error'] == message


def test_login(client, register):
    register('alice', 'secret123')

    ok = client.post('/api/auth/login', json={'username': 'alice', 'password': 'secret123'})
    assert ok.status_code == 200
    assert ok.get_json()['user']['lastLogin'] is not None

    bad = client.post('/api/auth/login', json={'username': 'alice', 'password': 'wrong-pass'})
    assert bad.status_code == 401

    unknown = client.post('/api/auth/login', json={'username': 'nobody', 'password': 'secret123'})
    assert unknown.status_code == 401


def test_me_requires_token(client, register):
    assert client.get('/api/auth/me').status_code == 401
    assert client.get('/api/auth/me', headers={'Authorization': 'Bearer garbage'}).status_code == 403

    headers, user = register()
    resp = client.get('/api/auth/me', headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()['user']['id'] == user['id']


def test_expired_token_is_rejected(client, register):
    _, user = register()
    token = jwt.encode(
        {'user_id': user['id'], 'exp': datetime.utcnow() - timedelta(minutes=1)},
        'test-jwt-secret',
        algorithm='HS256',
    )
    resp = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert resp.status_code == 403


def test_wallet_login_creates_user_once(client):
    account = Account.create()
    message = login_message(account.address)
    payload = {'address': account.address, 'message': message, 'signature': sign(account, message)}

    first = client.post('/api/auth/wallet-login', json=payload)
    assert first.status_code == 200
    user = first.get_json()['user']
    assert user['walletAddress'] == account.address.lower()
    assert user['username'] == f"用户{account.address[:6]}"

    second = client.post('/api/auth/wallet-login', json=payload)
    assert second.get_json()['user']['id'] == user['id']

    me = client.get('/api/auth/me', headers={'Authorization': f"Bearer {second.get_json()['token']}"})
    assert me.status_code == 200


def test_wallet_login_rejects_other_signer(client):
    account, other = Account.create(), Account.create()
    message = login_message(account.address)

    resp = client.post('/api/auth/wallet-login', json={
        'address': account.address, 'message': message, 'signature': sign(other, message)})

    assert resp.status_code == 401
    assert resp.get_json()['error'] == '签名验证失败'


def test_wallet_login_bad_input(client):
    account = Account.create()

    missing = client.post('/api/auth/wallet-login', json={'address': account.address})
    assert missing.status_code == 400

    bad_address = client.post('/api/auth/wallet-login', json={
        'address': '0x123', 'message': 'hi', 'signature': '0xabc'})
    assert bad_address.status_code == 400

    bad_signature = client.post('/api/auth/wallet-login', json={
        'address': account.address, 'message': 'hi', 'signature': '0x1234'})
    assert bad_signature.status_code == 400
    assert bad_signature.get_json()['error'] == '签名格式不正确'
