import pytest
from web3.exceptions import TransactionNotFound

from backend.services import membership_service
from backend.utils.errors import BadRequest

TX_HASH = '0x' + 'ab' * 32


def test_status_for_new_user(client, register):
    headers, _ = register()

    body = client.get('/api/membership/status', headers=headers).get_json()

    assert body['success'] is True
    assert body['isMember'] is False
    assert body['price'] == 1.0
    assert body['tokenContract'] == '0x55d398326f99059fF775485246999027B3197955'


def test_activate_membership(client, register):
    headers, _ = register()

    resp = client.post('/api/membership/activate', headers=headers,
                       json={'txHash': TX_HASH, 'blockNumber': '123'})
    assert resp.status_code == 200
    assert resp.get_json()['data']['isMember'] is True
    assert resp.get_json()['data']['membershipTxHash'] == TX_HASH

    me = client.get('/api/auth/me', headers=headers).get_json()
    assert me['user']['isMember'] is True


def test_activation_rules(client, register):
    alice, _ = register('alice')
    bob, _ = register('bob')

    assert client.post('/api/membership/activate', json={'txHash': TX_HASH}).status_code == 401
    assert client.post('/api/membership/activate', headers=alice, json={}).status_code == 400
    assert client.post('/api/membership/activate', headers=alice,
                       json={'txHash': TX_HASH, 'blockNumber': 'abc'}).status_code == 400

    assert client.post('/api/membership/activate', headers=alice, json={'txHash': TX_HASH}).status_code == 200

    reused = client.post('/api/membership/activate', headers=bob, json={'txHash': TX_HASH})
    assert reused.status_code == 400
    assert reused.get_json()['error'] == '该交易已被使用'

    again = client.post('/api/membership/activate', headers=alice, json={'txHash': '0x' + 'cd' * 32})
    assert again.status_code == 400
    assert again.get_json()['error'] == '您已经是会员了'


class FakeEth:
    def __init__(self, tx=None, receipt=None, missing=False):
        self.tx = tx or {'blockNumber': 4242}
        self.receipt = receipt or {'status': 1}
        self.missing = missing

    def get_transaction(self, tx_hash):
        if self.missing:
            raise TransactionNotFound(f"Transaction with hash {tx_hash} not found")
        return self.tx

    def get_transaction_receipt(self, tx_hash):
        return self.receipt


def fake_web3(monkeypatch, eth):
    class FakeWeb3:
        def __init__(self, provider):
            self.eth = eth

        @staticmethod
        def HTTPProvider(url, request_kwargs=None):
            return url

    monkeypatch.setattr(membership_service, 'Web3', FakeWeb3)


def test_verify_transaction_returns_block(monkeypatch):
    fake_web3(monkeypatch, FakeEth())
    assert membership_service.verify_transaction(TX_HASH, 'http://rpc') == 4242


def test_verify_transaction_missing(monkeypatch):
    fake_web3(monkeypatch, FakeEth(missing=True))
    with pytest.raises(BadRequest):
        membership_service.verify_transaction(TX_HASH, 'http://rpc')


def test_verify_transaction_reverted(monkeypatch):
    fake_web3(monkeypatch, FakeEth(receipt={'status': 0}))
    with pytest.raises(BadRequest):
        membership_service.verify_transaction(TX_HASH, 'http://rpc')


def test_activation_rejects_unknown_chain_transaction(client, register, monkeypatch):
    from config import TestingConfig
    monkeypatch.setattr(TestingConfig, 'RPC_URL', 'http://rpc')
    fake_web3(monkeypatch, FakeEth(missing=True))
    headers, _ = register()

    resp = client.post('/api/membership/activate', headers=headers, json={'txHash': TX_HASH})

    assert resp.status_code == 400
    assert resp.get_json()['error'] == '交易不存在'
