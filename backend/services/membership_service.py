import datetime
import logging
from typing import Optional

from web3 import Web3
from web3.exceptions import TransactionNotFound

from backend.db import get_db_session
from backend.models.transaction import Transaction
from backend.models.user import User
from backend.utils.errors import BadRequest, NotFound
from config import get_config

logger = logging.getLogger(__name__)


def verify_transaction(tx_hash: str, rpc_url: str) -> Optional[int]:
    """Check the payment transaction on chain; returns its block number.

    Only a missing or reverted transaction is rejected. RPC trouble is
    logged and the activation goes ahead, since BSC public nodes are flaky.
    """
    try:
        w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={'timeout': get_config().HTTP_TIMEOUT}))
        tx = w3.eth.get_transaction(tx_hash)
    except TransactionNotFound:
        raise BadRequest('交易不存在')
    except Exception as e:
        logger.warning(f"Transaction verification skipped for {tx_hash}: {e}")
        return None

    try:
        receipt = w3.eth.get_transaction_receipt(tx_hash)
        if receipt and receipt.get('status') == 0:
            raise BadRequest('交易执行失败')
    except TransactionNotFound:
        # pending: accepted, block number unknown yet
        return None
    except BadRequest:
        raise
    except Exception as e:
        logger.warning(f"Receipt lookup failed for {tx_hash}: {e}")

    return tx.get('blockNumber')


class MembershipService:
    """Membership activation paid with 1 USDT on BSC"""

    @staticmethod
    def activate(user_id: int, tx_hash: str, block_number: Optional[int] = None) -> dict:
        tx_hash = (tx_hash or '').strip()
        if not tx_hash:
            raise BadRequest('缺少交易哈希')
        if block_number in (None, ''):
            block_number = None
        else:
            try:
                block_number = int(block_number)
            except (TypeError, ValueError):
                raise BadRequest('区块号格式不正确')

        settings = get_config()
        with next(get_db_session()) as db:
            if db.query(Transaction).filter(Transaction.tx_hash == tx_hash).first():
                raise BadRequest('该交易已被使用')

            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                raise NotFound('用户不存在')
            if user.is_member:
                raise BadRequest('您已经是会员了')

            if settings.RPC_URL:
                verified_block = verify_transaction(tx_hash, settings.RPC_URL)
                if verified_block is not None:
                    block_number = verified_block

            now = datetime.datetime.utcnow()
            user.is_member = True
            user.membership_date = now
            user.membership_tx_hash = tx_hash

            db.add(Transaction(
                user_id=user.id,
                type='membership',
                amount=settings.MEMBERSHIP_PRICE,
                tx_hash=tx_hash,
                status='confirmed',
                block_number=block_number,
                confirmed_at=now,
            ))
            db.commit()
            logger.info(f"Activated membership for user {user.id} (tx {tx_hash})")
            return MembershipService._status_dict(user)

    @staticmethod
    def status(user_id: int) -> dict:
        with next(get_db_session()) as db:
            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                raise NotFound('用户不存在')
            return MembershipService._status_dict(user)

    @staticmethod
    def _status_dict(user: User) -> dict:
        settings = get_config()
        return {
            'isMember': user.is_member,
            'membershipDate': user.membership_date.isoformat() if user.membership_date else None,
            'membershipTxHash': user.membership_tx_hash,
            'price': settings.MEMBERSHIP_PRICE,
            'paymentAddress': settings.PLATFORM_ADDRESS,
            'tokenContract': settings.USDT_CONTRACT,
        }
