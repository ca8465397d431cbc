import logging
import re
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from sqlalchemy import or_

from backend.db import get_db_session
from backend.models.user import User
from backend.utils.errors import BadRequest, NotFound, Unauthorized
from config import get_config

logger = logging.getLogger(__name__)

ADDRESS_RE = re.compile(r'^0x[0-9a-fA-F]{40}$')


def recover_signer(message: str, signature: str) -> str:
    """Address that produced a personal_sign signature over message"""
    return Account.recover_message(encode_defunct(text=message), signature=signature)


class AuthService:
    """Service for user authentication and management"""

    @staticmethod
    def create_user(username: str, password: str, email: Optional[str] = None) -> User:
        """Create a password account"""
        username = (username or '').strip()
        email = (email or '').strip() or None
        if not username or not password:
            raise BadRequest('用户名和密码不能为空')
        if len(password) < get_config().MIN_PASSWORD_LENGTH:
            raise BadRequest(f'密码至少需要{get_config().MIN_PASSWORD_LENGTH}位')
        if email and ('@' not in email or '.' not in email):
            raise BadRequest('邮箱格式不正确')

        with next(get_db_session()) as db:
            conditions = [User.username == username]
            if email:
                conditions.append(User.email == email)
            if db.query(User).filter(or_(*conditions)).first():
                raise BadRequest('用户名或邮箱已被使用')

            user = User(username=username, email=email, display_name=username)
            user.set_password(password)
            user.update_last_login()
            db.add(user)
            db.commit()
            logger.info(f"Registered user {user.id} ({username})")
            return user

    @staticmethod
    def authenticate_user(username: str, password: str) -> User:
        """Authenticate a user by username and password"""
        if not username or not password:
            raise BadRequest('用户名和密码不能为空')

        with next(get_db_session()) as db:
            user = db.query(User).filter(User.username == username.strip()).first()
            if not user or not user.check_password(password):
                raise Unauthorized('用户名或密码错误')

            user.update_last_login()
            db.commit()
            return user

    @staticmethod
    def wallet_login(address: str, message: str, signature: str) -> User:
        """Verify a personal_sign signature and find or create the wallet's user"""
        if not address or not message or not signature:
            raise BadRequest('缺少地址、消息或签名')
        if not ADDRESS_RE.match(address):
            raise BadRequest('钱包地址格式不正确')

        try:
            recovered = recover_signer(message, signature)
        except Exception as e:
            # eth_account raises a mix of ValueError/TypeError/BadSignature for garbage input
            logger.info(f"Signature recovery failed for {address}: {e}")
            raise BadRequest('签名格式不正确')

        if recovered.lower() != address.lower():
            raise Unauthorized('签名验证失败')

        wallet = address.lower()
        with next(get_db_session()) as db:
            user = db.query(User).filter(User.wallet_address == wallet).first()
            if not user:
                user = User(wallet_address=wallet, username=User.default_username(address))
                # default usernames can collide (same 6-char prefix); fall back to the full address
                if db.query(User).filter(User.username == user.username).first():
                    user.username = f"用户{wallet}"
                db.add(user)
                logger.info(f"Created wallet user for {wallet}")
            user.update_last_login()
            db.commit()
            return user

    @staticmethod
    def get_user_by_id(user_id: int) -> Optional[User]:
        """Get user by ID"""
        with next(get_db_session()) as db:
            return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def require_user(user_id: int) -> User:
        user = AuthService.get_user_by_id(user_id)
        if not user:
            raise NotFound('用户不存在')
        return user
