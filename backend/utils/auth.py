from datetime import datetime, timedelta
from functools import wraps

import jwt
from flask import request, jsonify

from config import get_config


def create_token(user) -> str:
    settings = get_config()
    payload = {
        'user_id': user.id,
        'username': user.username,
        'address': user.wallet_address,
        'is_member': user.is_member,
        'exp': datetime.utcnow() + timedelta(days=settings.JWT_EXPIRES_DAYS)
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm='HS256')


def decode_token(token: str) -> dict:
    """Decode a bearer token; raises jwt.InvalidTokenError (incl. expiry)"""
    return jwt.decode(token, get_config().JWT_SECRET_KEY, algorithms=['HS256'])


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if not header.startswith('Bearer '):
        return None
    token = header.split(' ', 1)[1].strip()
    return token or None


def require_auth(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({'error': '未提供认证令牌'}), 401

        try:
            payload = decode_token(token)
            request.user_id = payload['user_id']
        except jwt.ExpiredSignatureError:
            return jsonify({'error': '令牌已过期'}), 403
        except (jwt.InvalidTokenError, KeyError):
            return jsonify({'error': '令牌无效或已过期'}), 403

        return f(*args, **kwargs)

    return decorated_function
