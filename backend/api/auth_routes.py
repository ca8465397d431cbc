import logging

from flask import Blueprint, request, jsonify

from backend.services.auth_service import AuthService
from backend.utils.auth import create_token, require_auth
from backend.utils.errors import ApiError

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def _login_response(user, message=None):
    body = {
        'success': True,
        'token': create_token(user),
        'user': user.to_dict()
    }
    if message:
        body['message'] = message
    return body


@auth_bp.route('/register', methods=['POST'])
def register():
    """Register a username/password account"""
    try:
        data = request.get_json(silent=True) or {}
        user = AuthService.create_user(
            username=data.get('username'),
            password=data.get('password'),
            email=data.get('email')
        )
        return jsonify(_login_response(user, '注册成功')), 201

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Registration failed")
        return jsonify({'error': '注册失败', 'message': str(e)}), 500


@auth_bp.route('/login', methods=['POST'])
def login():
    """Login with username and password"""
    try:
        data = request.get_json(silent=True) or {}
        user = AuthService.authenticate_user(data.get('username'), data.get('password'))
        return jsonify(_login_response(user, '登录成功')), 200

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Login failed")
        return jsonify({'error': '登录失败', 'message': str(e)}), 500


@auth_bp.route('/wallet-login', methods=['POST'])
def wallet_login():
    """Login with a MetaMask personal_sign signature"""
    try:
        data = request.get_json(silent=True) or {}
        user = AuthService.wallet_login(
            address=data.get('address'),
            message=data.get('message'),
            signature=data.get('signature')
        )
        return jsonify(_login_response(user)), 200

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Wallet login failed")
        return jsonify({'error': '登录失败', 'message': str(e)}), 500


@auth_bp.route('/me', methods=['GET'])
@require_auth
def me():
    """Get current user profile"""
    try:
        user = AuthService.require_user(request.user_id)
        return jsonify({'success': True, 'user': user.to_dict()}), 200

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Profile lookup failed")
        return jsonify({'error': '获取用户信息失败', 'message': str(e)}), 500
