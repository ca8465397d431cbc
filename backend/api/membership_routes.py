import logging

from flask import Blueprint, request, jsonify

from backend.services.membership_service import MembershipService
from backend.utils.auth import require_auth
from backend.utils.errors import ApiError

logger = logging.getLogger(__name__)

membership_bp = Blueprint('membership', __name__, url_prefix='/api/membership')


@membership_bp.route('/activate', methods=['POST'])
@require_auth
def activate():
    """Activate membership with a USDT payment tx hash"""
    try:
        data = request.get_json(silent=True) or {}
        status = MembershipService.activate(
            user_id=request.user_id,
            tx_hash=data.get('txHash'),
            block_number=data.get('blockNumber')
        )
        return jsonify({
            'success': True,
            'message': '会员激活成功！欢迎加入追风观测！',
            'data': status
        }), 200

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Membership activation failed")
        return jsonify({'error': '激活失败', 'message': str(e)}), 500


@membership_bp.route('/status', methods=['GET'])
@require_auth
def status():
    """Get membership status"""
    try:
        return jsonify({'success': True, **MembershipService.status(request.user_id)}), 200

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Membership status failed")
        return jsonify({'error': '获取会员状态失败', 'message': str(e)}), 500
