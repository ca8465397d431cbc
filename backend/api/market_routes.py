import logging

from flask import Blueprint, jsonify, request

from backend.services.market_service import market_service
from backend.utils.errors import ApiError, UpstreamError

logger = logging.getLogger(__name__)

market_bp = Blueprint('market', __name__, url_prefix='/api/crypto')


@market_bp.route('/prices', methods=['GET'])
def get_prices():
    """Top coins by market cap (sample data when CoinGecko is unavailable)"""
    try:
        limit = request.args.get('limit', type=int)
        prices = market_service.get_prices(limit)
        return jsonify({'success': True, 'data': prices}), 200

    except Exception as e:
        logger.exception("Price lookup failed")
        return jsonify({'error': '获取价格失败', 'message': str(e)}), 500


@market_bp.route('/global', methods=['GET'])
def get_global():
    """Global market data"""
    try:
        return jsonify({'success': True, 'data': market_service.get_global()}), 200

    except Exception as e:
        logger.exception("Global market lookup failed")
        return jsonify({'error': '获取市场数据失败', 'message': str(e)}), 500


@market_bp.route('/coins/<coin_id>', methods=['GET'])
def get_coin(coin_id):
    """Single coin details"""
    try:
        return jsonify({'success': True, 'data': market_service.get_coin(coin_id)}), 200

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except UpstreamError as e:
        logger.warning(f"Coin lookup failed for {coin_id}: {e}")
        return jsonify({'error': '获取币种详情失败'}), 502
    except Exception as e:
        logger.exception("Coin lookup failed")
        return jsonify({'error': '获取币种详情失败', 'message': str(e)}), 500
