import logging

from flask import Blueprint, jsonify, request

from backend.services.calendar_service import IMPORTANCE_LEVELS, calendar_service
from backend.services.derivatives_service import derivatives_service
from backend.services.news_aggregator import CATEGORIES, SENTIMENTS, news_aggregator

logger = logging.getLogger(__name__)

news_bp = Blueprint('news', __name__, url_prefix='/api')


def _refresh_requested() -> bool:
    return request.args.get('refresh', '').lower() in ('1', 'true', 'yes')


@news_bp.route('/news', methods=['GET'])
def get_news():
    """Aggregated, classified and translated crypto news"""
    try:
        category = request.args.get('category', '').lower() or None
        sentiment = request.args.get('sentiment', '').lower() or None
        if category and category not in CATEGORIES:
            return jsonify({'error': f'category must be one of {", ".join(CATEGORIES)}'}), 400
        if sentiment and sentiment not in SENTIMENTS:
            return jsonify({'error': f'sentiment must be one of {", ".join(SENTIMENTS)}'}), 400

        limit = request.args.get('limit', type=int)
        if limit is not None and limit < 1:
            return jsonify({'error': 'limit must be positive'}), 400

        items = news_aggregator.get_news(
            category=category,
            sentiment=sentiment,
            limit=limit,
            refresh=_refresh_requested()
        )
        return jsonify({'success': True, 'data': items, 'count': len(items)}), 200

    except Exception as e:
        logger.exception("News aggregation failed")
        return jsonify({'error': '获取新闻失败', 'message': str(e)}), 500


@news_bp.route('/calendar', methods=['GET'])
def get_calendar():
    """Economic calendar events"""
    try:
        importance = request.args.get('importance', '').lower() or None
        if importance and importance not in IMPORTANCE_LEVELS:
            return jsonify({'error': f'importance must be one of {", ".join(IMPORTANCE_LEVELS)}'}), 400

        events = calendar_service.get_calendar(
            importance=importance,
            country=request.args.get('country') or None,
            refresh=_refresh_requested()
        )
        return jsonify({'success': True, 'data': events, 'count': len(events)}), 200

    except Exception as e:
        logger.exception("Calendar aggregation failed")
        return jsonify({'error': '获取财经日历失败', 'message': str(e)}), 500


@news_bp.route('/derivatives/metrics', methods=['GET'])
def get_derivatives_metrics():
    """Funding rate, open interest and long/short ratio per symbol"""
    try:
        symbols_arg = request.args.get('symbols', '')
        symbols = [s for s in symbols_arg.split(',') if s.strip()] or None
        if symbols and len(symbols) > 20:
            return jsonify({'error': 'at most 20 symbols per request'}), 400

        metrics = derivatives_service.get_metrics(symbols, refresh=_refresh_requested())
        return jsonify({'success': True, 'data': metrics, 'count': len(metrics)}), 200

    except Exception as e:
        logger.exception("Derivatives metrics failed")
        return jsonify({'error': '获取衍生品数据失败', 'message': str(e)}), 500
