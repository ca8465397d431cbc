#!/usr/bin/env python3
"""
追风观测 (Zhuifeng Observatory) - Backend API
Crypto prices, aggregated news, economic calendar, predictions and community
"""

import logging
import os
from datetime import datetime, timezone

from flask import Flask, jsonify
from flask_cors import CORS

from backend.db import init_db
from backend.api.auth_routes import auth_bp
from backend.api.community_routes import community_bp
from backend.api.market_routes import market_bp
from backend.api.membership_routes import membership_bp
from backend.api.news_routes import news_bp
from backend.api.prediction_routes import prediction_bp
from config import get_config

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s'
    )


def create_app(config_name=None):
    settings = get_config(config_name)
    configure_logging(settings.LOG_LEVEL)

    app = Flask(__name__)
    app.config.from_object(settings)
    app.json.ensure_ascii = False

    CORS(app, origins=settings.CORS_ORIGINS)

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(market_bp)
    app.register_blueprint(news_bp)
    app.register_blueprint(membership_bp)
    app.register_blueprint(prediction_bp)
    app.register_blueprint(community_bp)

    # Ensure tables exist (safe to call repeatedly)
    try:
        init_db()
    except Exception as e:
        logger.error(f"DB init error: {e}")

    @app.route('/')
    def index():
        return jsonify({
            'status': 'ok',
            'message': '追风观测后端服务运行中',
            'timestamp': datetime.now(timezone.utc).isoformat()
        })

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': '接口不存在'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'error': '请求方法不允许'}), 405

    return app


if __name__ == '__main__':
    app = create_app()
    port = int(os.environ.get('PORT', 3000))
    debug = os.environ.get('FLASK_DEBUG', 'False').lower() == 'true'
    app.run(debug=debug, host='0.0.0.0', port=port)
