import logging

from flask import Blueprint, request, jsonify

from backend.services.prediction_service import PredictionService
from backend.utils.auth import require_auth
from backend.utils.errors import ApiError

logger = logging.getLogger(__name__)

prediction_bp = Blueprint('predictions', __name__, url_prefix='/api/predictions')


@prediction_bp.route('', methods=['GET'])
def list_predictions():
    """All predictions, newest first"""
    try:
        status = request.args.get('status') or None
        return jsonify({'success': True, 'data': PredictionService.list_predictions(status)}), 200

    except Exception as e:
        logger.exception("Prediction list failed")
        return jsonify({'error': '获取预测列表失败', 'message': str(e)}), 500


@prediction_bp.route('', methods=['POST'])
@require_auth
def create_prediction():
    """Create a prediction (reward predictions are members only)"""
    try:
        data = request.get_json(silent=True) or {}
        prediction = PredictionService.create(request.user_id, data)
        return jsonify({'success': True, 'data': prediction, 'message': '预测创建成功'}), 201

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Prediction creation failed")
        return jsonify({'error': '创建预测失败', 'message': str(e)}), 500


@prediction_bp.route('/vote', methods=['POST'])
@require_auth
def vote():
    """Vote on a prediction option"""
    try:
        data = request.get_json(silent=True) or {}
        if data.get('predictionId') is None:
            return jsonify({'error': '缺少预测ID'}), 400

        result = PredictionService.vote(
            user_id=request.user_id,
            prediction_id=data.get('predictionId'),
            option_index=data.get('optionIndex'),
            amount=data.get('amount'),
            tx_hash=data.get('txHash')
        )
        return jsonify({'success': True, 'message': '投票成功！', 'data': result}), 200

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Vote failed")
        return jsonify({'error': '投票失败', 'message': str(e)}), 500


@prediction_bp.route('/<int:prediction_id>', methods=['GET'])
def get_prediction(prediction_id):
    """Prediction details with its votes"""
    try:
        return jsonify({'success': True, 'data': PredictionService.get_detail(prediction_id)}), 200

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Prediction detail failed")
        return jsonify({'error': '获取预测详情失败', 'message': str(e)}), 500


@prediction_bp.route('/<int:prediction_id>/close', methods=['POST'])
@require_auth
def close_prediction(prediction_id):
    """Stop accepting votes (creator only)"""
    try:
        prediction = PredictionService.close(request.user_id, prediction_id)
        return jsonify({'success': True, 'data': prediction}), 200

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Prediction close failed")
        return jsonify({'error': '关闭预测失败', 'message': str(e)}), 500


@prediction_bp.route('/<int:prediction_id>/settle', methods=['POST'])
@require_auth
def settle_prediction(prediction_id):
    """Set the winning option and compute rewards (creator only)"""
    try:
        data = request.get_json(silent=True) or {}
        result = PredictionService.settle(request.user_id, prediction_id, data.get('winningOption'))
        return jsonify({'success': True, 'data': result}), 200

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Prediction settle failed")
        return jsonify({'error': '结算失败', 'message': str(e)}), 500
