import logging

from flask import Blueprint, request, jsonify

from backend.services.community_service import CommunityService
from backend.utils.auth import require_auth
from backend.utils.errors import ApiError

logger = logging.getLogger(__name__)

community_bp = Blueprint('community', __name__, url_prefix='/api/community')


@community_bp.route('/posts', methods=['GET'])
def list_posts():
    """Posts newest first, with likes and comments"""
    try:
        limit = request.args.get('limit', 50, type=int)
        if limit > 100:  # Cap at 100 for performance
            limit = 100
        offset = max(0, request.args.get('offset', 0, type=int))
        return jsonify({'success': True, 'data': CommunityService.list_posts(limit, offset)}), 200

    except Exception as e:
        logger.exception("Post list failed")
        return jsonify({'error': '获取帖子失败', 'message': str(e)}), 500


@community_bp.route('/posts', methods=['POST'])
@require_auth
def create_post():
    try:
        data = request.get_json(silent=True) or {}
        post = CommunityService.create_post(request.user_id, data.get('content'), data.get('images'))
        return jsonify({'success': True, 'data': post, 'message': '发布成功'}), 201

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Post creation failed")
        return jsonify({'error': '发布失败', 'message': str(e)}), 500


@community_bp.route('/posts/<int:post_id>', methods=['DELETE'])
@require_auth
def delete_post(post_id):
    try:
        CommunityService.delete_post(request.user_id, post_id)
        return jsonify({'success': True, 'message': '删除成功'}), 200

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Post deletion failed")
        return jsonify({'error': '删除失败', 'message': str(e)}), 500


@community_bp.route('/posts/<int:post_id>/like', methods=['POST'])
@require_auth
def toggle_like(post_id):
    try:
        result = CommunityService.toggle_like(request.user_id, post_id)
        return jsonify({'success': True, 'data': result}), 200

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Like failed")
        return jsonify({'error': '点赞失败', 'message': str(e)}), 500


@community_bp.route('/posts/<int:post_id>/comments', methods=['POST'])
@require_auth
def add_comment(post_id):
    try:
        data = request.get_json(silent=True) or {}
        comment = CommunityService.add_comment(request.user_id, post_id, data.get('content'))
        return jsonify({'success': True, 'data': comment, 'message': '评论成功'}), 201

    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.exception("Comment failed")
        return jsonify({'error': '评论失败', 'message': str(e)}), 500
