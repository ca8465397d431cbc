import logging
from typing import Dict, List, Optional

from backend.db import get_db_session
from backend.models.community import Comment, Post, PostLike
from backend.utils.errors import BadRequest, Forbidden, NotFound
from config import get_config

logger = logging.getLogger(__name__)


def _content(value, empty_message: str) -> str:
    content = str(value or '').strip()
    if not content:
        raise BadRequest(empty_message)
    if len(content) > get_config().MAX_POST_LENGTH:
        raise BadRequest(f'内容不能超过{get_config().MAX_POST_LENGTH}字')
    return content


class CommunityService:
    """Forum posts, likes and comments"""

    @staticmethod
    def list_posts(limit: int = 50, offset: int = 0) -> List[Dict]:
        with next(get_db_session()) as db:
            posts = (
                db.query(Post)
                .order_by(Post.created_at.desc(), Post.id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
            return [p.to_dict() for p in posts]

    @staticmethod
    def create_post(user_id: int, content, images: Optional[list] = None) -> Dict:
        content = _content(content, '请输入内容')
        images = [str(i) for i in (images or []) if i][:9]

        with next(get_db_session()) as db:
            post = Post(user_id=user_id, content=content, images=images)
            db.add(post)
            db.commit()
            db.refresh(post)
            logger.info(f"User {user_id} created post {post.id}")
            return post.to_dict()

    @staticmethod
    def toggle_like(user_id: int, post_id) -> Dict:
        with next(get_db_session()) as db:
            post = db.query(Post).filter(Post.id == post_id).first()
            if not post:
                raise NotFound('帖子不存在')

            like = db.query(PostLike).filter(
                PostLike.post_id == post.id, PostLike.user_id == user_id
            ).first()
            if like:
                db.delete(like)
                liked = False
            else:
                db.add(PostLike(post_id=post.id, user_id=user_id))
                liked = True
            db.commit()

            count = db.query(PostLike).filter(PostLike.post_id == post.id).count()
            return {'liked': liked, 'likeCount': count}

    @staticmethod
    def add_comment(user_id: int, post_id, content) -> Dict:
        content = _content(content, '请输入评论内容')

        with next(get_db_session()) as db:
            post = db.query(Post).filter(Post.id == post_id).first()
            if not post:
                raise NotFound('帖子不存在')

            comment = Comment(post_id=post.id, user_id=user_id, content=content)
            db.add(comment)
            db.commit()
            db.refresh(comment)
            return comment.to_dict()

    @staticmethod
    def delete_post(user_id: int, post_id) -> None:
        with next(get_db_session()) as db:
            post = db.query(Post).filter(Post.id == post_id).first()
            if not post:
                raise NotFound('帖子不存在')
            if post.user_id != user_id:
                raise Forbidden('只能删除自己的帖子')
            db.delete(post)
            db.commit()
