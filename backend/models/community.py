import datetime
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from backend.db import Base
from backend.models.user import User


class Post(Base):
    __tablename__ = 'posts'

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    content = Column(Text, nullable=False)
    images = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, default=datetime.datetime.utcnow, nullable=False)

    author = relationship(User, lazy='joined')
    comments = relationship(
        'Comment',
        order_by='Comment.id',
        cascade='all, delete-orphan',
        lazy='selectin',
    )
    likes = relationship('PostLike', cascade='all, delete-orphan', lazy='selectin')

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user': self.author.to_summary() if self.author else None,
            'content': self.content,
            'images': list(self.images or []),
            'likes': [like.user_id for like in self.likes],
            'likeCount': len(self.likes),
            'comments': [comment.to_dict() for comment in self.comments],
            'createdAt': self.created_at.isoformat() if self.created_at else None
        }


class Comment(Base):
    __tablename__ = 'comments'

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey('posts.id'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.datetime.utcnow, nullable=False)

    author = relationship(User, lazy='joined')

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'postId': self.post_id,
            'user': self.author.to_summary() if self.author else None,
            'content': self.content,
            'createdAt': self.created_at.isoformat() if self.created_at else None
        }


class PostLike(Base):
    __tablename__ = 'post_likes'
    __table_args__ = (
        UniqueConstraint('post_id', 'user_id', name='uq_post_likes_post_user'),
    )

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey('posts.id'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    created_at = Column(DateTime, default=datetime.datetime.utcnow, nullable=False)
