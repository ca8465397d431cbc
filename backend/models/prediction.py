import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Float, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from backend.db import Base
from backend.models.user import User

PREDICTION_STATUSES = ('active', 'closed', 'settled')


class Prediction(Base):
    __tablename__ = 'predictions'

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    has_reward = Column(Boolean, default=False, nullable=False)
    reward_per_person = Column(Float, default=0.0, nullable=False)
    total_pool = Column(Float, default=0.0, nullable=False)
    deadline = Column(DateTime, nullable=False)
    status = Column(String(20), default='active', nullable=False)  # 'active', 'closed', 'settled'
    winning_option = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow, nullable=False)

    creator = relationship(User, lazy='joined')
    options = relationship(
        'PredictionOption',
        order_by='PredictionOption.position',
        cascade='all, delete-orphan',
        lazy='selectin',
    )
    votes = relationship('Vote', cascade='all, delete-orphan', lazy='selectin')

    def is_open(self, now=None) -> bool:
        now = now or datetime.datetime.utcnow()
        return self.status == 'active' and now <= self.deadline

    def to_dict(self) -> dict:
        voters_by_option = {}
        for vote in self.votes:
            voters_by_option.setdefault(vote.option_index, []).append(vote.user_id)
        return {
            'id': self.id,
            'creator': self.creator.to_summary() if self.creator else None,
            'title': self.title,
            'description': self.description,
            'options': [
                {
                    'text': option.text,
                    'votes': voters_by_option.get(option.position, []),
                    'voteCount': len(voters_by_option.get(option.position, [])),
                }
                for option in self.options
            ],
            'hasReward': self.has_reward,
            'rewardPerPerson': self.reward_per_person,
            'totalPool': self.total_pool,
            'deadline': self.deadline.isoformat() if self.deadline else None,
            'status': self.status,
            'winningOption': self.winning_option,
            'createdAt': self.created_at.isoformat() if self.created_at else None
        }


class PredictionOption(Base):
    __tablename__ = 'prediction_options'

    id = Column(Integer, primary_key=True, index=True)
    prediction_id = Column(Integer, ForeignKey('predictions.id'), nullable=False)
    position = Column(Integer, nullable=False)  # option index as seen by clients
    text = Column(String(255), nullable=False)


class Vote(Base):
    __tablename__ = 'votes'
    __table_args__ = (
        UniqueConstraint('prediction_id', 'user_id', name='uq_votes_prediction_user'),
    )

    id = Column(Integer, primary_key=True, index=True)
    prediction_id = Column(Integer, ForeignKey('predictions.id'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    option_index = Column(Integer, nullable=False)
    amount = Column(Float, default=0.0, nullable=False)
    tx_hash = Column(String(66), nullable=True)
    is_winner = Column(Boolean, default=False, nullable=False)
    reward_amount = Column(Float, default=0.0, nullable=False)
    reward_tx_hash = Column(String(66), nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow, nullable=False)

    user = relationship(User, lazy='joined')

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'predictionId': self.prediction_id,
            'user': self.user.to_summary() if self.user else None,
            'optionIndex': self.option_index,
            'amount': self.amount,
            'txHash': self.tx_hash,
            'isWinner': self.is_winner,
            'rewardAmount': self.reward_amount,
            'rewardTxHash': self.reward_tx_hash,
            'createdAt': self.created_at.isoformat() if self.created_at else None
        }
