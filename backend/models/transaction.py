import datetime
from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey
from backend.db import Base

TRANSACTION_TYPES = ('membership', 'prediction', 'reward')
TRANSACTION_STATUSES = ('pending', 'confirmed', 'failed')


class Transaction(Base):
    """On-chain payment recorded against a user (tx_hash can only be used once)"""
    __tablename__ = 'transactions'

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    type = Column(String(20), nullable=False)  # 'membership', 'prediction', 'reward'
    amount = Column(Float, nullable=False)  # USDT
    tx_hash = Column(String(66), nullable=False, unique=True)
    status = Column(String(20), default='pending', nullable=False)
    block_number = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow, nullable=False)
    confirmed_at = Column(DateTime, nullable=True)
