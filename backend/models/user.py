import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, UniqueConstraint
from passlib.hash import bcrypt
from backend.db import Base


class User(Base):
    __tablename__ = 'users'
    __table_args__ = (
        UniqueConstraint('username', name='uq_users_username'),
        UniqueConstraint('email', name='uq_users_email'),
        UniqueConstraint('wallet_address', name='uq_users_wallet_address'),
    )

    id = Column(Integer, primary_key=True, index=True)
    wallet_address = Column(String(42), nullable=True, unique=True)  # stored lowercase
    username = Column(String(64), nullable=False, unique=True)
    display_name = Column(String(64), nullable=True)
    email = Column(String(255), nullable=True, unique=True)
    password_hash = Column(String(255), nullable=True)  # wallet-only accounts have none

    # Membership
    is_member = Column(Boolean, default=False, nullable=False)
    membership_date = Column(DateTime, nullable=True)
    membership_tx_hash = Column(String(66), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)

    @staticmethod
    def default_username(wallet_address: str) -> str:
        return f"用户{wallet_address[:6]}"

    # Password helpers
    def set_password(self, password: str) -> None:
        self.password_hash = bcrypt.hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return bcrypt.verify(password, self.password_hash)

    def update_last_login(self) -> None:
        self.last_login = datetime.datetime.utcnow()

    def to_summary(self) -> dict:
        """Compact author/creator view embedded in other payloads"""
        return {
            'id': self.id,
            'username': self.username,
            'walletAddress': self.wallet_address,
        }

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'walletAddress': self.wallet_address,
            'username': self.username,
            'displayName': self.display_name or self.username,
            'email': self.email,
            'isMember': self.is_member,
            'membershipDate': self.membership_date.isoformat() if self.membership_date else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'lastLogin': self.last_login.isoformat() if self.last_login else None
        }
