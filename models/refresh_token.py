"""
RefreshToken model: persisted opaque refresh tokens.
Fields:
- token (64 hex chars, unique)
- user_id (String(36)) - FK to users.id
- created_at, expires_at
- revoked_at (null while the token is active)
"""
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, as_utc


class RefreshTokenStatus(enum.Enum):
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="refresh_tokens")

    def status(self, now: datetime) -> RefreshTokenStatus:
        """Revoked wins over expired; both are terminal."""
        if self.revoked_at is not None:
            return RefreshTokenStatus.REVOKED
        if now >= as_utc(self.expires_at):
            return RefreshTokenStatus.EXPIRED
        return RefreshTokenStatus.ACTIVE

    def __repr__(self):
        return f"<RefreshToken user={self.user_id} expires_at={self.expires_at}>"
