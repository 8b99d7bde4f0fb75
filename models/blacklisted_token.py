from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from models.base_model import Base, _uuid_str, utcnow


class BlacklistedToken(Base):
    """
    A bearer token invalidated before its natural expiry (logout).

    expires_at mirrors the token's own exp claim; past that point the row
    carries no information and may be purged.
    """
    __tablename__ = "blacklisted_tokens"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    token = Column(Text, nullable=False, unique=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    reason = Column(String(64), nullable=True, default="logout")
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="blacklisted_tokens")

    def __repr__(self):
        return f"<BlacklistedToken user={self.user_id} expires_at={self.expires_at}>"
