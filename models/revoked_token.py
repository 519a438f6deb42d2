"""
RevokedToken model: access tokens explicitly logged out before expiry.

Rows are keyed by the token's jti claim (or the SHA-256 digest of the raw
token when it has no usable jti), so membership can be tested without
verifying the token. expires_at mirrors the token's own exp claim; rows
past it are dead and get purged.
"""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from models.base_model import Base


class RevokedToken(Base):
    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    user_id = Column(String(36), nullable=True, index=True)
    revoked_at = Column(DateTime, server_default=func.now(), nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<RevokedToken jti={self.jti[:12]} expires_at={self.expires_at}>"
