from sqlalchemy import JSON, Column, DateTime, String, func
from sqlalchemy.orm import relationship

from challengeties_api.db.base import Base


class UserProfile(Base):
    """Account document slice read and written by the duo nudge dispatcher."""

    __tablename__ = "user_profiles"

    id = Column(String(128), primary_key=True)
    username = Column(String, nullable=True)
    display_name = Column(String, nullable=True)
    name = Column(String, nullable=True)
    language = Column(String(32), nullable=True)
    expo_push_token = Column(String(256), nullable=True)
    expo_push_tokens = Column(JSON, nullable=False, default=list)
    current_challenges = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    nudge_rate_limits = relationship(
        "DuoNudgeRateLimit",
        back_populates="recipient",
        cascade="all, delete-orphan",
        lazy="raise",
    )
