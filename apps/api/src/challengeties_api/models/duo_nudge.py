from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from challengeties_api.db.base import Base


class DuoNudgeRateLimit(Base):
    """Per recipient, per pair identity nudge counters."""

    __tablename__ = "duo_nudge_rate_limits"

    recipient_id = Column(
        String(128),
        ForeignKey("user_profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    pair_key = Column(String(512), primary_key=True)
    auto_sent_day_key = Column(String(8), nullable=True)
    auto_last_at = Column(DateTime(timezone=True), nullable=True)
    manual_count = Column(Integer, nullable=False, default=0, server_default="0")
    manual_count_day_key = Column(String(8), nullable=True)
    last_manual_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=1, server_default="1")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    recipient = relationship("UserProfile", back_populates="nudge_rate_limits", lazy="raise")
