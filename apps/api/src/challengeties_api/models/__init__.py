"""SQLAlchemy models package."""

from .duo_nudge import DuoNudgeRateLimit  # noqa: F401
from .user_profile import UserProfile  # noqa: F401

__all__ = ["DuoNudgeRateLimit", "UserProfile"]
