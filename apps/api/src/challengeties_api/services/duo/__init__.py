"""Duo accountability nudge building blocks."""

from .completion import has_completed_today
from .day_keys import day_key_for, normalize_day_key, today_day_key
from .errors import (
    DuoNudgeError,
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
)
from .pairing import DuoAddress, PairIdentity, ResolvedPair, find_mirror_item, resolve_caller_pair
from .progress import DuoProgressItem, parse_progress_items
from .rate_limits import NudgeKind, NudgeRateLimiter, RateLimitState, RateLimitStore, SkipReason

__all__ = [
    "DuoAddress",
    "DuoNudgeError",
    "DuoProgressItem",
    "FailedPreconditionError",
    "InvalidArgumentError",
    "NotFoundError",
    "NudgeKind",
    "NudgeRateLimiter",
    "PairIdentity",
    "PermissionDeniedError",
    "RateLimitState",
    "RateLimitStore",
    "ResolvedPair",
    "SkipReason",
    "UnauthenticatedError",
    "day_key_for",
    "find_mirror_item",
    "has_completed_today",
    "normalize_day_key",
    "parse_progress_items",
    "resolve_caller_pair",
    "today_day_key",
]
