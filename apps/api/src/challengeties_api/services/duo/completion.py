"""Decide whether a duo participant already checked in for the current UTC day."""

from __future__ import annotations

from typing import Callable, Iterator

from .day_keys import normalize_day_key
from .progress import DuoProgressItem

CompletionExtractor = Callable[[DuoProgressItem], Iterator[str | None]]


def _explicit_key(item: DuoProgressItem) -> Iterator[str | None]:
    if isinstance(item.last_completion_key, str):
        yield normalize_day_key(item.last_completion_key)


def _single_timestamp(item: DuoProgressItem) -> Iterator[str | None]:
    if isinstance(item.last_completion_at, str):
        yield normalize_day_key(item.last_completion_at)


def _key_history(item: DuoProgressItem) -> Iterator[str | None]:
    for key in item.completion_keys:
        yield normalize_day_key(key)


def _timestamp_history(item: DuoProgressItem) -> Iterator[str | None]:
    for stamp in reversed(item.completion_timestamps):
        yield normalize_day_key(stamp)


# Most reliable shape first. New client schemas get a new extractor appended here.
COMPLETION_EXTRACTORS: tuple[CompletionExtractor, ...] = (
    _explicit_key,
    _single_timestamp,
    _key_history,
    _timestamp_history,
)


def has_completed_today(item: DuoProgressItem | None, today_key: str) -> bool:
    if item is None or not today_key:
        return False
    for extractor in COMPLETION_EXTRACTORS:
        for candidate in extractor(item):
            if candidate is not None and candidate == today_key:
                return True
    return False


__all__ = ["COMPLETION_EXTRACTORS", "has_completed_today"]
