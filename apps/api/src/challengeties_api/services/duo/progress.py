"""Read-only view over stored challenge progress documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping


def _clean_str(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def _coerce_days(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def _as_list(value: Any) -> tuple[Any, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return ()


@dataclass(frozen=True)
class DuoProgressItem:
    """One entry of a user's ``current_challenges`` list.

    Only ``duo`` entries matter for nudges. The four completion fields overlap on
    purpose: older clients wrote some of them, newer clients write others.
    """

    challenge_id: str | None
    selected_days: int
    is_duo: bool
    partner_id: str | None
    legacy_key: str | None = None
    last_completion_key: Any = None
    last_completion_at: Any = None
    completion_keys: tuple[Any, ...] = field(default_factory=tuple)
    completion_timestamps: tuple[Any, ...] = field(default_factory=tuple)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "DuoProgressItem":
        return cls(
            challenge_id=_clean_str(document.get("challengeId")) or _clean_str(document.get("id")),
            selected_days=_coerce_days(document.get("selectedDays")),
            is_duo=document.get("duo") is True,
            partner_id=_clean_str(document.get("duoPartnerId")),
            legacy_key=_clean_str(document.get("uniqueKey")),
            last_completion_key=document.get("lastMarkedKey"),
            last_completion_at=document.get("lastMarkedDate"),
            completion_keys=_as_list(document.get("completionDateKeys")),
            completion_timestamps=_as_list(document.get("completionDates")),
        )

    def matches_triple(self, challenge_id: str, selected_days: int, partner_id: str) -> bool:
        return (
            self.is_duo
            and self.challenge_id == challenge_id
            and self.selected_days == selected_days
            and self.partner_id == partner_id
        )

    def matches_legacy_key(self, legacy_key: str) -> bool:
        return self.is_duo and self.legacy_key == legacy_key


def parse_progress_items(documents: Iterable[Any] | None) -> list[DuoProgressItem]:
    """Parse stored progress documents, ignoring entries that are not mappings."""

    if not documents:
        return []
    return [DuoProgressItem.from_document(doc) for doc in documents if isinstance(doc, Mapping)]


__all__ = ["DuoProgressItem", "parse_progress_items"]
