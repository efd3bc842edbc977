"""Locate both halves of a duo and derive the canonical pair identity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from loguru import logger

from .errors import FailedPreconditionError, InvalidArgumentError, PermissionDeniedError
from .progress import DuoProgressItem


@dataclass(frozen=True)
class PairIdentity:
    """Order independent key for one (challenge, duration, pair of users) tuple."""

    challenge_id: str
    selected_days: int
    first_user_id: str
    second_user_id: str

    @classmethod
    def build(cls, challenge_id: str, selected_days: int, user_a: str, user_b: str) -> "PairIdentity":
        first, second = sorted((str(user_a or ""), str(user_b or "")))
        return cls(
            challenge_id=str(challenge_id or "").strip(),
            selected_days=int(selected_days or 0),
            first_user_id=first,
            second_user_id=second,
        )

    @property
    def key(self) -> str:
        return f"{self.challenge_id}_{self.selected_days}_{self.first_user_id}-{self.second_user_id}"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class DuoAddress:
    """How the client pointed at its duo: a legacy composite key and/or the stable triple."""

    legacy_key: str | None = None
    challenge_id: str | None = None
    selected_days: int = 0
    partner_id: str | None = None

    @property
    def has_stable_triple(self) -> bool:
        return bool(self.challenge_id and self.selected_days and self.partner_id)

    @property
    def is_addressable(self) -> bool:
        return self.has_stable_triple or bool(self.legacy_key)


@dataclass(frozen=True)
class ResolvedPair:
    caller_item: DuoProgressItem
    partner_id: str
    challenge_id: str
    selected_days: int
    identity: PairIdentity


def _find_caller_item(items: Sequence[DuoProgressItem], address: DuoAddress) -> DuoProgressItem | None:
    if address.has_stable_triple:
        for item in items:
            if item.matches_triple(address.challenge_id, address.selected_days, address.partner_id):  # type: ignore[arg-type]
                return item
    if address.legacy_key:
        for item in items:
            if item.matches_legacy_key(address.legacy_key):
                return item
    return None


def resolve_caller_pair(
    caller_id: str,
    items: Sequence[DuoProgressItem],
    address: DuoAddress,
) -> ResolvedPair:
    """Find the caller's duo entry and the partner id it trusts.

    The partner id always comes from the stored entry. A client supplied partner
    id is only cross-checked against it.
    """

    if address.partner_id and address.partner_id == caller_id:
        raise InvalidArgumentError("Cannot nudge yourself.")

    caller_item = _find_caller_item(items, address)
    if caller_item is None:
        raise FailedPreconditionError("Duo challenge not found for caller.")

    partner_id = caller_item.partner_id or ""
    if not partner_id:
        raise FailedPreconditionError("Missing duoPartnerId.")
    if partner_id == caller_id:
        raise InvalidArgumentError("Cannot nudge yourself.")

    if address.partner_id and address.partner_id != partner_id:
        logger.warning(
            "Duo nudge partner mismatch",
            caller_id=caller_id,
            supplied_partner_id=address.partner_id,
        )
        raise PermissionDeniedError("Invalid partner for this duo.")

    if not caller_item.challenge_id or not caller_item.selected_days:
        raise FailedPreconditionError("Missing challengeId/selectedDays for duo nudge.")

    identity = PairIdentity.build(
        caller_item.challenge_id,
        caller_item.selected_days,
        caller_id,
        partner_id,
    )
    return ResolvedPair(
        caller_item=caller_item,
        partner_id=partner_id,
        challenge_id=caller_item.challenge_id,
        selected_days=caller_item.selected_days,
        identity=identity,
    )


def find_mirror_item(
    pair: ResolvedPair,
    caller_id: str,
    partner_items: Sequence[DuoProgressItem],
    address: DuoAddress,
) -> DuoProgressItem | None:
    """Return the partner's entry pointing back at the caller, or ``None`` once dissolved."""

    for item in partner_items:
        if item.matches_triple(pair.challenge_id, pair.selected_days, caller_id):
            return item
    if address.legacy_key:
        for item in partner_items:
            if item.matches_legacy_key(address.legacy_key):
                return item
    return None


__all__ = [
    "DuoAddress",
    "PairIdentity",
    "ResolvedPair",
    "find_mirror_item",
    "resolve_caller_pair",
]
