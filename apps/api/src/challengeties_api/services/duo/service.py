"""Decide whether to nudge the lagging half of a duo and deliver the push."""

from __future__ import annotations

import asyncio
import datetime as dt
from dataclasses import dataclass
from typing import Any, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from challengeties_api.core.settings import settings
from challengeties_api.models.user_profile import UserProfile
from challengeties_api.observability.duo_nudges import get_duo_nudge_store
from challengeties_api.services.notifications.push import PushDispatcher
from challengeties_api.services.notifications.templates import render_duo_nudge

from .completion import has_completed_today
from .day_keys import day_key_for
from .errors import InvalidArgumentError, NotFoundError, UnauthenticatedError
from .pairing import DuoAddress, find_mirror_item, resolve_caller_pair
from .progress import DuoProgressItem, parse_progress_items
from .rate_limits import NudgeKind, NudgeRateLimiter, RateLimitStore, SkipReason

DEFAULT_SENDER_LABEL = "Your duo"


@dataclass(frozen=True)
class NudgeRequest:
    kind: NudgeKind
    address: DuoAddress

    @classmethod
    def from_payload(
        cls,
        *,
        nudge_type: Any = None,
        unique_key: Any = None,
        challenge_id: Any = None,
        selected_days: Any = None,
        partner_id: Any = None,
    ) -> "NudgeRequest":
        try:
            days = int(selected_days or 0)
        except (TypeError, ValueError):
            days = 0
        return cls(
            kind=NudgeKind.parse(nudge_type),
            address=DuoAddress(
                legacy_key=str(unique_key or "").strip() or None,
                challenge_id=str(challenge_id or "").strip() or None,
                selected_days=days,
                partner_id=str(partner_id or "").strip() or None,
            ),
        )


@dataclass(frozen=True)
class NudgeOutcome:
    sent: bool
    skipped: bool
    reason: Optional[str] = None
    pair_identity: Optional[str] = None
    day_key: Optional[str] = None
    ok: bool = True

    @classmethod
    def skip(cls, reason: SkipReason) -> "NudgeOutcome":
        return cls(sent=False, skipped=True, reason=reason.value)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"ok": self.ok, "sent": self.sent, "skipped": self.skipped}
        if self.reason is not None:
            payload["reason"] = self.reason
        if self.pair_identity is not None:
            payload["pairIdentity"] = self.pair_identity
        if self.day_key is not None:
            payload["dayKey"] = self.day_key
        return payload


@dataclass(frozen=True)
class _Participant:
    id: str
    label: str
    language: Optional[str]
    primary_token: Any
    tokens: list[Any]
    items: list[DuoProgressItem]

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "_Participant":
        label = next(
            (
                value.strip()
                for value in (profile.username, profile.display_name, profile.name)
                if isinstance(value, str) and value.strip()
            ),
            DEFAULT_SENDER_LABEL,
        )
        tokens = profile.expo_push_tokens if isinstance(profile.expo_push_tokens, list) else []
        return cls(
            id=profile.id,
            label=label,
            language=profile.language,
            primary_token=profile.expo_push_token,
            tokens=list(tokens),
            items=parse_progress_items(profile.current_challenges),
        )


class DuoNudgeService:
    """Runs one nudge request from authentication to persisted rate-limit state."""

    def __init__(
        self,
        db_session: AsyncSession,
        *,
        dispatcher: PushDispatcher | None = None,
        rate_limiter: NudgeRateLimiter | None = None,
        strict_rate_limit: bool | None = None,
    ) -> None:
        self._db = db_session
        self._dispatcher = dispatcher or PushDispatcher(db_session)
        self._limiter = rate_limiter or NudgeRateLimiter()
        self._store = RateLimitStore(db_session)
        self._strict = (
            settings.duo_nudge_strict_rate_limit if strict_rate_limit is None else strict_rate_limit
        )

    async def send_nudge(
        self,
        caller_id: str | None,
        request: NudgeRequest,
        *,
        now: dt.datetime | None = None,
    ) -> NudgeOutcome:
        caller_id = (caller_id or "").strip()
        if not caller_id:
            raise UnauthenticatedError("Not authenticated.")
        if not request.address.is_addressable:
            raise InvalidArgumentError("Missing uniqueKey or (challengeId, selectedDays, partnerId).")

        now = now or dt.datetime.now(dt.timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=dt.timezone.utc)
        now = now.astimezone(dt.timezone.utc)
        today_key = day_key_for(now)
        kind = request.kind

        caller = await self._load_participant(caller_id, "Caller not found.")
        pair = resolve_caller_pair(caller_id, caller.items, request.address)
        partner = await self._load_participant(pair.partner_id, "Partner not found.")

        log = logger.bind(nudge_type=kind.value, caller_id=caller_id, pair_key=pair.identity.key)

        partner_item = find_mirror_item(pair, caller_id, partner.items, request.address)
        if partner_item is None:
            return self._skip(kind, SkipReason.PARTNER_NOT_IN_DUO, log)

        state = await self._store.load(partner.id, pair.identity)
        blocked = self._limiter.evaluate(
            kind,
            state,
            today_key=today_key,
            now=now,
            caller_completed=has_completed_today(pair.caller_item, today_key),
            recipient_completed=has_completed_today(partner_item, today_key),
        )
        if blocked is not None:
            return self._skip(kind, blocked, log)

        destinations = self._dispatcher.collect_destinations(partner.primary_token, partner.tokens)
        if not destinations:
            return self._skip(kind, SkipReason.NO_VALID_PUSH_TOKEN, log)

        next_state = self._limiter.advance(kind, state, today_key=today_key, now=now)
        if self._strict:
            reserved = await self._store.save(
                partner.id,
                pair.identity,
                next_state,
                expected_version=state.version,
            )
            if not reserved:
                return self._skip(kind, SkipReason.RATE_LIMIT_CONFLICT, log)

        rendered = render_duo_nudge(partner.language, kind, name=caller.label)
        data = {
            "kind": "duo_nudge",
            "type": "duo-nudge",
            "nudgeType": kind.value,
            "uniqueKey": request.address.legacy_key or pair.identity.key,
            "challengeId": pair.challenge_id,
            "fromUid": caller_id,
            "todayKey": today_key,
            "rateKey": pair.identity.key,
            "lang": rendered.language,
        }
        try:
            report = await self._dispatcher.dispatch(partner.id, destinations, rendered, data)
        finally:
            # Pushes may already be out when the request deadline cancels us.
            if not self._strict:
                await asyncio.shield(self._store.save(partner.id, pair.identity, next_state))

        get_duo_nudge_store().record_outcome(kind.value, sent=True)
        log.bind(
            recipient_id=partner.id,
            destinations=report.attempted,
            delivered=report.delivered,
            failed=report.failed,
            pruned=len(report.invalid_destinations),
        ).info("Duo nudge sent")
        return NudgeOutcome(
            sent=True,
            skipped=False,
            pair_identity=pair.identity.key,
            day_key=today_key,
        )

    async def _load_participant(self, user_id: str, missing_message: str) -> _Participant:
        profile = await self._db.get(UserProfile, user_id, populate_existing=True)
        if profile is None:
            raise NotFoundError(missing_message)
        return _Participant.from_profile(profile)

    @staticmethod
    def _skip(kind: NudgeKind, reason: SkipReason, log) -> NudgeOutcome:
        get_duo_nudge_store().record_outcome(kind.value, sent=False, reason=reason.value)
        log.info("Duo nudge skipped", reason=reason.value)
        return NudgeOutcome.skip(reason)


__all__ = ["DuoNudgeService", "NudgeOutcome", "NudgeRequest"]
