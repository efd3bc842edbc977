"""Per pair nudge rate limiting for automatic and manual duo nudges."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, replace
from enum import Enum

from loguru import logger
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from challengeties_api.core.settings import settings
from challengeties_api.models.duo_nudge import DuoNudgeRateLimit

from .day_keys import normalize_day_key
from .pairing import PairIdentity


class NudgeKind(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"

    @classmethod
    def parse(cls, raw: object) -> "NudgeKind":
        """Unknown or missing values fall back to a manual nudge."""

        value = str(raw or "").strip().lower()
        return cls.AUTO if value == cls.AUTO.value else cls.MANUAL


class SkipReason(str, Enum):
    PARTNER_NOT_IN_DUO = "partner_not_in_duo_anymore"
    CALLER_NOT_MARKED = "caller_not_marked_today"
    RECIPIENT_ALREADY_MARKED = "recipient_already_marked_today"
    AUTO_ALREADY_SENT = "auto_already_sent_today"
    MANUAL_COOLDOWN = "manual_cooldown"
    MANUAL_DAILY_CAP = "manual_daily_cap"
    NO_VALID_PUSH_TOKEN = "no_valid_push_token"
    RATE_LIMIT_CONFLICT = "rate_limit_conflict"


def _as_utc(value: dt.datetime | None) -> dt.datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


@dataclass(frozen=True)
class RateLimitState:
    """Snapshot of one recipient's counters for a pair; ``version == 0`` means never stored."""

    auto_sent_day_key: str | None = None
    auto_last_at: dt.datetime | None = None
    manual_count: int = 0
    manual_count_day_key: str | None = None
    last_manual_at: dt.datetime | None = None
    version: int = 0

    def manual_count_for(self, today_key: str) -> int:
        if normalize_day_key(self.manual_count_day_key) != today_key:
            return 0
        return max(int(self.manual_count or 0), 0)


class NudgeRateLimiter:
    """Guard checks and state transitions; holds no storage of its own."""

    def __init__(
        self,
        *,
        manual_cooldown_seconds: int | None = None,
        manual_daily_cap: int | None = None,
    ) -> None:
        cooldown = (
            settings.duo_nudge_manual_cooldown_seconds
            if manual_cooldown_seconds is None
            else manual_cooldown_seconds
        )
        self._manual_cooldown = dt.timedelta(seconds=max(cooldown, 0))
        self._manual_daily_cap = (
            settings.duo_nudge_manual_daily_cap if manual_daily_cap is None else manual_daily_cap
        )

    @property
    def manual_cooldown(self) -> dt.timedelta:
        return self._manual_cooldown

    @property
    def manual_daily_cap(self) -> int:
        return self._manual_daily_cap

    def evaluate(
        self,
        kind: NudgeKind,
        state: RateLimitState,
        *,
        today_key: str,
        now: dt.datetime,
        caller_completed: bool,
        recipient_completed: bool,
    ) -> SkipReason | None:
        """Return the first guard that blocks this nudge, or ``None`` when it may be sent."""

        if recipient_completed:
            return SkipReason.RECIPIENT_ALREADY_MARKED

        if kind is NudgeKind.AUTO:
            if not caller_completed:
                return SkipReason.CALLER_NOT_MARKED
            if normalize_day_key(state.auto_sent_day_key) == today_key:
                return SkipReason.AUTO_ALREADY_SENT
            return None

        last_manual_at = _as_utc(state.last_manual_at)
        if last_manual_at is not None and self._manual_cooldown:
            if _as_utc(now) - last_manual_at < self._manual_cooldown:
                return SkipReason.MANUAL_COOLDOWN
        if state.manual_count_for(today_key) >= self._manual_daily_cap:
            return SkipReason.MANUAL_DAILY_CAP
        return None

    def advance(
        self,
        kind: NudgeKind,
        state: RateLimitState,
        *,
        today_key: str,
        now: dt.datetime,
    ) -> RateLimitState:
        """State after a successful send."""

        if kind is NudgeKind.AUTO:
            return replace(state, auto_sent_day_key=today_key, auto_last_at=now)
        return replace(
            state,
            manual_count=state.manual_count_for(today_key) + 1,
            manual_count_day_key=today_key,
            last_manual_at=now,
        )


class RateLimitStore:
    """Reads and writes ``duo_nudge_rate_limits`` rows for one session."""

    def __init__(self, session: AsyncSession) -> None:
        self._db = session

    @staticmethod
    def _row_filter(recipient_id: str, pair: PairIdentity):
        return (
            DuoNudgeRateLimit.recipient_id == recipient_id,
            DuoNudgeRateLimit.pair_key == pair.key,
        )

    async def load(self, recipient_id: str, pair: PairIdentity) -> RateLimitState:
        stmt = select(
            DuoNudgeRateLimit.auto_sent_day_key,
            DuoNudgeRateLimit.auto_last_at,
            DuoNudgeRateLimit.manual_count,
            DuoNudgeRateLimit.manual_count_day_key,
            DuoNudgeRateLimit.last_manual_at,
            DuoNudgeRateLimit.version,
        ).where(*self._row_filter(recipient_id, pair))
        row = (await self._db.execute(stmt)).first()
        if row is None:
            return RateLimitState()
        return RateLimitState(
            auto_sent_day_key=row.auto_sent_day_key,
            auto_last_at=_as_utc(row.auto_last_at),
            manual_count=int(row.manual_count or 0),
            manual_count_day_key=row.manual_count_day_key,
            last_manual_at=_as_utc(row.last_manual_at),
            version=int(row.version or 0),
        )

    async def save(
        self,
        recipient_id: str,
        pair: PairIdentity,
        state: RateLimitState,
        *,
        expected_version: int | None = None,
    ) -> bool:
        """Write ``state`` and commit.

        With ``expected_version=None`` the write is unconditional (last writer
        wins). Otherwise it is a compare-and-set against the stored version and
        ``False`` means another request updated the entry first.
        """

        values = {
            "auto_sent_day_key": state.auto_sent_day_key,
            "auto_last_at": state.auto_last_at,
            "manual_count": state.manual_count,
            "manual_count_day_key": state.manual_count_day_key,
            "last_manual_at": state.last_manual_at,
        }

        if expected_version == 0:
            return await self._insert(recipient_id, pair, values)

        stmt = (
            update(DuoNudgeRateLimit)
            .where(*self._row_filter(recipient_id, pair))
            .values(**values, version=DuoNudgeRateLimit.version + 1)
        )
        if expected_version is not None:
            stmt = stmt.where(DuoNudgeRateLimit.version == expected_version)

        result = await self._db.execute(stmt)
        if result.rowcount:
            await self._db.commit()
            return True
        if expected_version is not None:
            await self._db.rollback()
            return False
        return await self._insert(recipient_id, pair, values, retry_as_update=True)

    async def _insert(
        self,
        recipient_id: str,
        pair: PairIdentity,
        values: dict[str, object],
        *,
        retry_as_update: bool = False,
    ) -> bool:
        try:
            await self._db.execute(
                insert(DuoNudgeRateLimit).values(
                    recipient_id=recipient_id,
                    pair_key=pair.key,
                    version=1,
                    **values,
                )
            )
            await self._db.commit()
        except IntegrityError:
            await self._db.rollback()
            logger.info(
                "Duo nudge rate limit entry created concurrently",
                recipient_id=recipient_id,
                pair_key=pair.key,
            )
            if not retry_as_update:
                return False
            await self._db.execute(
                update(DuoNudgeRateLimit)
                .where(*self._row_filter(recipient_id, pair))
                .values(**values, version=DuoNudgeRateLimit.version + 1)
            )
            await self._db.commit()
        return True


__all__ = [
    "NudgeKind",
    "NudgeRateLimiter",
    "RateLimitState",
    "RateLimitStore",
    "SkipReason",
]
