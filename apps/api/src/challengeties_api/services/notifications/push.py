"""Push delivery with batch reconciliation and dead token cleanup."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping, Sequence

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from challengeties_api.models.user_profile import UserProfile
from challengeties_api.observability.duo_nudges import get_duo_nudge_store

from .backend import PushGateway, PushGatewayError, PushMessage, build_default_gateway
from .templates import RenderedPush


@dataclass
class DispatchReport:
    attempted: int = 0
    delivered: int = 0
    failed: int = 0
    invalid_destinations: list[str] = field(default_factory=list)
    pruned: bool = False


def _chunk(messages: Sequence[PushMessage], size: int) -> Iterator[Sequence[PushMessage]]:
    size = max(size, 1)
    for start in range(0, len(messages), size):
        yield messages[start : start + size]


class PushDispatcher:
    """Sends one rendered push to every valid device of a recipient."""

    def __init__(self, db_session: AsyncSession, gateway: PushGateway | None = None) -> None:
        self._db = db_session
        self._gateway = gateway or build_default_gateway()

    @property
    def gateway(self) -> PushGateway:
        return self._gateway

    def collect_destinations(self, primary: Any, collection: Iterable[Any] | None) -> list[str]:
        """Valid, de-duplicated tokens: primary slot first, then the collection slot."""

        candidates: list[Any] = [primary]
        if isinstance(collection, (list, tuple)):
            candidates.extend(collection)

        destinations: list[str] = []
        for candidate in candidates:
            if not isinstance(candidate, str) or candidate in destinations:
                continue
            if self._gateway.is_valid_destination(candidate):
                destinations.append(candidate)
        return destinations

    async def dispatch(
        self,
        recipient_id: str,
        destinations: Sequence[str],
        rendered: RenderedPush,
        data: Mapping[str, Any],
    ) -> DispatchReport:
        messages = [
            PushMessage(to=destination, title=rendered.title, body=rendered.body, data=dict(data))
            for destination in destinations
        ]
        report = DispatchReport(attempted=len(messages))
        invalid: list[str] = []

        for batch in _chunk(messages, self._gateway.max_batch_size):
            try:
                tickets = await self._gateway.send(batch)
            except PushGatewayError as exc:
                report.failed += len(batch)
                logger.warning(
                    "Push batch failed",
                    recipient_id=recipient_id,
                    batch_size=len(batch),
                    error=str(exc),
                )
                continue

            for ticket in tickets:
                if ticket.ok:
                    report.delivered += 1
                    continue
                report.failed += 1
                if ticket.destination_invalid and ticket.destination not in invalid:
                    invalid.append(ticket.destination)

        report.invalid_destinations = invalid
        get_duo_nudge_store().record_delivery(delivered=report.delivered, failed=report.failed)

        if invalid:
            report.pruned = await self.prune_destinations(recipient_id, invalid)
        return report

    async def prune_destinations(self, recipient_id: str, invalid: Sequence[str]) -> bool:
        """Drop unregistered tokens from both token slots; never raises."""

        dead = set(invalid)
        try:
            row = (
                await self._db.execute(
                    select(UserProfile.expo_push_token, UserProfile.expo_push_tokens).where(
                        UserProfile.id == recipient_id
                    )
                )
            ).first()
            if row is None:
                return False

            values: dict[str, Any] = {}
            stored_tokens = row.expo_push_tokens if isinstance(row.expo_push_tokens, list) else []
            remaining = [token for token in stored_tokens if token not in dead]
            if len(remaining) != len(stored_tokens):
                values["expo_push_tokens"] = remaining
            if row.expo_push_token in dead:
                values["expo_push_token"] = None
            if not values:
                return False

            await self._db.execute(
                update(UserProfile).where(UserProfile.id == recipient_id).values(**values)
            )
            await self._db.commit()
        except Exception as exc:  # pragma: no cover - best-effort cleanup
            await self._db.rollback()
            logger.warning(
                "Push token cleanup failed",
                recipient_id=recipient_id,
                tokens=len(dead),
                error=str(exc),
            )
            return False

        get_duo_nudge_store().record_pruned_destinations(len(dead))
        logger.info("Pruned unregistered push tokens", recipient_id=recipient_id, tokens=len(dead))
        return True


__all__ = ["DispatchReport", "PushDispatcher"]
