"""Push gateway backends for notifications."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol, Sequence

import httpx
from loguru import logger

from challengeties_api.core.settings import settings

DEVICE_NOT_REGISTERED = "DeviceNotRegistered"

_EXPO_TOKEN = re.compile(r"^(ExponentPushToken|ExpoPushToken)\[.+\]$")
_DEVICE_UUID_TOKEN = re.compile(
    r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$",
    re.IGNORECASE,
)


@dataclass(slots=True)
class PushMessage:
    """Single push addressed to one device token."""

    to: str
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    sound: str | None = "default"

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "to": self.to,
            "title": self.title,
            "body": self.body,
            "data": self.data,
        }
        if self.sound:
            payload["sound"] = self.sound
        return payload


@dataclass(slots=True)
class PushTicket:
    """Gateway verdict for one message of a batch."""

    destination: str
    ok: bool
    error: str | None = None
    message: str | None = None
    ticket_id: str | None = None

    @property
    def destination_invalid(self) -> bool:
        return not self.ok and self.error == DEVICE_NOT_REGISTERED


class PushGatewayError(RuntimeError):
    """Raised when a whole batch could not be handed to the gateway."""


class PushGateway(Protocol):
    """Protocol for push notification connectors."""

    max_batch_size: int

    def is_valid_destination(self, destination: str) -> bool:
        ...

    async def send(self, messages: Sequence[PushMessage]) -> list[PushTicket]:
        ...


def is_expo_push_token(token: Any) -> bool:
    if not isinstance(token, str):
        return False
    return bool(_EXPO_TOKEN.match(token) or _DEVICE_UUID_TOKEN.match(token))


class ExpoPushGateway:
    """Expo push service connector."""

    max_batch_size = 100

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        endpoint: str | None = None,
        access_token: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._http_client = http_client
        self._endpoint = endpoint or settings.expo_push_url
        self._access_token = access_token if access_token is not None else settings.expo_access_token
        self._timeout = timeout_seconds or settings.expo_push_timeout_seconds

    def is_valid_destination(self, destination: str) -> bool:
        return is_expo_push_token(destination)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    async def send(self, messages: Sequence[PushMessage]) -> list[PushTicket]:
        if not messages:
            return []
        if len(messages) > self.max_batch_size:
            raise PushGatewayError(f"Expo accepts at most {self.max_batch_size} messages per request")

        close_client = False
        client = self._http_client
        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout)
            close_client = True

        try:
            response = await client.post(
                self._endpoint,
                json=[message.as_payload() for message in messages],
                headers=self._headers(),
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise PushGatewayError(f"Expo push request failed: {exc}") from exc
        finally:
            if close_client:
                await client.aclose()

        return self._parse_tickets(messages, payload)

    @staticmethod
    def _parse_tickets(messages: Sequence[PushMessage], payload: Any) -> list[PushTicket]:
        raw_tickets = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(raw_tickets, list) or len(raw_tickets) != len(messages):
            raise PushGatewayError("Expo push response did not contain one ticket per message")

        tickets: list[PushTicket] = []
        for message, raw in zip(messages, raw_tickets):
            raw = raw if isinstance(raw, dict) else {}
            if raw.get("status") == "ok":
                tickets.append(PushTicket(destination=message.to, ok=True, ticket_id=raw.get("id")))
                continue
            details = raw.get("details") if isinstance(raw.get("details"), dict) else {}
            tickets.append(
                PushTicket(
                    destination=message.to,
                    ok=False,
                    error=details.get("error"),
                    message=raw.get("message"),
                )
            )
        return tickets


@dataclass
class InMemoryPushGateway:
    """In-memory push gateway for tests and dry runs."""

    sent_messages: List[PushMessage]
    unregistered: set[str]
    max_batch_size: int

    def __init__(
        self,
        *,
        unregistered: Optional[Sequence[str]] = None,
        max_batch_size: int = 100,
    ) -> None:
        self.sent_messages = []
        self.unregistered = set(unregistered or ())
        self.max_batch_size = max_batch_size
        self.batches: list[int] = []

    def is_valid_destination(self, destination: str) -> bool:
        return is_expo_push_token(destination)

    async def send(self, messages: Sequence[PushMessage]) -> list[PushTicket]:
        self.batches.append(len(messages))
        tickets: list[PushTicket] = []
        for message in messages:
            self.sent_messages.append(message)
            if message.to in self.unregistered:
                tickets.append(
                    PushTicket(
                        destination=message.to,
                        ok=False,
                        error=DEVICE_NOT_REGISTERED,
                        message=f"{message.to} is not a registered push notification recipient",
                    )
                )
            else:
                tickets.append(PushTicket(destination=message.to, ok=True))
        logger.debug("In-memory push batch recorded", size=len(messages))
        return tickets


def build_default_gateway() -> PushGateway:
    if not settings.duo_nudge_push_enabled:
        return InMemoryPushGateway()
    return ExpoPushGateway()


__all__ = [
    "DEVICE_NOT_REGISTERED",
    "ExpoPushGateway",
    "InMemoryPushGateway",
    "PushGateway",
    "PushGatewayError",
    "PushMessage",
    "PushTicket",
    "build_default_gateway",
    "is_expo_push_token",
]
