"""Notification service package."""

from .backend import (
    ExpoPushGateway,
    InMemoryPushGateway,
    PushGateway,
    PushGatewayError,
    PushMessage,
    PushTicket,
)
from .push import DispatchReport, PushDispatcher
from .templates import RenderedPush, normalize_language, render_duo_nudge

__all__ = [
    "DispatchReport",
    "ExpoPushGateway",
    "InMemoryPushGateway",
    "PushDispatcher",
    "PushGateway",
    "PushGatewayError",
    "PushMessage",
    "PushTicket",
    "RenderedPush",
    "normalize_language",
    "render_duo_nudge",
]
