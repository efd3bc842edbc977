from __future__ import annotations

import json

import httpx
import pytest

from challengeties_api.models import UserProfile
from challengeties_api.observability.duo_nudges import get_duo_nudge_store
from challengeties_api.services.notifications.backend import (
    ExpoPushGateway,
    InMemoryPushGateway,
    PushGatewayError,
    PushMessage,
    is_expo_push_token,
)
from challengeties_api.services.notifications.push import PushDispatcher
from challengeties_api.services.notifications.templates import RenderedPush

RENDERED = RenderedPush(title="Quick reminder 👀", body="Alice is nudging you. Let’s go!", language="en")
TOKEN_A = "ExponentPushToken[device-a]"
TOKEN_B = "ExpoPushToken[device-b]"
TOKEN_DEAD = "ExponentPushToken[device-dead]"


@pytest.mark.parametrize(
    ("token", "valid"),
    [
        (TOKEN_A, True),
        (TOKEN_B, True),
        ("0f8fad5b-d9cb-469f-a165-70867728950e", True),
        ("ExponentPushToken[]", False),
        ("apns:abcdef", False),
        ("", False),
        (None, False),
        (123, False),
    ],
)
def test_is_expo_push_token(token, valid) -> None:
    assert is_expo_push_token(token) is valid


@pytest.mark.asyncio
async def test_expo_gateway_posts_batch_and_parses_tickets():
    captured: dict[str, object] = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["authorization"] = request.headers.get("Authorization")
        captured["payload"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "data": [
                    {"status": "ok", "id": "ticket-1"},
                    {
                        "status": "error",
                        "message": f"{TOKEN_DEAD} is not a registered push notification recipient",
                        "details": {"error": "DeviceNotRegistered"},
                    },
                ]
            },
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        gateway = ExpoPushGateway(
            client,
            endpoint="https://push.test/send",
            access_token="expo-secret",
        )
        tickets = await gateway.send(
            [
                PushMessage(to=TOKEN_A, title="t", body="b", data={"kind": "duo_nudge"}),
                PushMessage(to=TOKEN_DEAD, title="t", body="b", data={"kind": "duo_nudge"}),
            ]
        )

    assert captured["url"] == "https://push.test/send"
    assert captured["authorization"] == "Bearer expo-secret"
    payload = captured["payload"]
    assert isinstance(payload, list) and len(payload) == 2
    assert payload[0] == {
        "to": TOKEN_A,
        "title": "t",
        "body": "b",
        "data": {"kind": "duo_nudge"},
        "sound": "default",
    }

    assert tickets[0].ok and tickets[0].ticket_id == "ticket-1"
    assert not tickets[1].ok
    assert tickets[1].destination == TOKEN_DEAD
    assert tickets[1].destination_invalid


@pytest.mark.asyncio
async def test_expo_gateway_wraps_http_failures():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"errors": [{"code": "UNAVAILABLE"}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        gateway = ExpoPushGateway(client, endpoint="https://push.test/send", access_token="")
        with pytest.raises(PushGatewayError):
            await gateway.send([PushMessage(to=TOKEN_A, title="t", body="b")])


@pytest.mark.asyncio
async def test_expo_gateway_rejects_mismatched_ticket_count():
    async def handler(request: httpx.Request) -> httpx.Response:
        assert "Authorization" not in request.headers
        return httpx.Response(200, json={"data": []})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        gateway = ExpoPushGateway(client, endpoint="https://push.test/send", access_token="")
        with pytest.raises(PushGatewayError):
            await gateway.send([PushMessage(to=TOKEN_A, title="t", body="b")])


def test_collect_destinations_dedupes_and_orders_primary_first() -> None:
    dispatcher = PushDispatcher(db_session=None, gateway=InMemoryPushGateway())  # type: ignore[arg-type]

    destinations = dispatcher.collect_destinations(
        TOKEN_B,
        [TOKEN_A, "garbage", TOKEN_B, None, TOKEN_A, 7],
    )

    assert destinations == [TOKEN_B, TOKEN_A]
    assert dispatcher.collect_destinations("garbage", "not-a-list") == []


@pytest.mark.asyncio
async def test_dispatch_chunks_by_gateway_batch_size(session_factory):
    gateway = InMemoryPushGateway(max_batch_size=2)
    tokens = [f"ExponentPushToken[device-{index}]" for index in range(5)]

    async with session_factory() as session:
        dispatcher = PushDispatcher(session, gateway=gateway)
        report = await dispatcher.dispatch("bob", tokens, RENDERED, {"kind": "duo_nudge"})

    assert gateway.batches == [2, 2, 1]
    assert report.attempted == 5
    assert report.delivered == 5
    assert report.failed == 0
    assert report.pruned is False
    assert [message.to for message in gateway.sent_messages] == tokens
    assert all(message.title == RENDERED.title for message in gateway.sent_messages)


@pytest.mark.asyncio
async def test_dispatch_prunes_unregistered_tokens_from_both_slots(session_factory):
    async with session_factory() as session:
        session.add(
            UserProfile(
                id="bob",
                username="Bob",
                expo_push_token=TOKEN_DEAD,
                expo_push_tokens=[TOKEN_A, TOKEN_DEAD, "legacy-garbage"],
            )
        )
        await session.commit()

    gateway = InMemoryPushGateway(unregistered=[TOKEN_DEAD])
    async with session_factory() as session:
        dispatcher = PushDispatcher(session, gateway=gateway)
        destinations = dispatcher.collect_destinations(TOKEN_DEAD, [TOKEN_A, TOKEN_DEAD])
        report = await dispatcher.dispatch("bob", destinations, RENDERED, {})

    assert report.delivered == 1
    assert report.failed == 1
    assert report.invalid_destinations == [TOKEN_DEAD]
    assert report.pruned is True

    async with session_factory() as session:
        bob = await session.get(UserProfile, "bob")
        assert bob is not None
        assert bob.expo_push_token is None
        assert bob.expo_push_tokens == [TOKEN_A, "legacy-garbage"]

    delivery = get_duo_nudge_store().snapshot().delivery
    assert delivery == {"delivered": 1, "failed": 1, "pruned_destinations": 1}


@pytest.mark.asyncio
async def test_gateway_batch_failure_is_reported_not_raised(session_factory):
    class FailingGateway(InMemoryPushGateway):
        async def send(self, messages):
            raise PushGatewayError("boom")

    async with session_factory() as session:
        dispatcher = PushDispatcher(session, gateway=FailingGateway())
        report = await dispatcher.dispatch("bob", [TOKEN_A, TOKEN_B], RENDERED, {})

    assert report.attempted == 2
    assert report.delivered == 0
    assert report.failed == 2
    assert report.invalid_destinations == []
    assert report.pruned is False
