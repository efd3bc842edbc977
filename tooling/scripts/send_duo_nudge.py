#!/usr/bin/env python3
"""Send a duo nudge through the public API, the same way the mobile client does.

Usage:
    python tooling/scripts/send_duo_nudge.py \
        --base-url http://localhost:8000 \
        --session-user alice \
        --challenge-id c1 --selected-days 30 --partner-id bob --type manual

The call never fails the caller's flow: transport problems and error statuses
come back as ``{"ok": false, "reason": ...}`` and the exit code stays 0.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any, Dict, Optional

import httpx
from loguru import logger

NUDGE_PATH = "/api/v1/duo/nudges"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send a duo accountability nudge")
    parser.add_argument(
        "--base-url",
        default="http://localhost:8000",
        help="Base URL of the ChallengeTies API service.",
    )
    parser.add_argument("--session-user", required=True, help="Authenticated caller id (X-Session-User).")
    parser.add_argument("--type", choices=("auto", "manual"), default="manual", help="Nudge kind.")
    parser.add_argument("--challenge-id", default=None, help="Challenge id of the duo.")
    parser.add_argument("--selected-days", type=int, default=None, help="Challenge duration in days.")
    parser.add_argument("--partner-id", default=None, help="Expected duo partner id.")
    parser.add_argument("--unique-key", default=None, help="Legacy composite duo key.")
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="HTTP request timeout in seconds.",
    )
    return parser.parse_args()


def build_payload(
    *,
    nudge_type: str,
    challenge_id: Optional[str] = None,
    selected_days: Optional[int] = None,
    partner_id: Optional[str] = None,
    unique_key: Optional[str] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "type": nudge_type,
        "challengeId": challenge_id,
        "selectedDays": selected_days,
        "partnerId": partner_id,
        "uniqueKey": unique_key,
    }
    return {key: value for key, value in payload.items() if value is not None}


def _error_reason(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    if isinstance(detail, dict) and detail.get("message"):
        return str(detail["message"])
    if isinstance(detail, str) and detail:
        return detail
    return "call_failed"


async def send_duo_nudge(
    client: httpx.AsyncClient,
    payload: Dict[str, Any],
    *,
    session_user: str,
) -> Dict[str, Any]:
    try:
        response = await client.post(NUDGE_PATH, json=payload, headers={"X-Session-User": session_user})
    except httpx.HTTPError as exc:
        logger.warning("Duo nudge call failed", error=str(exc))
        return {"ok": False, "reason": str(exc) or "call_failed"}

    if response.is_error:
        reason = _error_reason(response)
        logger.warning("Duo nudge rejected", status_code=response.status_code, reason=reason)
        return {"ok": False, "reason": reason}

    try:
        data = response.json()
    except ValueError:
        data = None
    if not isinstance(data, dict):
        return {"ok": False, "reason": "no_data"}
    return data


async def main() -> None:
    args = parse_args()
    payload = build_payload(
        nudge_type=args.type,
        challenge_id=args.challenge_id,
        selected_days=args.selected_days,
        partner_id=args.partner_id,
        unique_key=args.unique_key,
    )
    async with httpx.AsyncClient(base_url=args.base_url, timeout=args.timeout) as client:
        result = await send_duo_nudge(client, payload, session_user=args.session_user)
    print(json.dumps(result, ensure_ascii=False))


if __name__ == "__main__":
    asyncio.run(main())
