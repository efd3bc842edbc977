"""Seed two paired user profiles for local duo nudge smoke tests."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

ROOT = Path(__file__).resolve().parents[2]
API_SRC = ROOT / "apps" / "api" / "src"
if str(API_SRC) not in sys.path:
    sys.path.insert(0, str(API_SRC))

from challengeties_api.core.settings import settings  # noqa: E402
from challengeties_api.db.base import Base  # noqa: E402
from challengeties_api.models import UserProfile  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed a duo pair for local testing")
    parser.add_argument("--first", default="alice", help="First user id.")
    parser.add_argument("--second", default="bob", help="Second user id.")
    parser.add_argument("--challenge-id", default="demo-challenge", help="Shared challenge id.")
    parser.add_argument("--selected-days", type=int, default=30, help="Shared challenge duration.")
    parser.add_argument(
        "--token",
        action="append",
        default=[],
        metavar="USER=TOKEN",
        help="Expo push token for a user, e.g. bob=ExponentPushToken[xxx]. Repeatable.",
    )
    parser.add_argument("--language", default="en", help="Language stored on both profiles.")
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing tables first (for throwaway SQLite databases).",
    )
    return parser.parse_args()


def _duo_entry(partner_id: str, challenge_id: str, selected_days: int, unique_key: str) -> dict[str, Any]:
    return {
        "challengeId": challenge_id,
        "selectedDays": selected_days,
        "duo": True,
        "duoPartnerId": partner_id,
        "uniqueKey": unique_key,
        "completionDateKeys": [],
    }


def _parse_tokens(raw: list[str]) -> dict[str, str]:
    tokens: dict[str, str] = {}
    for item in raw:
        user_id, sep, token = item.partition("=")
        if not sep or not user_id or not token:
            raise SystemExit(f"Invalid --token value: {item!r} (expected USER=TOKEN)")
        tokens[user_id] = token
    return tokens


async def seed_pair(session: AsyncSession, args: argparse.Namespace) -> None:
    tokens = _parse_tokens(args.token)
    first, second = sorted((args.first, args.second))
    unique_key = f"{args.challenge_id}_{args.selected_days}_{first}-{second}"

    for user_id, partner_id in ((args.first, args.second), (args.second, args.first)):
        profile = await session.get(UserProfile, user_id)
        entry = _duo_entry(partner_id, args.challenge_id, args.selected_days, unique_key)
        token = tokens.get(user_id)
        if profile is None:
            profile = UserProfile(id=user_id, username=user_id.title(), current_challenges=[])
            session.add(profile)

        challenges = [
            item
            for item in (profile.current_challenges or [])
            if not (
                isinstance(item, dict)
                and item.get("challengeId") == args.challenge_id
                and item.get("selectedDays") == args.selected_days
            )
        ]
        challenges.append(entry)
        profile.current_challenges = challenges
        profile.language = args.language
        if token:
            profile.expo_push_token = token
            profile.expo_push_tokens = [token]

    await session.commit()
    logger.info("Seeded duo pair", first=args.first, second=args.second, unique_key=unique_key)


async def main() -> None:
    args = parse_args()
    engine = create_async_engine(settings.database_url, future=True)
    session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        if args.create_schema:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        async with session_factory() as session:
            await seed_pair(session, args)
        print("Duo pair ready ✅")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
