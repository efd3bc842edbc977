from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "sqlite+aiosqlite:///./challengeties.db"

    # Internal API security
    internal_api_key: str = ""

    # Expo push gateway
    expo_push_url: str = "https://exp.host/--/api/v2/push/send"
    expo_access_token: str | None = None
    expo_push_timeout_seconds: float = 10.0

    # Duo nudges
    duo_nudge_push_enabled: bool = True
    duo_nudge_manual_cooldown_seconds: int = 6 * 60 * 60
    duo_nudge_manual_daily_cap: int = 2
    duo_nudge_deadline_seconds: float = 5.0
    # duo-nudge: opt-in compare-and-set reservation before send
    duo_nudge_strict_rate_limit: bool = False

    @field_validator("duo_nudge_manual_daily_cap", "duo_nudge_manual_cooldown_seconds", mode="before")
    @classmethod
    def _parse_non_negative(cls, value: object) -> int:
        if value is None or value == "":
            return 0
        parsed = int(value)  # type: ignore[arg-type]
        return max(parsed, 0)


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
