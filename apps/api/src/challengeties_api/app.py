from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from challengeties_api.core.settings import settings
from .api.routes import api_router
from .core.logging import configure_logging
from .observability.tracing import configure_tracing


APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Duo nudge dispatcher starting",
        push_enabled=settings.duo_nudge_push_enabled,
        strict_rate_limit=settings.duo_nudge_strict_rate_limit,
        manual_cooldown_seconds=settings.duo_nudge_manual_cooldown_seconds,
        manual_daily_cap=settings.duo_nudge_manual_daily_cap,
    )
    if not settings.duo_nudge_push_enabled:
        logger.info(
            "Push delivery disabled",
            reason="duo_nudge_push_enabled is false",
        )
    try:
        yield
    finally:
        logger.info("Duo nudge dispatcher stopped")


def create_app() -> FastAPI:
    """Application factory for the ChallengeTies API service."""
    configure_logging(
        service_name="challengeties-api",
        environment=settings.environment,
        version=APP_VERSION,
    )

    app = FastAPI(
        title="ChallengeTies API",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    configure_tracing(
        app,
        service_name="challengeties-api",
        service_version=APP_VERSION,
        environment=settings.environment,
    )

    app.include_router(api_router)
    return app
