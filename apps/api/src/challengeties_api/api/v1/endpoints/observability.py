"""Observability endpoints for duo nudge telemetry."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from challengeties_api.api.dependencies.security import require_internal_api_key
from challengeties_api.observability.duo_nudges import get_duo_nudge_store


router = APIRouter(prefix="/observability", tags=["Observability"])


@router.get(
    "/duo-nudges",
    dependencies=[Depends(require_internal_api_key)],
    summary="Duo nudge observability snapshot",
)
async def get_duo_nudge_snapshot() -> dict[str, object]:
    """Aggregated nudge outcomes, skip reasons and delivery counters."""
    store = get_duo_nudge_store()
    return store.snapshot().as_dict()
