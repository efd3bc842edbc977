"""Duo challenge endpoints."""

from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from opentelemetry import trace
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from challengeties_api.api.dependencies.session import require_session_user_id
from challengeties_api.core.settings import settings
from challengeties_api.db.session import get_session
from challengeties_api.services.duo import DuoNudgeError
from challengeties_api.services.duo.service import DuoNudgeService, NudgeRequest
from challengeties_api.services.notifications import PushDispatcher
from challengeties_api.services.notifications.backend import PushGateway, build_default_gateway


router = APIRouter(prefix="/duo", tags=["duo"])
tracer = trace.get_tracer(__name__)


class DuoNudgeRequest(BaseModel):
    type: Optional[str] = Field(default=None, description="'auto' or 'manual' (default)")
    uniqueKey: Optional[str] = Field(default=None, description="Legacy composite duo key")
    challengeId: Optional[str] = None
    selectedDays: Optional[int | str] = None
    partnerId: Optional[str] = None


class DuoNudgeResponse(BaseModel):
    ok: bool
    sent: bool
    skipped: bool
    reason: Optional[str] = None
    pairIdentity: Optional[str] = None
    dayKey: Optional[str] = None


def get_push_gateway() -> PushGateway:
    return build_default_gateway()


@router.post(
    "/nudges",
    response_model=DuoNudgeResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
)
async def send_duo_nudge(
    payload: DuoNudgeRequest,
    caller_id: str = Depends(require_session_user_id),
    session: AsyncSession = Depends(get_session),
    gateway: PushGateway = Depends(get_push_gateway),
) -> DuoNudgeResponse:
    """Nudge the caller's duo partner; skips are normal 200 outcomes."""

    request = NudgeRequest.from_payload(
        nudge_type=payload.type,
        unique_key=payload.uniqueKey,
        challenge_id=payload.challengeId,
        selected_days=payload.selectedDays,
        partner_id=payload.partnerId,
    )
    service = DuoNudgeService(session, dispatcher=PushDispatcher(session, gateway=gateway))

    try:
        with tracer.start_as_current_span("duo.nudge") as span:
            span.set_attribute("duo.nudge.type", request.kind.value)
            outcome = await asyncio.wait_for(
                service.send_nudge(caller_id, request),
                timeout=settings.duo_nudge_deadline_seconds,
            )
            span.set_attribute("duo.nudge.sent", outcome.sent)
            if outcome.reason:
                span.set_attribute("duo.nudge.reason", outcome.reason)
    except DuoNudgeError as error:
        raise HTTPException(status_code=error.status_code, detail=error.as_detail()) from error
    except asyncio.TimeoutError as error:
        logger.warning("Duo nudge deadline exceeded", caller_id=caller_id)
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail={"code": "deadline-exceeded", "message": "Duo nudge timed out."},
        ) from error

    return DuoNudgeResponse(**outcome.as_dict())
