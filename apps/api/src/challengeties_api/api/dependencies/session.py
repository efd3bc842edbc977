"""Session-aware dependencies for member APIs."""

from __future__ import annotations

from fastapi import Header, HTTPException, status


async def require_session_user_id(
    session_user: str | None = Header(None, alias="X-Session-User"),
) -> str:
    """Resolve the authenticated user id forwarded by the auth gateway."""

    user_id = (session_user or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "unauthenticated", "message": "Not authenticated."},
        )
    return user_id
