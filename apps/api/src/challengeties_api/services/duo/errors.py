"""Terminal errors raised by the duo nudge flow.

Business-rule skips are never raised; they come back as ``NudgeOutcome``
values. Everything here aborts the request and maps onto an HTTP status.
"""

from __future__ import annotations

from fastapi import status


class DuoNudgeError(Exception):
    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def as_detail(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class UnauthenticatedError(DuoNudgeError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidArgumentError(DuoNudgeError):
    code = "invalid-argument"
    status_code = status.HTTP_400_BAD_REQUEST


class FailedPreconditionError(DuoNudgeError):
    code = "failed-precondition"
    status_code = status.HTTP_412_PRECONDITION_FAILED


class PermissionDeniedError(DuoNudgeError):
    code = "permission-denied"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(DuoNudgeError):
    code = "not-found"
    status_code = status.HTTP_404_NOT_FOUND


__all__ = [
    "DuoNudgeError",
    "FailedPreconditionError",
    "InvalidArgumentError",
    "NotFoundError",
    "PermissionDeniedError",
    "UnauthenticatedError",
]
