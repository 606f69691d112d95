"""
Hit.it – domain errors raised by the service layer.

Routers never build error responses themselves: services raise one of these
and the handler registered in ``hitit.main`` renders
``{"success": false, "error": ..., "message": ...}`` with the matching status.
"""

from typing import Optional


class HititError(Exception):
    """Base class for client-facing errors."""

    status_code: int = 400
    error: str = "Bad request"

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error

    def to_dict(self) -> dict:
        return {"success": False, "error": self.error, "message": self.message}


class UnauthorizedError(HititError):
    status_code = 401
    error = "Not authenticated"


class NotFoundError(HititError):
    status_code = 404
    error = "Not found"


class ForbiddenError(HititError):
    status_code = 403
    error = "Forbidden"


class ConflictError(HititError):
    status_code = 409
    error = "Conflict"


class ValidationError(HititError):
    status_code = 400
    error = "Validation failed"


class InviteExpiredError(HititError):
    status_code = 400
    error = "Invite expired"
