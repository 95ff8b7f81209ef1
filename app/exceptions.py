"""
Application-wide exception hierarchy.

Services raise these; app.main renders every AppError as
``{"success": false, "message": ...}`` with the class's HTTP status.
"""
from typing import Any, Dict


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message}


class ValidationError(AppError):
    """Missing or invalid required fields."""
    status_code = 400


class AuthenticationError(AppError):
    """Missing, invalid or expired credential."""
    status_code = 401


class ForbiddenError(AppError):
    """Authenticated, but not allowed to touch this resource."""
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class InvalidStateError(AppError):
    """Operation not permitted given the entity's current status."""
    status_code = 400


class SimulatedPaymentFailure(AppError):
    """The synthetic decline. Recoverable by retrying with a new order."""
    status_code = 400
