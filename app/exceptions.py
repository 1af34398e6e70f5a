"""Application error taxonomy"""

from typing import Any, Dict, Optional


class CanteenError(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__.replace("Error", "")
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(CanteenError):
    """Missing or malformed request fields"""
    status_code = 400


class UnauthorizedError(CanteenError):
    """Missing or invalid credentials"""
    status_code = 401


class ForbiddenError(CanteenError):
    """Role not permitted for the operation"""
    status_code = 403


class NotFoundError(CanteenError):
    """Referenced user, item, daily menu or reservation does not exist"""
    status_code = 404


class PolicyViolationError(CanteenError):
    """Cutoff or deadline passed, day locked, item not planned, bad category"""
    status_code = 400


class ConflictError(CanteenError):
    """Quota exhausted or duplicate reservation for a category"""
    status_code = 409


class InternalError(CanteenError):
    """Unexpected storage or transaction failure"""
    status_code = 500
