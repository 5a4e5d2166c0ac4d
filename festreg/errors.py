"""
festreg/errors.py
Centralized, categorical error handling.

Every failure a caller can observe belongs to exactly one category, reported
with a stable machine-readable kind plus a finer-grained code:

    Unauthenticated     401  no resolvable identity
    Forbidden           403  identity lacks the required role / relationship
    NotFound            404  referenced Event/Team/Round/User/College missing
    InvariantViolation  400  business rule rejected the command
    ConflictOnWrite     409  store constraint tripped by a concurrent writer

ERROR RESPONSE STRUCTURE:
{
    "success": false,
    "error": "InvariantViolation",
    "message": "Event is full",
    "code": "EVENT_FULL",
    "details": {} (optional)
}
"""

import logging
from typing import Optional, Dict, Any
from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorKind:
    """Stable error categories exposed to callers"""

    UNAUTHENTICATED = "Unauthenticated"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    INVARIANT_VIOLATION = "InvariantViolation"
    CONFLICT_ON_WRITE = "ConflictOnWrite"
    VALIDATION = "ValidationError"
    INTERNAL = "InternalError"


class ErrorCode:
    """Unique error codes for machine-readable error handling"""

    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_INVALID = "AUTH_INVALID"

    FORBIDDEN = "FORBIDDEN"
    ROLE_NOT_ALLOWED = "ROLE_NOT_ALLOWED"
    NOT_ORGANIZER = "NOT_ORGANIZER"
    NOT_JUDGE = "NOT_JUDGE"
    NOT_LEADER = "NOT_LEADER"
    NOT_BRANCH_REP = "NOT_BRANCH_REP"

    NOT_FOUND = "NOT_FOUND"

    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    WRONG_EVENT_TYPE = "WRONG_EVENT_TYPE"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    EVENT_FULL = "EVENT_FULL"
    TEAM_FULL = "TEAM_FULL"
    TEAM_TOO_SMALL = "TEAM_TOO_SMALL"
    TEAM_NAME_TAKEN = "TEAM_NAME_TAKEN"
    TEAM_CONFIRMED = "TEAM_CONFIRMED"
    TEAM_NOT_CONFIRMED = "TEAM_NOT_CONFIRMED"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    COLLEGE_MISMATCH = "COLLEGE_MISMATCH"
    EVENT_PAID = "EVENT_PAID"
    EVENT_PUBLISHED = "EVENT_PUBLISHED"
    ROUND_COMPLETED = "ROUND_COMPLETED"
    ROUND_OUT_OF_RANGE = "ROUND_OUT_OF_RANGE"
    NO_ROUNDS = "NO_ROUNDS"
    ROUND_IN_USE = "ROUND_IN_USE"
    NOT_IN_FINAL_ROUND = "NOT_IN_FINAL_ROUND"
    STATE_TRANSITION_INVALID = "STATE_TRANSITION_INVALID"
    DUPLICATE = "DUPLICATE"

    CONFLICT_ON_WRITE = "CONFLICT_ON_WRITE"

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Standard error response model"""
    success: bool = False
    error: str
    message: str
    code: str
    details: Optional[Dict[str, Any]] = None


class APIError(Exception):
    """Base API exception with consistent structure"""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.status_code = status_code
        self.error = error
        self.message = message
        self.code = code
        self.details = details
        super().__init__(message)

    @property
    def kind(self) -> str:
        return self.error

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        result = {
            "success": False,
            "error": self.error,
            "message": self.message,
            "code": self.code
        }
        if self.details:
            result["details"] = self.details
        return result

    def to_response(self) -> JSONResponse:
        """Convert to FastAPI JSONResponse"""
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


class UnauthenticatedError(APIError):
    """401 - no identity could be resolved for the request"""
    def __init__(self, message: str = "Not authenticated", code: str = ErrorCode.AUTH_REQUIRED):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error=ErrorKind.UNAUTHENTICATED,
            message=message,
            code=code
        )


class ForbiddenError(APIError):
    """403 - identity resolved but lacks the required role or relationship"""
    def __init__(self, message: str = "Not authorized", code: str = ErrorCode.FORBIDDEN, details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error=ErrorKind.FORBIDDEN,
            message=message,
            code=code,
            details=details
        )


class NotFoundError(APIError):
    """404 - referenced entity does not exist"""
    def __init__(self, resource: str, identifier: Any = None, code: str = ErrorCode.NOT_FOUND):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id '{identifier}' not found"
        self.resource = resource
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error=ErrorKind.NOT_FOUND,
            message=message,
            code=code
        )


class InvariantViolationError(APIError):
    """400 - a business rule rejected the command"""
    def __init__(self, message: str, code: str = ErrorCode.INVARIANT_VIOLATION, details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error=ErrorKind.INVARIANT_VIOLATION,
            message=message,
            code=code,
            details=details
        )


class ConflictOnWriteError(APIError):
    """409 - the store rejected a write because a concurrent writer got there first"""
    def __init__(self, message: str = "Concurrent update conflict, please retry", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error=ErrorKind.CONFLICT_ON_WRITE,
            message=message,
            code=ErrorCode.CONFLICT_ON_WRITE,
            details=details
        )


class InternalError(APIError):
    """500 Internal Server Error - Use sparingly, only for true internal failures"""
    def __init__(self, message: str = "An internal error occurred", log_id: Optional[str] = None):
        details = {"log_id": log_id} if log_id else None
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error=ErrorKind.INTERNAL,
            message=message,
            code=ErrorCode.INTERNAL_ERROR,
            details=details
        )


def safe_get_or_404(result: Any, resource: str, identifier: Any = None):
    """Return result or raise NotFound if None"""
    if result is None:
        raise NotFoundError(resource, identifier)
    return result
