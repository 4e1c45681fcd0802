"""Turn exceptions into user-facing error responses.

Rules are checked in order and the first match wins, so narrow conditions
(a missing record is also a storage error) come before broad ones.
"""

from collections.abc import Callable
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel


class ErrorSeverity(Enum):
    """How much the failure matters to the user."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ErrorCode:
    """Stable codes clients can branch on."""

    # Input
    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_INVALID_INVITE_CODE = "ERR_INVALID_INVITE_CODE"
    ERR_ALREADY_MEMBER = "ERR_ALREADY_MEMBER"

    # Access
    ERR_AUTHENTICATION_FAILED = "ERR_AUTHENTICATION_FAILED"
    ERR_PERMISSION_DENIED = "ERR_PERMISSION_DENIED"

    # Engine
    ERR_RECORD_NOT_FOUND = "ERR_RECORD_NOT_FOUND"
    ERR_INVALID_SESSION_TRANSITION = "ERR_INVALID_SESSION_TRANSITION"
    ERR_TASK_NOT_STARTED = "ERR_TASK_NOT_STARTED"

    # Upstream
    ERR_NETWORK_ERROR = "ERR_NETWORK_ERROR"
    ERR_STORAGE = "ERR_STORAGE"

    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Error body returned to clients."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


_AUTH_PHRASES = ("authentication failed", "unauthorized", "invalid token", "failed to authenticate", "401")
_NETWORK_PHRASES = ("connection", "timeout", "network", "unreachable", "502", "503", "504")


class _Failure(NamedTuple):
    """A classified exception: lowercased message plus class name."""

    text: str
    kind: str
    raw: str


class _Rule(NamedTuple):
    matches: Callable[[_Failure], bool]
    code: str
    message: str | None  # None echoes the exception's own message
    suggestion: str
    severity: ErrorSeverity


def _is(*kinds: str) -> Callable[[_Failure], bool]:
    return lambda f: f.kind in kinds


def _mentions(*phrases: str) -> Callable[[_Failure], bool]:
    return lambda f: any(p in f.text for p in phrases)


def _either(*checks: Callable[[_Failure], bool]) -> Callable[[_Failure], bool]:
    return lambda f: any(check(f) for check in checks)


_RULES: tuple[_Rule, ...] = (
    _Rule(
        _either(_is("RecordNotFoundError", "SessionNotFoundError"), _mentions("record not found")),
        ErrorCode.ERR_RECORD_NOT_FOUND,
        "That item no longer exists.",
        "Refresh your list and try again.",
        ErrorSeverity.LOW,
    ),
    _Rule(
        _either(_is("PermissionError"), _mentions("does not belong to")),
        ErrorCode.ERR_PERMISSION_DENIED,
        "You don't have permission for this action.",
        "You can only change your own tasks and memberships.",
        ErrorSeverity.MEDIUM,
    ),
    _Rule(
        _is("InvalidSessionTransitionError"),
        ErrorCode.ERR_INVALID_SESSION_TRANSITION,
        "This card session has already finished.",
        "Start a new 'What next?' session.",
        ErrorSeverity.LOW,
    ),
    _Rule(
        _is("TaskNotStartedError"),
        ErrorCode.ERR_TASK_NOT_STARTED,
        "This task isn't in progress.",
        "Start the task or accept it from 'What next?' before completing it.",
        ErrorSeverity.LOW,
    ),
    _Rule(
        _mentions("invite code"),
        ErrorCode.ERR_INVALID_INVITE_CODE,
        "Invalid invite code.",
        "Check the code with the person who shared it.",
        ErrorSeverity.LOW,
    ),
    _Rule(
        _mentions("already a member"),
        ErrorCode.ERR_ALREADY_MEMBER,
        "You're already in this group.",
        "Open the group from your list to see its leaderboard.",
        ErrorSeverity.LOW,
    ),
    _Rule(
        _is("ValueError", "ValidationError"),
        ErrorCode.ERR_VALIDATION,
        None,
        "Correct the highlighted input and try again.",
        ErrorSeverity.LOW,
    ),
    _Rule(
        _either(_is("AuthenticationError"), _mentions(*_AUTH_PHRASES)),
        ErrorCode.ERR_AUTHENTICATION_FAILED,
        "Authentication failed.",
        "Sign in again.",
        ErrorSeverity.HIGH,
    ),
    _Rule(
        _either(_is("ConnectionError", "TimeoutError", "ConnectError"), _mentions(*_NETWORK_PHRASES)),
        ErrorCode.ERR_NETWORK_ERROR,
        "Network error occurred.",
        "Please check your connection and try again.",
        ErrorSeverity.MEDIUM,
    ),
    _Rule(
        _is("DatabaseError"),
        ErrorCode.ERR_STORAGE,
        "We couldn't save your changes.",
        "Please try again in a moment.",
        ErrorSeverity.MEDIUM,
    ),
)

_UNKNOWN = ErrorResponse(
    code=ErrorCode.ERR_UNKNOWN,
    message="An unexpected error occurred.",
    suggestion="Please try again later. If the problem persists, contact support.",
    severity=ErrorSeverity.MEDIUM,
)


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Map an exception raised while serving a request to an ErrorResponse."""
    raw = str(exception)
    failure = _Failure(text=raw.lower(), kind=type(exception).__name__, raw=raw)

    for rule in _RULES:
        if rule.matches(failure):
            return ErrorResponse(
                code=rule.code,
                message=rule.message if rule.message is not None else failure.raw,
                suggestion=rule.suggestion,
                severity=rule.severity,
            )
    return _UNKNOWN.model_copy()
