"""
Error taxonomy shared by the session layer and the API.

Each error carries a structured code and the HTTP status it maps to:

- INVALID_CREDENTIALS: wrong quiz master password (401)
- ANSWERING_LOCKED: answer submitted while answering is locked (403)
- PLAYER_NOT_FOUND: unknown player id (404)
- INVALID_COMMAND: command not allowed in the current phase (409)
- VALIDATION_ERROR: command arguments break a game rule (400)
"""

from __future__ import annotations
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Structured error codes."""
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ANSWERING_LOCKED = "ANSWERING_LOCKED"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    INVALID_COMMAND = "INVALID_COMMAND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class QuizError(Exception):
    """Base class for errors reported to clients."""
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidCredentials(QuizError):
    error_code = ErrorCode.INVALID_CREDENTIALS
    status_code = 401


class Forbidden(QuizError):
    error_code = ErrorCode.ANSWERING_LOCKED
    status_code = 403


class NotFound(QuizError):
    error_code = ErrorCode.PLAYER_NOT_FOUND
    status_code = 404


class InvalidCommand(QuizError):
    error_code = ErrorCode.INVALID_COMMAND
    status_code = 409


class ValidationFailed(QuizError):
    error_code = ErrorCode.VALIDATION_ERROR
    status_code = 400


_ERRORS_BY_CODE: dict[str, type[QuizError]] = {
    cls.error_code.value: cls
    for cls in (InvalidCredentials, Forbidden, NotFound, InvalidCommand, ValidationFailed)
}


def error_for_code(
    error_code: str | None,
    message: str,
    details: dict[str, Any] | None = None,
) -> QuizError:
    """Build the exception matching a failed command's error code."""
    error_cls = _ERRORS_BY_CODE.get(error_code or "", QuizError)
    return error_cls(message, details)
