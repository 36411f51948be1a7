"""Application exception types.

Handlers and dependencies raise these; the response envelope
(`course_platform.api.responses.failure`) turns each one into exactly one
JSON body with one status code.
"""

from __future__ import annotations

from typing import Iterable, List


class AppError(Exception):
    """Base class for errors with a client-facing message."""

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(message)


class ValidationError(AppError):
    """One or more field-level validation failures."""

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors: List[str] = [str(e) for e in errors]
        super().__init__("; ".join(self.errors))


class NotFoundError(AppError):
    """Entity missing by key."""


class BadRequestError(AppError):
    """Structurally invalid or missing input, caught before reaching a model."""


class UnauthorizedError(AppError):
    """Missing / invalid credential or insufficient role."""

    reason = "unauthorized"

    def __init__(self, message: str = "", *, reason: str | None = None) -> None:
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class MissingTokenError(UnauthorizedError):
    reason = "missing_token"

    def __init__(self, message: str = "Authorization token is required.") -> None:
        super().__init__(message)


class TokenMalformedError(UnauthorizedError):
    reason = "token_invalid"

    def __init__(self, message: str = "Wrong Token") -> None:
        super().__init__(message)


class TokenExpiredError(UnauthorizedError):
    reason = "token_expired"

    def __init__(self, message: str = "Expired Token") -> None:
        super().__init__(message)


class PasswordDigestError(ValueError):
    """A stored password digest could not be parsed (data-integrity problem)."""


__all__ = [
    "AppError",
    "ValidationError",
    "NotFoundError",
    "BadRequestError",
    "UnauthorizedError",
    "MissingTokenError",
    "TokenMalformedError",
    "TokenExpiredError",
    "PasswordDigestError",
]
