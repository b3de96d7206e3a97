"""Error taxonomy shared by the account service.

Every failure a caller can act on is an ``AccountError`` tagged with an
``ErrorKind``. Handlers branch on ``exc.kind``; the transport layer maps the
kind to an HTTP status in one place.

Token failures (``TokenError`` and friends) are raised only by the token
service and never cross the transport boundary: the session manager and the
request authenticator turn them into ``Unauthorized``.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal_error"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


class AccountError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, *, errors: Optional[List[Any]] = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class ValidationError(AccountError):
    kind = ErrorKind.VALIDATION
    default_message = "Invalid request"


class Unauthorized(AccountError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Unauthorized request"


class NotFound(AccountError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class Conflict(AccountError):
    kind = ErrorKind.CONFLICT
    default_message = "Resource already exists"


class InternalError(AccountError):
    kind = ErrorKind.INTERNAL


# ---- token service only ----
class TokenError(Exception):
    """Base for signature/expiry/format failures while verifying a JWT."""


class InvalidToken(TokenError):
    pass


class ExpiredToken(TokenError):
    pass


class MalformedToken(TokenError):
    pass
