"""Domain error taxonomy raised by services and mapped to HTTP responses."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable failure categories produced by the failing operation."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    STORE = "store"


class CrmError(Exception):
    """Base class for domain failures; `kind` drives the HTTP status mapping."""

    kind: ErrorKind = ErrorKind.STORE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CrmError):
    """Missing/blank required field or malformed payload shape."""

    kind = ErrorKind.VALIDATION


class NotFoundError(CrmError):
    """Referenced id does not exist."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(CrmError):
    """Request conflicts with current stored state."""

    kind = ErrorKind.CONFLICT


class StoreError(CrmError):
    """Persistence call failed; the message is internal and never sent to clients."""

    kind = ErrorKind.STORE
