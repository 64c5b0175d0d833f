"""
Error taxonomy for the greenlight core.

Store errors are ordinary results callers are expected to branch on.
`ContractViolation` is different: it signals a defect in the calling code
(e.g. persisting a user without a password hash) and must not be caught and
ignored by production callers.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class GreenlightError(Exception):
    """Root of every recoverable greenlight error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Store errors
# ---------------------------------------------------------------------------

class StoreError(GreenlightError):
    """Base class for failures reported by the entity store."""


class RecordNotFound(StoreError):
    def __init__(self, table: str, key: Any = None):
        super().__init__("record not found", {"table": table, "key": key})
        self.table = table
        self.key = key


class EditConflict(StoreError):
    """The row's version no longer matches the version the writer observed."""

    def __init__(self, table: str, record_id: Any, expected_version: Optional[int]):
        super().__init__(
            "unable to update the record due to an edit conflict, please try again",
            {"table": table, "id": record_id, "expected_version": expected_version},
        )
        self.table = table
        self.record_id = record_id
        self.expected_version = expected_version


class DuplicateKey(StoreError):
    def __init__(self, table: str, constraint: str):
        super().__init__(
            f"duplicate key violates unique constraint {constraint}",
            {"table": table, "constraint": constraint},
        )
        self.table = table
        self.constraint = constraint


class StoreTimeout(StoreError):
    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(
            f"{operation} exceeded its {timeout_seconds:g}s deadline",
            {"operation": operation, "timeout_seconds": timeout_seconds},
        )
        self.operation = operation
        self.timeout_seconds = timeout_seconds


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------

class ValidationFailed(GreenlightError):
    """One or more input fields are invalid.

    ``errors`` maps each offending field to a human readable message so that a
    caller can report every problem in a single response.
    """

    def __init__(self, errors: Dict[str, str]):
        super().__init__("failed validation", {"errors": dict(errors)})
        self.errors = dict(errors)


class InvalidFormat(GreenlightError, ValueError):
    """A boundary codec rejected a malformed wire representation."""


class InvalidRuntimeFormat(InvalidFormat):
    def __init__(self, value: Any = None):
        super().__init__("invalid runtime format", {"value": value})


class MalformedHash(GreenlightError):
    """A stored password hash is corrupt or was produced by a foreign scheme."""


# ---------------------------------------------------------------------------
# Authentication / authorization
# ---------------------------------------------------------------------------

class InvalidCredentials(GreenlightError):
    def __init__(self, message: str = "invalid authentication credentials"):
        super().__init__(message)


class AuthenticationRequired(GreenlightError):
    def __init__(self):
        super().__init__("you must be authenticated to access this resource")


class InactiveAccount(GreenlightError):
    def __init__(self):
        super().__init__("your user account must be activated to access this resource")


class PermissionDenied(GreenlightError):
    def __init__(self, code: str):
        super().__init__(
            "your user account doesn't have the necessary permissions to access this resource",
            {"permission": code},
        )
        self.code = code


# ---------------------------------------------------------------------------
# Programming errors
# ---------------------------------------------------------------------------

class ContractViolation(AssertionError):
    """Raised when calling code breaks an invariant the core relies on."""
