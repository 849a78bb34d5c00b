"""Exception hierarchy shared by the services and the API layer.

Every failure is reported once to the caller. The class tells the
operator whether nothing happened (validation, authorization,
transition) or whether a primary write already committed
(PartialFailureError).
"""

from __future__ import annotations

from typing import Any


class AgencyError(Exception):
    """Base class for all domain errors."""

    code = "AGENCY_ERROR"


class ValidationError(AgencyError):
    """Input rejected before any write."""

    code = "VALIDATION_ERROR"


class AuthorizationError(AgencyError):
    """Caller does not hold a role permitted for the action."""

    code = "FORBIDDEN"

    def __init__(self, action: str, allowed: tuple[str, ...] = ()):
        self.action = action
        self.allowed = allowed
        msg = f"Not permitted to {action}"
        if allowed:
            msg += f" (requires one of: {', '.join(allowed)})"
        super().__init__(msg)


class NotFoundError(AgencyError):
    """Referenced row does not exist."""

    code = "NOT_FOUND"

    def __init__(self, collection: str, row_id: Any):
        self.collection = collection
        self.row_id = row_id
        super().__init__(f"{collection} row '{row_id}' not found")


class DataStoreError(AgencyError):
    """The data store rejected a read or write."""

    code = "DATA_STORE_ERROR"

    def __init__(self, operation: str, collection: str, detail: str):
        self.operation = operation
        self.collection = collection
        self.detail = detail
        super().__init__(f"{operation} on '{collection}' failed: {detail}")


class PartialFailureError(AgencyError):
    """Primary write committed but a dependent write failed.

    The primary row stays committed. `saved` carries it so the caller can
    show what went through and correct the drift manually.
    """

    code = "PARTIAL_FAILURE"

    def __init__(self, message: str, saved: dict[str, Any], cause: Exception | None = None):
        self.saved = saved
        self.cause = cause
        super().__init__(message)
