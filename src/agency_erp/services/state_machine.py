"""Project and invoice status machines with transition validation."""

from __future__ import annotations

from enum import Enum

from agency_erp.errors import AgencyError


class ProjectStatus(str, Enum):
    """Project status values."""

    BRIEFING = "briefing"
    DESAIN = "desain"
    DEVELOPMENT = "development"
    REVISI = "revisi"
    LAUNCH = "launch"
    SELESAI = "selesai"


class InvoiceStatus(str, Enum):
    """Invoice payment status values."""

    DRAFT = "draft"
    MENUNGGU_DP = "menunggu_dp"
    LUNAS_DP = "lunas_dp"
    MENUNGGU_PELUNASAN = "menunggu_pelunasan"
    LUNAS = "lunas"
    OVERDUE = "overdue"
    BATAL = "batal"


class InvalidTransitionError(AgencyError):
    """Raised when an invalid state transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ProjectStateMachine:
    """State machine for project status.

    Transitions are user-directed: any status may be selected from any
    other. Re-selecting the current status is rejected, which is what
    keeps completion side effects from firing twice.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        s.value: [t.value for t in ProjectStatus if t is not s] for s in ProjectStatus
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if to_status not in cls.VALID_TRANSITIONS:
            raise InvalidTransitionError(from_status, to_status, "unknown status")
        if from_status == to_status:
            raise InvalidTransitionError(from_status, to_status, "project already has this status")
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def is_completion(cls, from_status: str, to_status: str) -> bool:
        """Check if this transition realizes the developer fee."""
        return to_status == ProjectStatus.SELESAI and from_status != ProjectStatus.SELESAI

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])


class InvoiceStateMachine:
    """State machine for invoice payment status.

    Only entering or leaving 'lunas' carries ledger side effects.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        s.value: [t.value for t in InvoiceStatus if t is not s] for s in InvoiceStatus
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        return to_status in cls.VALID_TRANSITIONS.get(from_status, [])

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if to_status not in cls.VALID_TRANSITIONS:
            raise InvalidTransitionError(from_status, to_status, "unknown status")
        if from_status == to_status:
            raise InvalidTransitionError(from_status, to_status, "invoice already has this status")
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def is_payment(cls, from_status: str, to_status: str) -> bool:
        """Entering 'lunas' posts income."""
        return to_status == InvoiceStatus.LUNAS and from_status != InvoiceStatus.LUNAS

    @classmethod
    def is_payment_reversal(cls, from_status: str, to_status: str) -> bool:
        """Leaving 'lunas' removes the posted income."""
        return from_status == InvoiceStatus.LUNAS and to_status != InvoiceStatus.LUNAS

    @classmethod
    def toggle_target(cls, current_status: str) -> str:
        """Target of the mark-paid toggle."""
        if current_status == InvoiceStatus.LUNAS:
            return InvoiceStatus.MENUNGGU_DP.value
        return InvoiceStatus.LUNAS.value
