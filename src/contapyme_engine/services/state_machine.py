"""Journal entry state machine with transition validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from contapyme_engine.calculators.types import JournalEntryStatus

if TYPE_CHECKING:
    from contapyme_engine.calculators.types import JournalEntryCandidate


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class JournalEntryStateMachine:
    """State machine for journal entry status transitions.

    Allowed transitions:
    - preliminary → posted

    Posted is terminal: a posted entry is never edited, a correction is a
    new entry.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        JournalEntryStatus.PRELIMINARY: [JournalEntryStatus.POSTED],
        JournalEntryStatus.POSTED: [],  # Terminal state
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            reason = None
            if from_status == JournalEntryStatus.POSTED:
                reason = "entry is already posted"
            raise InvalidTransitionError(_value(from_status), _value(to_status), reason)

    @classmethod
    def validate_entry_for_posting(cls, entry: JournalEntryCandidate) -> list[str]:
        """Validate an entry for posting, returning any errors.

        Returns list of error messages (empty if valid).
        """
        errors: list[str] = []

        if not cls.can_transition(entry.status, JournalEntryStatus.POSTED):
            errors.append(f"Cannot transition from '{_value(entry.status)}' to 'posted'")
            return errors

        if not entry.lines:
            errors.append("Journal entry has no lines")
        if not entry.is_balanced:
            errors.append(
                f"Debits ({entry.total_debit}) do not equal credits ({entry.total_credit})"
            )

        return errors


def _value(status: str) -> str:
    return status.value if isinstance(status, JournalEntryStatus) else str(status)
