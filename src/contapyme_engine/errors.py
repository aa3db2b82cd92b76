"""Domain errors and warnings raised by the reconciliation engine."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from contapyme_engine.calculators.types import JournalEntryCandidate


class NotFoundError(Exception):
    """Raised when a requested record (e.g. a payroll book) does not exist."""

    def __init__(self, resource: str, **key: Any):
        self.resource = resource
        self.key = key
        rendered = ", ".join(f"{name}={value}" for name, value in key.items())
        super().__init__(f"{resource} not found ({rendered})")


class UnbalancedEntryError(Exception):
    """Raised when posting a journal entry whose debits and credits differ.

    The preliminary entry is carried unchanged so the caller can inspect it.
    """

    def __init__(self, entry: JournalEntryCandidate):
        self.entry = entry
        self.total_debit: Decimal = entry.total_debit
        self.total_credit: Decimal = entry.total_credit
        self.difference: Decimal = entry.total_debit - entry.total_credit
        super().__init__(
            f"Journal entry '{entry.description}' is unbalanced: "
            f"debit {self.total_debit} != credit {self.total_credit} "
            f"(difference {self.difference})"
        )


class ImmutableEntryError(Exception):
    """Raised when modifying the lines of a journal entry that was posted."""

    def __init__(self, entry_number: int | None):
        self.entry_number = entry_number
        label = f"Journal entry #{entry_number}" if entry_number is not None else "Journal entry"
        super().__init__(f"{label} is posted and cannot be modified")


class PartialDataWarning(UserWarning):
    """Non-fatal report of liquidation data that could not be fully matched.

    Never raised: the resolver attaches it to the ledger and logs it, since the
    payroll book totals stay valid regardless.
    """

    def __init__(
        self,
        *,
        period: str,
        missing_ruts: tuple[str, ...] = (),
        duplicate_ruts: tuple[str, ...] = (),
        orphan_ruts: tuple[str, ...] = (),
        excess_ruts: tuple[str, ...] = (),
    ):
        self.period = period
        self.missing_ruts = missing_ruts
        self.duplicate_ruts = duplicate_ruts
        self.orphan_ruts = orphan_ruts
        self.excess_ruts = excess_ruts
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        parts = []
        if self.missing_ruts:
            parts.append(f"{len(self.missing_ruts)} employee(s) without liquidation")
        if self.duplicate_ruts:
            parts.append(f"{len(self.duplicate_ruts)} RUT(s) with duplicate liquidations")
        if self.orphan_ruts:
            parts.append(f"{len(self.orphan_ruts)} liquidation(s) not in the payroll book")
        if self.excess_ruts:
            parts.append(
                f"{len(self.excess_ruts)} employee(s) with itemized amounts above the book total"
            )
        return f"Partial payroll data for {self.period}: " + "; ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation."""
        return {
            "message": str(self),
            "period": self.period,
            "missing_ruts": list(self.missing_ruts),
            "duplicate_ruts": list(self.duplicate_ruts),
            "orphan_ruts": list(self.orphan_ruts),
            "excess_ruts": list(self.excess_ruts),
        }
