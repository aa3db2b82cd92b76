"""Reconciliation engine services."""

from contapyme_engine.services.journal_service import JournalService
from contapyme_engine.services.payroll_ledger_service import PayrollLedgerService
from contapyme_engine.services.record_store import RecordStore, SqlRecordStore
from contapyme_engine.services.state_machine import (
    InvalidTransitionError,
    JournalEntryStateMachine,
)

__all__ = [
    "InvalidTransitionError",
    "JournalEntryStateMachine",
    "JournalService",
    "PayrollLedgerService",
    "RecordStore",
    "SqlRecordStore",
]
