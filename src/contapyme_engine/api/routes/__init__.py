"""API routes."""

from contapyme_engine.api.routes.health import router as health_router
from contapyme_engine.api.routes.journal_entries import router as journal_entries_router
from contapyme_engine.api.routes.payroll_ledger import router as payroll_ledger_router

__all__ = ["health_router", "journal_entries_router", "payroll_ledger_router"]
