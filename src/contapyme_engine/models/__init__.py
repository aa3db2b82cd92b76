"""SQLAlchemy ORM models."""

from contapyme_engine.models.base import Base, TimestampMixin
from contapyme_engine.models.company import Company
from contapyme_engine.models.employee import Contract, Employee
from contapyme_engine.models.journal import JournalEntry, JournalLineRecord
from contapyme_engine.models.payroll import Liquidation, PayrollBook, PayrollBookDetail

__all__ = [
    "Base",
    "Company",
    "Contract",
    "Employee",
    "JournalEntry",
    "JournalLineRecord",
    "Liquidation",
    "PayrollBook",
    "PayrollBookDetail",
    "TimestampMixin",
]
