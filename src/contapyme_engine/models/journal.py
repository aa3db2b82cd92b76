"""Posted journal entry models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    event,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contapyme_engine.errors import ImmutableEntryError
from contapyme_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from contapyme_engine.models.company import Company


class JournalEntry(Base, TimestampMixin):
    """Journal entry posted to a company's general ledger."""

    __tablename__ = "journal_entries"

    journal_entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("company.company_id", ondelete="CASCADE"),
        nullable=False,
    )
    entry_number: Mapped[int] = mapped_column(Integer, nullable=False)
    period: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False)
    source_type: Mapped[str] = mapped_column(String, nullable=False, default="manual")
    ledger_id: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="posted")
    total_debit: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_credit: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    posted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("company_id", "entry_number", name="journal_entry_number_unique"),
        CheckConstraint("status IN ('posted')", name="journal_entry_status_check"),
        CheckConstraint("total_debit = total_credit", name="journal_entry_balanced_check"),
    )

    # Relationships
    company: Mapped[Company] = relationship()
    lines: Mapped[list[JournalLineRecord]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalLineRecord.line_number",
    )


class JournalLineRecord(Base):
    """Individual debit or credit line of a posted journal entry."""

    __tablename__ = "journal_lines"

    journal_line_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    journal_entry_id: Mapped[UUID] = mapped_column(
        ForeignKey("journal_entries.journal_entry_id", ondelete="CASCADE"),
        nullable=False,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    account_code: Mapped[str] = mapped_column(String, nullable=False)
    account_name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False, default="")
    debit_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    credit_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )

    __table_args__ = (
        CheckConstraint(
            "(debit_amount = 0 AND credit_amount > 0) OR (credit_amount = 0 AND debit_amount > 0)",
            name="journal_line_debit_credit_check",
        ),
    )

    # Relationships
    entry: Mapped[JournalEntry] = relationship(back_populates="lines")


@event.listens_for(JournalEntry, "before_update")
def _block_entry_update(mapper: Any, connection: Any, target: JournalEntry) -> None:
    """Posted entries are append-only."""
    raise ImmutableEntryError(target.entry_number)


@event.listens_for(JournalLineRecord, "before_update")
def _block_line_update(mapper: Any, connection: Any, target: JournalLineRecord) -> None:
    raise ImmutableEntryError(None)
