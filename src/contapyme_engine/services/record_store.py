"""Record store contract and its SQLAlchemy implementation.

The reconciliation core only talks to the store through ``RecordStore``:
reads are scoped by company and period, the single write posts a journal
entry. No cross-call transaction is assumed.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from contapyme_engine.calculators.types import (
    BookDetailSnapshot,
    BookSnapshot,
    JournalEntryCandidate,
    LiquidationSnapshot,
    PostingResult,
)
from contapyme_engine.calculators.utils import normalize_rut, parse_period, to_amount
from contapyme_engine.errors import NotFoundError
from contapyme_engine.models import (
    Employee,
    JournalEntry,
    JournalLineRecord,
    Liquidation,
    PayrollBook,
    PayrollBookDetail,
)


class RecordStore(Protocol):
    """Keyed retrieval/write of payroll and journal records."""

    async def get_payroll_book(self, company_id: UUID, period: str) -> BookSnapshot:
        """Return the book for the period or raise NotFoundError."""
        ...

    async def list_liquidations(
        self, company_id: UUID, period: str
    ) -> list[LiquidationSnapshot]:
        ...

    async def post_journal_entry(
        self, company_id: UUID, period: str, entry: JournalEntryCandidate
    ) -> PostingResult:
        """Persist a balanced entry under the next entry number."""
        ...


# ===== ORM -> snapshot conversion =====


def book_detail_snapshot(detail: PayrollBookDetail) -> BookDetailSnapshot:
    return BookDetailSnapshot(
        employee_rut=normalize_rut(detail.employee_rut),
        total_haberes=to_amount(detail.total_haberes),
        total_descuentos=to_amount(detail.total_descuentos),
        sueldo_liquido=to_amount(detail.sueldo_liquido),
        sueldo_base=to_amount(detail.sueldo_base),
        colacion=to_amount(detail.colacion),
        movilizacion=to_amount(detail.movilizacion),
        asignacion_familiar=to_amount(detail.asignacion_familiar),
        nombres=detail.nombres,
        apellido_paterno=detail.apellido_paterno,
        apellido_materno=detail.apellido_materno,
        cargo=detail.cargo,
        area=detail.area,
        dias_trabajados=detail.dias_trabajados,
    )


def book_snapshot(book: PayrollBook) -> BookSnapshot:
    return BookSnapshot(
        company_id=book.company_id,
        period=book.period,
        total_employees=book.total_employees,
        total_haberes=to_amount(book.total_haberes),
        total_descuentos=to_amount(book.total_descuentos),
        total_liquido=to_amount(book.total_liquido),
        details=tuple(book_detail_snapshot(d) for d in book.details),
        book_id=book.payroll_book_id,
    )


def liquidation_snapshot(liquidation: Liquidation, rut: str, period: str) -> LiquidationSnapshot:
    def optional(value):
        return None if value is None else to_amount(value)

    return LiquidationSnapshot(
        employee_rut=normalize_rut(rut),
        period=period,
        afp_amount=to_amount(liquidation.afp_amount),
        afp_commission_amount=to_amount(liquidation.afp_commission_amount),
        health_amount=to_amount(liquidation.health_amount),
        unemployment_amount=to_amount(liquidation.unemployment_amount),
        income_tax_amount=to_amount(liquidation.income_tax_amount),
        apv_amount=to_amount(liquidation.apv_amount),
        loan_deductions=to_amount(liquidation.loan_deductions),
        advance_payments=to_amount(liquidation.advance_payments),
        overtime_hours=liquidation.overtime_hours,
        overtime_amount=to_amount(liquidation.overtime_amount),
        bonuses=to_amount(liquidation.bonuses),
        commissions=to_amount(liquidation.commissions),
        gratification=to_amount(liquidation.gratification),
        legal_gratification_art50=to_amount(liquidation.legal_gratification_art50),
        total_gross_income=optional(liquidation.total_gross_income),
        total_deductions=optional(liquidation.total_deductions),
        net_salary=optional(liquidation.net_salary),
        base_salary=to_amount(liquidation.base_salary),
        food_allowance=to_amount(liquidation.food_allowance),
        transport_allowance=to_amount(liquidation.transport_allowance),
        family_allowance=to_amount(liquidation.family_allowance),
        other_deductions=to_amount(liquidation.other_deductions),
        liquidation_id=liquidation.liquidation_id,
    )


class SqlRecordStore:
    """RecordStore backed by an AsyncSession.

    Writes are flushed, not committed; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_payroll_book(self, company_id: UUID, period: str) -> BookSnapshot:
        parse_period(period)
        result = await self.session.execute(
            select(PayrollBook)
            .where(PayrollBook.company_id == company_id, PayrollBook.period == period)
            .options(selectinload(PayrollBook.details))
        )
        book = result.scalar_one_or_none()
        if book is None:
            raise NotFoundError("PayrollBook", company_id=company_id, period=period)
        return book_snapshot(book)

    async def list_liquidations(
        self, company_id: UUID, period: str
    ) -> list[LiquidationSnapshot]:
        year, month = parse_period(period)
        result = await self.session.execute(
            select(Liquidation, Employee.rut)
            .join(Employee, Employee.employee_id == Liquidation.employee_id)
            .where(
                Liquidation.company_id == company_id,
                Liquidation.period_year == year,
                Liquidation.period_month == month,
            )
            .order_by(Liquidation.recorded_seq)
        )
        return [liquidation_snapshot(liq, rut, period) for liq, rut in result.all()]

    async def save_payroll_book(self, book: BookSnapshot) -> UUID:
        """Store a generated payroll book with its detail rows."""
        record = PayrollBook(
            company_id=book.company_id,
            period=book.period,
            total_employees=book.total_employees,
            total_haberes=book.total_haberes,
            total_descuentos=book.total_descuentos,
            total_liquido=book.total_liquido,
            details=[
                PayrollBookDetail(
                    line_number=i,
                    employee_rut=normalize_rut(d.employee_rut),
                    nombres=d.nombres,
                    apellido_paterno=d.apellido_paterno,
                    apellido_materno=d.apellido_materno,
                    cargo=d.cargo,
                    area=d.area,
                    dias_trabajados=d.dias_trabajados,
                    sueldo_base=d.sueldo_base,
                    colacion=d.colacion,
                    movilizacion=d.movilizacion,
                    asignacion_familiar=d.asignacion_familiar,
                    total_haberes=d.total_haberes,
                    total_descuentos=d.total_descuentos,
                    sueldo_liquido=d.sueldo_liquido,
                )
                for i, d in enumerate(book.details, start=1)
            ],
        )
        self.session.add(record)
        await self.session.flush()
        return record.payroll_book_id

    async def next_entry_number(self, company_id: UUID) -> int:
        current = await self.session.scalar(
            select(func.coalesce(func.max(JournalEntry.entry_number), 0)).where(
                JournalEntry.company_id == company_id
            )
        )
        return int(current or 0) + 1

    async def post_journal_entry(
        self, company_id: UUID, period: str, entry: JournalEntryCandidate
    ) -> PostingResult:
        entry_number = await self.next_entry_number(company_id)
        record = JournalEntry(
            company_id=company_id,
            entry_number=entry_number,
            period=period,
            description=entry.description,
            source_type=entry.source_type,
            ledger_id=entry.ledger_id,
            status="posted",
            total_debit=entry.total_debit,
            total_credit=entry.total_credit,
            lines=[
                JournalLineRecord(
                    line_number=i,
                    account_code=line.account_code,
                    account_name=line.account_name,
                    description=line.description,
                    debit_amount=line.debit_amount,
                    credit_amount=line.credit_amount,
                )
                for i, line in enumerate(entry.lines, start=1)
            ],
        )
        self.session.add(record)
        await self.session.flush()

        return PostingResult(
            entry_number=entry_number,
            total_lines=len(record.lines),
            total_debit=entry.total_debit,
            total_credit=entry.total_credit,
            journal_entry_id=record.journal_entry_id,
        )
