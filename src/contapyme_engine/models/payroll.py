"""Payroll book and liquidation models."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contapyme_engine.models.base import Base, TimestampMixin, next_record_sequence

if TYPE_CHECKING:
    from contapyme_engine.models.company import Company
    from contapyme_engine.models.employee import Employee


def _money(nullable: bool = False, default: Decimal | None = Decimal("0")) -> Any:
    return mapped_column(Numeric(14, 2), nullable=nullable, default=default)


# ===== Payroll book (libro de remuneraciones) =====


class PayrollBook(Base, TimestampMixin):
    """Authoritative payroll totals for one company and period."""

    __tablename__ = "payroll_books"

    payroll_book_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("company.company_id", ondelete="CASCADE"),
        nullable=False,
    )
    period: Mapped[str] = mapped_column(String(7), nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    total_employees: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_haberes: Mapped[Decimal] = _money()
    total_descuentos: Mapped[Decimal] = _money()
    total_liquido: Mapped[Decimal] = _money()

    __table_args__ = (
        UniqueConstraint("company_id", "period", name="payroll_book_company_period_unique"),
        CheckConstraint("status IN ('draft', 'approved')", name="payroll_book_status_check"),
        CheckConstraint(
            "total_liquido = total_haberes - total_descuentos",
            name="payroll_book_liquido_check",
        ),
    )

    # Relationships
    company: Mapped[Company] = relationship()
    details: Mapped[list[PayrollBookDetail]] = relationship(
        back_populates="book",
        cascade="all, delete-orphan",
        order_by="PayrollBookDetail.line_number",
    )


class PayrollBookDetail(Base):
    """One employee row of a payroll book."""

    __tablename__ = "payroll_book_details"

    payroll_book_detail_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    payroll_book_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_books.payroll_book_id", ondelete="CASCADE"),
        nullable=False,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    employee_rut: Mapped[str] = mapped_column(String, nullable=False)
    nombres: Mapped[str] = mapped_column(String, nullable=False, default="")
    apellido_paterno: Mapped[str] = mapped_column(String, nullable=False, default="")
    apellido_materno: Mapped[str] = mapped_column(String, nullable=False, default="")
    cargo: Mapped[str] = mapped_column(String, nullable=False, default="")
    area: Mapped[str] = mapped_column(String, nullable=False, default="")
    dias_trabajados: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    sueldo_base: Mapped[Decimal] = _money()
    colacion: Mapped[Decimal] = _money()
    movilizacion: Mapped[Decimal] = _money()
    asignacion_familiar: Mapped[Decimal] = _money()
    total_haberes: Mapped[Decimal] = _money()
    total_descuentos: Mapped[Decimal] = _money()
    sueldo_liquido: Mapped[Decimal] = _money()

    __table_args__ = (
        UniqueConstraint("payroll_book_id", "employee_rut", name="payroll_book_detail_rut_unique"),
    )

    # Relationships
    book: Mapped[PayrollBook] = relationship(back_populates="details")


# ===== Liquidations =====


class Liquidation(Base, TimestampMixin):
    """Independently computed per-employee liquidation for a period."""

    __tablename__ = "payroll_liquidations"

    liquidation_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("company.company_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    period_year: Mapped[int] = mapped_column(Integer, nullable=False)
    period_month: Mapped[int] = mapped_column(Integer, nullable=False)
    # Insertion order; the first liquidation of a duplicated RUT wins
    recorded_seq: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=next_record_sequence
    )

    # Deductions
    afp_amount: Mapped[Decimal] = _money()
    afp_commission_amount: Mapped[Decimal] = _money()
    health_amount: Mapped[Decimal] = _money()
    unemployment_amount: Mapped[Decimal] = _money()
    income_tax_amount: Mapped[Decimal] = _money()
    apv_amount: Mapped[Decimal] = _money()
    loan_deductions: Mapped[Decimal] = _money()
    advance_payments: Mapped[Decimal] = _money()
    other_deductions: Mapped[Decimal] = _money()

    # Haberes
    base_salary: Mapped[Decimal] = _money()
    overtime_hours: Mapped[Decimal] = _money()
    overtime_amount: Mapped[Decimal] = _money()
    bonuses: Mapped[Decimal] = _money()
    commissions: Mapped[Decimal] = _money()
    gratification: Mapped[Decimal] = _money()
    legal_gratification_art50: Mapped[Decimal] = _money()
    food_allowance: Mapped[Decimal] = _money()
    transport_allowance: Mapped[Decimal] = _money()
    family_allowance: Mapped[Decimal] = _money()

    # Totals as computed by the liquidation itself
    total_gross_income: Mapped[Decimal | None] = _money(nullable=True, default=None)
    total_deductions: Mapped[Decimal | None] = _money(nullable=True, default=None)
    net_salary: Mapped[Decimal | None] = _money(nullable=True, default=None)

    __table_args__ = (
        CheckConstraint(
            "period_month BETWEEN 1 AND 12",
            name="payroll_liquidation_month_check",
        ),
    )

    # Relationships
    employee: Mapped[Employee] = relationship()
