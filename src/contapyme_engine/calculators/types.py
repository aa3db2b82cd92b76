"""Type definitions for the reconciliation and journal pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from contapyme_engine.calculators.utils import ZERO, sum_amounts
from contapyme_engine.errors import ImmutableEntryError

if TYPE_CHECKING:
    from contapyme_engine.errors import PartialDataWarning


class ReconciliationAuthority(str, Enum):
    """Which source provides the authoritative per-employee totals."""

    BOOK = "book"
    LIQUIDATION = "liquidation"


class RegisterType(str, Enum):
    """RCV register kind."""

    PURCHASE = "purchase"
    SALES = "sales"


class JournalEntryStatus(str, Enum):
    """Journal entry lifecycle values."""

    PRELIMINARY = "preliminary"
    POSTED = "posted"


# Itemized deductions taken from the liquidation, in report column order.
DEDUCTION_FIELDS: tuple[str, ...] = (
    "afp_amount",
    "afp_commission_amount",
    "health_amount",
    "unemployment_amount",
    "income_tax_amount",
    "apv_amount",
    "loan_deductions",
    "advance_payments",
)

# Itemized haberes; sueldo_base and the allowances come from the book.
HABERES_FIELDS: tuple[str, ...] = (
    "sueldo_base",
    "overtime_amount",
    "bonuses",
    "commissions",
    "gratification",
    "colacion",
    "movilizacion",
    "asignacion_familiar",
)

# Every summable column of a ledger row (footer row order).
LEDGER_AMOUNT_COLUMNS: tuple[str, ...] = (
    *HABERES_FIELDS,
    "overtime_hours",
    "other_haberes",
    "total_haberes",
    *DEDUCTION_FIELDS,
    "other_deductions",
    "total_descuentos",
    "sueldo_liquido",
)


# ===== Inputs =====


@dataclass(frozen=True)
class BookDetailSnapshot:
    """One employee row of a payroll book."""

    employee_rut: str
    total_haberes: Decimal
    total_descuentos: Decimal
    sueldo_liquido: Decimal
    sueldo_base: Decimal = ZERO
    colacion: Decimal = ZERO
    movilizacion: Decimal = ZERO
    asignacion_familiar: Decimal = ZERO
    nombres: str = ""
    apellido_paterno: str = ""
    apellido_materno: str = ""
    cargo: str = ""
    area: str = ""
    dias_trabajados: int = 30


@dataclass(frozen=True)
class BookSnapshot:
    """A payroll book header with its detail rows."""

    company_id: UUID
    period: str
    total_employees: int
    total_haberes: Decimal
    total_descuentos: Decimal
    total_liquido: Decimal
    details: tuple[BookDetailSnapshot, ...] = ()
    book_id: UUID | None = None

    @classmethod
    def from_details(
        cls,
        company_id: UUID,
        period: str,
        details: list[BookDetailSnapshot] | tuple[BookDetailSnapshot, ...],
        book_id: UUID | None = None,
    ) -> BookSnapshot:
        """Build a book whose header totals are derived from its rows.

        total_liquido is always total_haberes - total_descuentos.
        """
        total_haberes = sum_amounts(d.total_haberes for d in details)
        total_descuentos = sum_amounts(d.total_descuentos for d in details)
        return cls(
            company_id=company_id,
            period=period,
            total_employees=len(details),
            total_haberes=total_haberes,
            total_descuentos=total_descuentos,
            total_liquido=total_haberes - total_descuentos,
            details=tuple(details),
            book_id=book_id,
        )


@dataclass(frozen=True)
class LiquidationSnapshot:
    """Per-employee liquidation with itemized amounts."""

    employee_rut: str
    period: str
    afp_amount: Decimal = ZERO
    afp_commission_amount: Decimal = ZERO
    health_amount: Decimal = ZERO
    unemployment_amount: Decimal = ZERO
    income_tax_amount: Decimal = ZERO
    apv_amount: Decimal = ZERO
    loan_deductions: Decimal = ZERO
    advance_payments: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    overtime_amount: Decimal = ZERO
    bonuses: Decimal = ZERO
    commissions: Decimal = ZERO
    gratification: Decimal = ZERO
    legal_gratification_art50: Decimal = ZERO
    total_gross_income: Decimal | None = None
    total_deductions: Decimal | None = None
    net_salary: Decimal | None = None
    base_salary: Decimal = ZERO
    food_allowance: Decimal = ZERO
    transport_allowance: Decimal = ZERO
    family_allowance: Decimal = ZERO
    other_deductions: Decimal = ZERO
    liquidation_id: UUID | None = None

    @property
    def gratification_total(self) -> Decimal:
        """Contractual plus Art. 50 gratification."""
        return self.gratification + self.legal_gratification_art50

    @property
    def known_deductions(self) -> Decimal:
        return sum_amounts(getattr(self, name) for name in DEDUCTION_FIELDS)

    @property
    def computed_haberes(self) -> Decimal:
        """Gross income rebuilt from the liquidation's own components."""
        return sum_amounts(
            (
                self.base_salary,
                self.overtime_amount,
                self.gratification_total,
                self.bonuses,
                self.commissions,
                self.food_allowance,
                self.transport_allowance,
                self.family_allowance,
            )
        )

    @property
    def computed_descuentos(self) -> Decimal:
        return self.known_deductions + self.other_deductions

    @property
    def computed_liquido(self) -> Decimal:
        return self.computed_haberes - self.computed_descuentos


# ===== Reconciliation output =====


@dataclass(frozen=True)
class PayrollLedgerRow:
    """Reconciled payroll row for one employee in one period.

    Totals are authoritative; itemized fields plus the residual
    (``other_*``) add up to them unless the itemized data exceeds the total,
    in which case the residual is 0 and the signed ``*_delta`` is negative.
    """

    employee_rut: str
    nombres: str
    apellido_paterno: str
    apellido_materno: str
    cargo: str
    area: str
    dias_trabajados: int

    sueldo_base: Decimal
    overtime_hours: Decimal
    overtime_amount: Decimal
    bonuses: Decimal
    commissions: Decimal
    gratification: Decimal
    colacion: Decimal
    movilizacion: Decimal
    asignacion_familiar: Decimal
    other_haberes: Decimal
    total_haberes: Decimal

    afp_amount: Decimal
    afp_commission_amount: Decimal
    health_amount: Decimal
    unemployment_amount: Decimal
    income_tax_amount: Decimal
    apv_amount: Decimal
    loan_deductions: Decimal
    advance_payments: Decimal
    other_deductions: Decimal
    total_descuentos: Decimal

    sueldo_liquido: Decimal

    deductions_delta: Decimal
    haberes_delta: Decimal
    has_liquidation: bool

    @property
    def itemized_deductions(self) -> Decimal:
        """Sum of every deduction column including the residual."""
        return sum_amounts(getattr(self, name) for name in DEDUCTION_FIELDS) + self.other_deductions

    @property
    def itemized_haberes(self) -> Decimal:
        """Sum of every haberes column including the residual."""
        return sum_amounts(getattr(self, name) for name in HABERES_FIELDS) + self.other_haberes

    @property
    def has_excess(self) -> bool:
        """Itemized data exceeds an authoritative total (clamped residual)."""
        return self.deductions_delta < 0 or self.haberes_delta < 0

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["has_excess"] = self.has_excess
        return data


@dataclass
class LedgerTotals:
    """Column sums across all ledger rows (report footer)."""

    employees: int = 0
    amounts: dict[str, Decimal] = field(
        default_factory=lambda: {name: ZERO for name in LEDGER_AMOUNT_COLUMNS}
    )

    def add(self, row: PayrollLedgerRow) -> None:
        self.employees += 1
        for name in LEDGER_AMOUNT_COLUMNS:
            self.amounts[name] += getattr(row, name)

    def get(self, column: str) -> Decimal:
        return self.amounts[column]

    @property
    def total_haberes(self) -> Decimal:
        return self.amounts["total_haberes"]

    @property
    def total_descuentos(self) -> Decimal:
        return self.amounts["total_descuentos"]

    @property
    def sueldo_liquido(self) -> Decimal:
        return self.amounts["sueldo_liquido"]

    def to_dict(self) -> dict[str, Any]:
        return {"employees": self.employees, **self.amounts}


@dataclass
class PayrollLedger:
    """Result of reconciling one payroll book."""

    company_id: UUID
    period: str
    authority: ReconciliationAuthority
    book: BookSnapshot
    rows: list[PayrollLedgerRow]
    totals: LedgerTotals
    warning: PartialDataWarning | None = None

    @property
    def excess_rows(self) -> list[PayrollLedgerRow]:
        return [row for row in self.rows if row.has_excess]

    def footer_matches_book(self) -> bool:
        """Whether the footer totals equal the book header totals."""
        return (
            self.totals.total_haberes == self.book.total_haberes
            and self.totals.total_descuentos == self.book.total_descuentos
            and self.totals.sueldo_liquido == self.book.total_liquido
        )


# ===== RCV / journal =====


@dataclass(frozen=True)
class RCVEntitySummary:
    """Aggregated RCV transactions for one supplier or client."""

    rut: str
    razon_social: str
    total_transacciones: int = 0
    transacciones_suma: int = 0
    transacciones_resta: int = 0
    monto_exento: Decimal = ZERO
    monto_neto: Decimal = ZERO
    monto_iva: Decimal = ZERO
    monto_calculado: Decimal = ZERO
    porcentaje_del_total: Decimal = ZERO


@dataclass(frozen=True)
class RCVAnalysis:
    """Aggregated RCV register for a period."""

    register_type: RegisterType
    monto_exento_global: Decimal
    monto_neto_global: Decimal
    monto_iva_global: Decimal
    monto_calculado_global: Decimal
    total_transacciones: int = 0
    transacciones_suma: int = 0
    transacciones_resta: int = 0
    entities: tuple[RCVEntitySummary, ...] = ()
    periodo_inicio: str = ""
    periodo_fin: str = ""


@dataclass(frozen=True)
class JournalLine:
    """One debit or credit line of a journal entry."""

    account_code: str
    account_name: str
    description: str
    debit_amount: Decimal = ZERO
    credit_amount: Decimal = ZERO

    def __post_init__(self) -> None:
        if self.debit_amount < 0 or self.credit_amount < 0:
            raise ValueError("Journal line amounts must not be negative")
        if self.debit_amount > 0 and self.credit_amount > 0:
            raise ValueError("Journal line cannot carry both a debit and a credit")
        if self.debit_amount == 0 and self.credit_amount == 0:
            raise ValueError("Journal line must carry a debit or a credit amount")

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class JournalEntryCandidate:
    """A journal entry before (preliminary) or after (posted) posting."""

    description: str
    period: str
    lines: list[JournalLine] = field(default_factory=list)
    source_type: str = "manual"
    ledger_id: str | None = None
    status: JournalEntryStatus = JournalEntryStatus.PRELIMINARY
    entry_number: int | None = None

    def __post_init__(self) -> None:
        self.lines = list(self.lines)

    @property
    def total_debit(self) -> Decimal:
        return sum_amounts(line.debit_amount for line in self.lines)

    @property
    def total_credit(self) -> Decimal:
        return sum_amounts(line.credit_amount for line in self.lines)

    @property
    def is_balanced(self) -> bool:
        """Exact debit == credit; computed from the lines every time."""
        return self.total_debit == self.total_credit

    @property
    def is_posted(self) -> bool:
        return self.status == JournalEntryStatus.POSTED

    def add_line(self, line: JournalLine) -> None:
        if self.is_posted:
            raise ImmutableEntryError(self.entry_number)
        self.lines.append(line)

    def mark_posted(self, entry_number: int) -> None:
        """Freeze the lines and record the assigned entry number."""
        self.lines = tuple(self.lines)
        self.entry_number = entry_number
        self.status = JournalEntryStatus.POSTED

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "period": self.period,
            "source_type": self.source_type,
            "ledger_id": self.ledger_id,
            "status": self.status.value,
            "entry_number": self.entry_number,
            "lines": [line.to_dict() for line in self.lines],
            "total_debit": self.total_debit,
            "total_credit": self.total_credit,
            "is_balanced": self.is_balanced,
        }


@dataclass(frozen=True)
class PostingResult:
    """Outcome of posting a journal entry to the store."""

    entry_number: int
    total_lines: int
    total_debit: Decimal
    total_credit: Decimal
    journal_entry_id: UUID | None = None
