"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from contapyme_engine.calculators.coherence import CoherenceReport, Severity
from contapyme_engine.calculators.types import (
    JournalEntryCandidate,
    JournalLine,
    PayrollLedger,
    PostingResult,
    RCVAnalysis,
    RCVEntitySummary,
    ReconciliationAuthority,
    RegisterType,
)
from contapyme_engine.calculators.utils import to_amount

# ============================================================================
# RCV analysis payloads
# ============================================================================


class RCVEntityPayload(BaseModel):
    """Supplier or client summary of an RCV analysis.

    Accepts the camelCase names produced by the RCV analysis screen.
    """

    model_config = ConfigDict(populate_by_name=True)

    rut: str = Field(alias="rutProveedor")
    razon_social: str = Field(default="", alias="razonSocial")
    total_transacciones: int = Field(default=0, alias="totalTransacciones")
    transacciones_suma: int = Field(default=0, alias="transaccionesSuma")
    transacciones_resta: int = Field(default=0, alias="transaccionesResta")
    monto_exento: Decimal = Field(default=Decimal("0"), alias="montoExentoTotal")
    monto_neto: Decimal = Field(default=Decimal("0"), alias="montoNetoTotal")
    monto_iva: Decimal = Field(default=Decimal("0"), alias="montoIVATotal")
    monto_calculado: Decimal = Field(default=Decimal("0"), alias="montoCalculado")
    porcentaje_del_total: Decimal = Field(default=Decimal("0"), alias="porcentajeDelTotal")

    def to_summary(self) -> RCVEntitySummary:
        return RCVEntitySummary(
            rut=self.rut,
            razon_social=self.razon_social,
            total_transacciones=self.total_transacciones,
            transacciones_suma=self.transacciones_suma,
            transacciones_resta=self.transacciones_resta,
            monto_exento=to_amount(self.monto_exento),
            monto_neto=to_amount(self.monto_neto),
            monto_iva=to_amount(self.monto_iva),
            monto_calculado=to_amount(self.monto_calculado),
            porcentaje_del_total=self.porcentaje_del_total,
        )


class RCVAnalysisPayload(BaseModel):
    """Aggregated RCV register for a period."""

    model_config = ConfigDict(populate_by_name=True)

    register_type: RegisterType = Field(default=RegisterType.PURCHASE, alias="registerType")
    monto_exento_global: Decimal = Field(default=Decimal("0"), alias="montoExentoGlobal")
    monto_neto_global: Decimal = Field(default=Decimal("0"), alias="montoNetoGlobal")
    monto_iva_global: Decimal = Field(default=Decimal("0"), alias="montoIVAGlobal")
    monto_calculado_global: Decimal = Field(default=Decimal("0"), alias="montoCalculadoGlobal")
    total_transacciones: int = Field(default=0, alias="totalTransacciones")
    transacciones_suma: int = Field(default=0, alias="transaccionesSuma")
    transacciones_resta: int = Field(default=0, alias="transaccionesResta")
    entities: list[RCVEntityPayload] = Field(
        default_factory=list, alias="proveedoresPrincipales"
    )
    periodo_inicio: str = Field(default="", alias="periodoInicio")
    periodo_fin: str = Field(default="", alias="periodoFin")

    def to_analysis(self) -> RCVAnalysis:
        return RCVAnalysis(
            register_type=self.register_type,
            monto_exento_global=to_amount(self.monto_exento_global),
            monto_neto_global=to_amount(self.monto_neto_global),
            monto_iva_global=to_amount(self.monto_iva_global),
            monto_calculado_global=to_amount(self.monto_calculado_global),
            total_transacciones=self.total_transacciones,
            transacciones_suma=self.transacciones_suma,
            transacciones_resta=self.transacciones_resta,
            entities=tuple(entity.to_summary() for entity in self.entities),
            periodo_inicio=self.periodo_inicio,
            periodo_fin=self.periodo_fin,
        )


class JournalPreviewRequest(BaseModel):
    """Schema for previewing the journal entry of an RCV analysis."""

    period: str
    analysis: RCVAnalysisPayload
    ledger_id: str | None = None
    detail_by_entity: bool = False


# ============================================================================
# Journal entry schemas
# ============================================================================


class JournalLinePayload(BaseModel):
    """Schema for a journal line."""

    model_config = ConfigDict(from_attributes=True)

    account_code: str
    account_name: str
    description: str = ""
    debit_amount: Decimal = Decimal("0")
    credit_amount: Decimal = Decimal("0")


class JournalEntryPayload(BaseModel):
    """Schema for posting a preliminary journal entry."""

    description: str
    period: str
    lines: list[JournalLinePayload]
    source_type: str = "manual"
    ledger_id: str | None = None

    def to_candidate(self) -> JournalEntryCandidate:
        return JournalEntryCandidate(
            description=self.description,
            period=self.period,
            source_type=self.source_type,
            ledger_id=self.ledger_id,
            lines=[
                JournalLine(
                    account_code=line.account_code,
                    account_name=line.account_name,
                    description=line.description,
                    debit_amount=to_amount(line.debit_amount),
                    credit_amount=to_amount(line.credit_amount),
                )
                for line in self.lines
            ],
        )


class JournalEntryResponse(BaseModel):
    """Schema for a preliminary or posted journal entry."""

    description: str
    period: str
    source_type: str
    ledger_id: str | None = None
    status: str
    entry_number: int | None = None
    lines: list[JournalLinePayload]
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool

    @classmethod
    def from_candidate(cls, entry: JournalEntryCandidate) -> JournalEntryResponse:
        return cls(
            description=entry.description,
            period=entry.period,
            source_type=entry.source_type,
            ledger_id=entry.ledger_id,
            status=entry.status.value,
            entry_number=entry.entry_number,
            lines=[JournalLinePayload.model_validate(line) for line in entry.lines],
            total_debit=entry.total_debit,
            total_credit=entry.total_credit,
            is_balanced=entry.is_balanced,
        )


class PostingResponse(BaseModel):
    """Schema for posting result."""

    entry_number: int
    total_lines: int
    total_debit: Decimal
    total_credit: Decimal
    journal_entry_id: UUID | None = None
    entry: JournalEntryResponse

    @classmethod
    def from_result(
        cls, result: PostingResult, entry: JournalEntryCandidate
    ) -> PostingResponse:
        return cls(
            entry_number=result.entry_number,
            total_lines=result.total_lines,
            total_debit=result.total_debit,
            total_credit=result.total_credit,
            journal_entry_id=result.journal_entry_id,
            entry=JournalEntryResponse.from_candidate(entry),
        )


# ============================================================================
# Payroll ledger schemas
# ============================================================================


class PayrollLedgerRowResponse(BaseModel):
    """Schema for one reconciled employee row."""

    model_config = ConfigDict(from_attributes=True)

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
    has_excess: bool


class LedgerTotalsResponse(BaseModel):
    """Schema for ledger footer totals."""

    employees: int
    amounts: dict[str, Decimal]


class PartialDataResponse(BaseModel):
    """Schema for partial liquidation data diagnostics."""

    message: str
    period: str
    missing_ruts: list[str]
    duplicate_ruts: list[str]
    orphan_ruts: list[str]
    excess_ruts: list[str]


class PayrollLedgerResponse(BaseModel):
    """Schema for the reconciled payroll ledger."""

    company_id: UUID
    period: str
    authority: ReconciliationAuthority
    book_id: UUID | None = None
    rows: list[PayrollLedgerRowResponse]
    totals: LedgerTotalsResponse
    footer_matches_book: bool
    warning: PartialDataResponse | None = None

    @classmethod
    def from_ledger(cls, ledger: PayrollLedger) -> PayrollLedgerResponse:
        return cls(
            company_id=ledger.company_id,
            period=ledger.period,
            authority=ledger.authority,
            book_id=ledger.book.book_id,
            rows=[PayrollLedgerRowResponse.model_validate(row) for row in ledger.rows],
            totals=LedgerTotalsResponse(
                employees=ledger.totals.employees,
                amounts=dict(ledger.totals.amounts),
            ),
            footer_matches_book=ledger.footer_matches_book(),
            warning=(
                PartialDataResponse(**ledger.warning.to_dict())
                if ledger.warning is not None
                else None
            ),
        )


# ============================================================================
# Coherence schemas
# ============================================================================


class TotalsSourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    total_haberes: Decimal
    total_descuentos: Decimal
    total_liquido: Decimal
    records: int


class DiscrepancyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    source_a: str
    source_b: str
    haberes_diff: Decimal
    descuentos_diff: Decimal
    liquido_diff: Decimal
    severity: Severity


class PayrollTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    haberes: Decimal
    descuentos: Decimal
    liquido: Decimal


class LiquidationCorrectionResponse(BaseModel):
    """Proposed totals for a liquidation whose stored totals are off."""

    model_config = ConfigDict(from_attributes=True)

    employee_rut: str
    liquidation_id: UUID | None = None
    current: PayrollTotalsResponse
    correct: PayrollTotalsResponse
    differences: PayrollTotalsResponse


class CoherenceReportResponse(BaseModel):
    """Schema for cross-source coherence report."""

    model_config = ConfigDict(from_attributes=True)

    is_coherent: bool
    confidence_score: int
    recommended_action: str
    auto_fixable: bool
    sources: list[TotalsSourceResponse]
    discrepancies: list[DiscrepancyResponse]
    liquidations_analyzed: int = 0
    corrections: list[LiquidationCorrectionResponse] = []

    @classmethod
    def from_report(cls, report: CoherenceReport) -> CoherenceReportResponse:
        return cls.model_validate(report)


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
