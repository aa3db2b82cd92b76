"""Payroll ledger API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from contapyme_engine.api.dependencies import CompanyId, Store
from contapyme_engine.api.schemas import (
    CoherenceReportResponse,
    ErrorResponse,
    PayrollLedgerResponse,
)
from contapyme_engine.calculators.types import ReconciliationAuthority
from contapyme_engine.services.payroll_ledger_service import PayrollLedgerService

router = APIRouter(prefix="/payroll-ledger", tags=["payroll-ledger"])


@router.get(
    "",
    response_model=PayrollLedgerResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_payroll_ledger(
    store: Store,
    company_id: CompanyId,
    period: Annotated[str, Query(description="Period as YYYY-MM")],
    authority: ReconciliationAuthority = ReconciliationAuthority.BOOK,
) -> PayrollLedgerResponse:
    """Reconciled payroll ledger (libro de remuneraciones) for a period."""
    ledger = await PayrollLedgerService(store).build_ledger(company_id, period, authority)
    return PayrollLedgerResponse.from_ledger(ledger)


@router.get(
    "/coherence",
    response_model=CoherenceReportResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_payroll_coherence(
    store: Store,
    company_id: CompanyId,
    period: Annotated[str, Query(description="Period as YYYY-MM")],
) -> CoherenceReportResponse:
    """Compare payroll totals across book header, ledger footer and liquidations."""
    report = await PayrollLedgerService(store).coherence_report(company_id, period)
    return CoherenceReportResponse.from_report(report)
