"""Payroll ledger service: store reads plus reconciliation."""

from __future__ import annotations

import logging
from uuid import UUID

from contapyme_engine.calculators import CoherenceReport, CoherenceValidator, TotalsSource
from contapyme_engine.calculators.coherence import liquidation_totals_source
from contapyme_engine.calculators.reconciliation import ReconciliationResolver
from contapyme_engine.calculators.types import PayrollLedger, ReconciliationAuthority
from contapyme_engine.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class PayrollLedgerService:
    """Builds the reconciled payroll ledger for a company and period.

    The payroll book is authoritative and must exist; liquidations are
    optional enrichment. Missing or partial liquidation data degrades the
    itemization but never the totals.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    async def build_ledger(
        self,
        company_id: UUID,
        period: str,
        authority: ReconciliationAuthority = ReconciliationAuthority.BOOK,
    ) -> PayrollLedger:
        """Reconcile the period's payroll book against its liquidations.

        Raises NotFoundError if there is no payroll book for the period.
        """
        book = await self.store.get_payroll_book(company_id, period)
        liquidations = await self.store.list_liquidations(company_id, period)

        if not liquidations:
            logger.warning(
                "No liquidations for company %s period %s; deductions will be "
                "reported as residual only",
                company_id,
                period,
            )

        ledger = ReconciliationResolver(authority).reconcile(book, liquidations)
        logger.info(
            "Built payroll ledger for company %s period %s: %d rows (%s authority)",
            company_id,
            period,
            len(ledger.rows),
            ledger.authority.value,
        )
        return ledger

    async def coherence_report(self, company_id: UUID, period: str) -> CoherenceReport:
        """Compare book header, ledger footer and stored liquidation totals.

        Each liquidation is also checked against its own components; the
        report carries a dry-run correction for every one that is off.
        """
        book = await self.store.get_payroll_book(company_id, period)
        liquidations = await self.store.list_liquidations(company_id, period)
        ledger = ReconciliationResolver().reconcile(book, liquidations)

        sources = [
            TotalsSource(
                name="payroll_book",
                total_haberes=book.total_haberes,
                total_descuentos=book.total_descuentos,
                total_liquido=book.total_liquido,
                records=book.total_employees,
            ),
            TotalsSource(
                name="ledger_footer",
                total_haberes=ledger.totals.total_haberes,
                total_descuentos=ledger.totals.total_descuentos,
                total_liquido=ledger.totals.sueldo_liquido,
                records=ledger.totals.employees,
            ),
        ]
        if liquidations:
            sources.append(liquidation_totals_source("liquidations", liquidations))

        report = CoherenceValidator.validate(sources, liquidations)
        if report.corrections:
            logger.warning(
                "%d of %d liquidations for company %s period %s have stored totals "
                "that do not match their components",
                len(report.corrections),
                report.liquidations_analyzed,
                company_id,
                period,
            )
        if not report.is_coherent:
            logger.warning(
                "Payroll data for company %s period %s is incoherent "
                "(confidence %d%%): %s",
                company_id,
                period,
                report.confidence_score,
                report.recommended_action,
            )
        return report
