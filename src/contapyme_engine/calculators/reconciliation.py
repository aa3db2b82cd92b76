"""Payroll book / liquidation reconciliation."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from contapyme_engine.calculators.types import (
    DEDUCTION_FIELDS,
    BookDetailSnapshot,
    BookSnapshot,
    LedgerTotals,
    LiquidationSnapshot,
    PayrollLedger,
    PayrollLedgerRow,
    ReconciliationAuthority,
)
from contapyme_engine.calculators.utils import ZERO, normalize_rut, sum_amounts
from contapyme_engine.errors import PartialDataWarning

logger = logging.getLogger(__name__)


@dataclass
class LiquidationIndex:
    """RUT -> liquidation lookup for one period.

    Built once per reconciliation so the join cost is a single pass. The
    first liquidation seen for a RUT wins; later ones are recorded as
    duplicates.
    """

    by_rut: dict[str, LiquidationSnapshot] = field(default_factory=dict)
    duplicate_ruts: list[str] = field(default_factory=list)

    @classmethod
    def build(cls, liquidations: Iterable[LiquidationSnapshot]) -> LiquidationIndex:
        index = cls()
        for liquidation in liquidations:
            rut = normalize_rut(liquidation.employee_rut)
            if rut in index.by_rut:
                if rut not in index.duplicate_ruts:
                    index.duplicate_ruts.append(rut)
                continue
            index.by_rut[rut] = liquidation
        return index

    def get(self, rut: str) -> LiquidationSnapshot | None:
        return self.by_rut.get(normalize_rut(rut))


class ReconciliationResolver:
    """Merges a payroll book with per-employee liquidations.

    Residual rule (applied to deductions and haberes alike):
    - the authoritative total is ground truth
    - other_* = max(0, authoritative_total - itemized_sum)
    - when the itemized sum exceeds the total the residual is clamped to 0
      and the signed delta is kept on the row as a diagnostic

    The resolver is pure: the same inputs always give the same ledger.
    """

    def __init__(self, authority: ReconciliationAuthority = ReconciliationAuthority.BOOK):
        self.authority = ReconciliationAuthority(authority)

    def reconcile(
        self,
        book: BookSnapshot,
        liquidations: Iterable[LiquidationSnapshot],
    ) -> PayrollLedger:
        """Produce one ledger row per book detail, plus footer totals."""
        index = LiquidationIndex.build(liquidations)
        totals = LedgerTotals()
        rows: list[PayrollLedgerRow] = []
        missing: list[str] = []
        matched: set[str] = set()

        for detail in book.details:
            rut = normalize_rut(detail.employee_rut)
            liquidation = index.get(rut)
            if liquidation is None:
                missing.append(rut)
            else:
                matched.add(rut)

            row = self.resolve_row(detail, liquidation)
            rows.append(row)
            totals.add(row)

        orphans = [rut for rut in index.by_rut if rut not in matched]
        excess = [row.employee_rut for row in rows if row.has_excess]

        warning = None
        if missing or index.duplicate_ruts or orphans or excess:
            warning = PartialDataWarning(
                period=book.period,
                missing_ruts=tuple(missing),
                duplicate_ruts=tuple(index.duplicate_ruts),
                orphan_ruts=tuple(orphans),
                excess_ruts=tuple(excess),
            )
            logger.warning("%s (company %s)", warning, book.company_id)

        ledger = PayrollLedger(
            company_id=book.company_id,
            period=book.period,
            authority=self.authority,
            book=book,
            rows=rows,
            totals=totals,
            warning=warning,
        )

        if self.authority == ReconciliationAuthority.BOOK and not ledger.footer_matches_book():
            # Header and detail rows of the book disagree; rows stay untouched.
            logger.error(
                "Payroll book %s for company %s: detail totals (%s/%s/%s) differ from header "
                "(%s/%s/%s)",
                book.period,
                book.company_id,
                totals.total_haberes,
                totals.total_descuentos,
                totals.sueldo_liquido,
                book.total_haberes,
                book.total_descuentos,
                book.total_liquido,
            )

        return ledger

    def resolve_row(
        self,
        detail: BookDetailSnapshot,
        liquidation: LiquidationSnapshot | None,
    ) -> PayrollLedgerRow:
        """Reconcile a single employee."""
        total_haberes, total_descuentos, sueldo_liquido = self._authoritative_totals(
            detail, liquidation
        )

        deductions = {
            name: getattr(liquidation, name) if liquidation else ZERO
            for name in DEDUCTION_FIELDS
        }
        known_deductions = sum_amounts(deductions.values())
        deductions_delta = total_descuentos - known_deductions

        overtime_amount = liquidation.overtime_amount if liquidation else ZERO
        bonuses = liquidation.bonuses if liquidation else ZERO
        commissions = liquidation.commissions if liquidation else ZERO
        gratification = liquidation.gratification_total if liquidation else ZERO
        known_haberes = sum_amounts(
            (
                detail.sueldo_base,
                overtime_amount,
                bonuses,
                commissions,
                gratification,
                detail.colacion,
                detail.movilizacion,
                detail.asignacion_familiar,
            )
        )
        haberes_delta = total_haberes - known_haberes

        if deductions_delta < 0:
            logger.info(
                "Itemized deductions for %s exceed total by %s; residual clamped to 0",
                detail.employee_rut,
                -deductions_delta,
            )

        return PayrollLedgerRow(
            employee_rut=normalize_rut(detail.employee_rut),
            nombres=detail.nombres,
            apellido_paterno=detail.apellido_paterno,
            apellido_materno=detail.apellido_materno,
            cargo=detail.cargo,
            area=detail.area,
            dias_trabajados=detail.dias_trabajados,
            sueldo_base=detail.sueldo_base,
            overtime_hours=liquidation.overtime_hours if liquidation else ZERO,
            overtime_amount=overtime_amount,
            bonuses=bonuses,
            commissions=commissions,
            gratification=gratification,
            colacion=detail.colacion,
            movilizacion=detail.movilizacion,
            asignacion_familiar=detail.asignacion_familiar,
            other_haberes=_clamp(haberes_delta),
            total_haberes=total_haberes,
            **deductions,
            other_deductions=_clamp(deductions_delta),
            total_descuentos=total_descuentos,
            sueldo_liquido=sueldo_liquido,
            deductions_delta=deductions_delta,
            haberes_delta=haberes_delta,
            has_liquidation=liquidation is not None,
        )

    def _authoritative_totals(
        self,
        detail: BookDetailSnapshot,
        liquidation: LiquidationSnapshot | None,
    ) -> tuple[Decimal, Decimal, Decimal]:
        """Pick (haberes, descuentos, liquido) from the authoritative source."""
        if (
            self.authority == ReconciliationAuthority.LIQUIDATION
            and liquidation is not None
            and liquidation.total_gross_income is not None
            and liquidation.total_deductions is not None
        ):
            haberes = liquidation.total_gross_income
            descuentos = liquidation.total_deductions
            liquido = (
                liquidation.net_salary
                if liquidation.net_salary is not None
                else haberes - descuentos
            )
            return haberes, descuentos, liquido
        return detail.total_haberes, detail.total_descuentos, detail.sueldo_liquido


def _clamp(delta: Decimal) -> Decimal:
    return delta if delta > 0 else ZERO
