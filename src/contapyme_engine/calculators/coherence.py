"""Cross-source coherence checks for payroll totals."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from itertools import combinations
from typing import Any
from uuid import UUID

from contapyme_engine.calculators.types import LiquidationSnapshot
from contapyme_engine.calculators.utils import ZERO, sum_amounts


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class TotalsSource:
    """Payroll totals as reported by one data source."""

    name: str
    total_haberes: Decimal
    total_descuentos: Decimal
    total_liquido: Decimal
    records: int = 0


@dataclass(frozen=True)
class Discrepancy:
    """Signed differences (a - b) between two sources."""

    source_a: str
    source_b: str
    haberes_diff: Decimal
    descuentos_diff: Decimal
    liquido_diff: Decimal
    severity: Severity

    @property
    def max_abs_diff(self) -> Decimal:
        return max(abs(self.haberes_diff), abs(self.descuentos_diff), abs(self.liquido_diff))


@dataclass(frozen=True)
class PayrollTotals:
    haberes: Decimal
    descuentos: Decimal
    liquido: Decimal

    def __sub__(self, other: PayrollTotals) -> PayrollTotals:
        return PayrollTotals(
            haberes=self.haberes - other.haberes,
            descuentos=self.descuentos - other.descuentos,
            liquido=self.liquido - other.liquido,
        )

    def max_abs(self) -> Decimal:
        return max(abs(self.haberes), abs(self.descuentos), abs(self.liquido))


@dataclass(frozen=True)
class LiquidationCorrection:
    """Stored liquidation totals against the totals rebuilt from its components.

    Missing stored totals count as 0. This is a proposal only; nothing is
    written back.
    """

    employee_rut: str
    liquidation_id: UUID | None
    current: PayrollTotals
    correct: PayrollTotals
    needs_correction: bool

    @property
    def differences(self) -> PayrollTotals:
        """Signed correct - current."""
        return self.correct - self.current


@dataclass
class CoherenceReport:
    is_coherent: bool
    confidence_score: int
    recommended_action: str
    auto_fixable: bool
    sources: list[TotalsSource] = field(default_factory=list)
    discrepancies: list[Discrepancy] = field(default_factory=list)
    liquidations_analyzed: int = 0
    corrections: list[LiquidationCorrection] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_coherent": self.is_coherent,
            "confidence_score": self.confidence_score,
            "recommended_action": self.recommended_action,
            "auto_fixable": self.auto_fixable,
            "sources": [vars(source) for source in self.sources],
            "discrepancies": [
                {
                    "source_a": d.source_a,
                    "source_b": d.source_b,
                    "haberes_diff": d.haberes_diff,
                    "descuentos_diff": d.descuentos_diff,
                    "liquido_diff": d.liquido_diff,
                    "severity": d.severity.value,
                }
                for d in self.discrepancies
            ],
            "liquidations_analyzed": self.liquidations_analyzed,
            "corrections": [
                {
                    "employee_rut": c.employee_rut,
                    "liquidation_id": c.liquidation_id,
                    "current": vars(c.current),
                    "correct": vars(c.correct),
                    "differences": vars(c.differences),
                }
                for c in self.corrections
            ],
        }


class CoherenceValidator:
    """Compares payroll totals between every pair of sources.

    A pair is incoherent when any total differs by more than TOLERANCE.
    Severity is graded on the largest absolute difference.
    """

    TOLERANCE = Decimal("1")
    MEDIUM_THRESHOLD = Decimal("1000")
    HIGH_THRESHOLD = Decimal("10000")
    CRITICAL_THRESHOLD = Decimal("50000")

    @classmethod
    def severity_for(cls, diff: Decimal) -> Severity:
        diff = abs(diff)
        if diff > cls.CRITICAL_THRESHOLD:
            return Severity.CRITICAL
        if diff > cls.HIGH_THRESHOLD:
            return Severity.HIGH
        if diff > cls.MEDIUM_THRESHOLD:
            return Severity.MEDIUM
        return Severity.LOW

    @classmethod
    def validate(
        cls,
        sources: Sequence[TotalsSource],
        liquidations: Sequence[LiquidationSnapshot] = (),
    ) -> CoherenceReport:
        """Compare sources pairwise and check each liquidation against itself.

        Only liquidations that need correction are listed in the report.
        """
        discrepancies: list[Discrepancy] = []
        pairs = list(combinations(sources, 2))

        for a, b in pairs:
            haberes_diff = a.total_haberes - b.total_haberes
            descuentos_diff = a.total_descuentos - b.total_descuentos
            liquido_diff = a.total_liquido - b.total_liquido
            largest = max(abs(haberes_diff), abs(descuentos_diff), abs(liquido_diff))
            if largest > cls.TOLERANCE:
                discrepancies.append(
                    Discrepancy(
                        source_a=a.name,
                        source_b=b.name,
                        haberes_diff=haberes_diff,
                        descuentos_diff=descuentos_diff,
                        liquido_diff=liquido_diff,
                        severity=cls.severity_for(largest),
                    )
                )

        if pairs:
            confidence = round(100 * (len(pairs) - len(discrepancies)) / len(pairs))
        else:
            confidence = 100

        corrections = [
            correction
            for correction in map(cls.check_liquidation, liquidations)
            if correction.needs_correction
        ]

        severities = {d.severity for d in discrepancies}
        if not discrepancies and not corrections:
            action = "No action required - data is coherent"
        elif not discrepancies:
            action = f"MEDIUM: update stored totals on {len(corrections)} liquidation(s)"
        elif Severity.CRITICAL in severities:
            action = "CRITICAL: regenerate the payroll book from the liquidations"
        elif Severity.HIGH in severities:
            action = "HIGH: update stored totals with the reconciled values"
        else:
            action = "MEDIUM: verify calculation inputs and refresh cached data"

        return CoherenceReport(
            is_coherent=not discrepancies and not corrections,
            confidence_score=confidence,
            recommended_action=action,
            auto_fixable=Severity.CRITICAL not in severities,
            sources=list(sources),
            discrepancies=discrepancies,
            liquidations_analyzed=len(liquidations),
            corrections=corrections,
        )

    @classmethod
    def check_liquidation(cls, liquidation: LiquidationSnapshot) -> LiquidationCorrection:
        current = PayrollTotals(
            haberes=liquidation.total_gross_income or ZERO,
            descuentos=liquidation.total_deductions or ZERO,
            liquido=liquidation.net_salary or ZERO,
        )
        correct = PayrollTotals(
            haberes=liquidation.computed_haberes,
            descuentos=liquidation.computed_descuentos,
            liquido=liquidation.computed_liquido,
        )
        return LiquidationCorrection(
            employee_rut=liquidation.employee_rut,
            liquidation_id=liquidation.liquidation_id,
            current=current,
            correct=correct,
            needs_correction=(correct - current).max_abs() > cls.TOLERANCE,
        )


def liquidation_totals_source(
    name: str, liquidations: Sequence[LiquidationSnapshot]
) -> TotalsSource:
    """Totals as stored on the liquidations themselves (missing totals count as 0)."""
    return TotalsSource(
        name=name,
        total_haberes=sum_amounts(liq.total_gross_income or ZERO for liq in liquidations),
        total_descuentos=sum_amounts(liq.total_deductions or ZERO for liq in liquidations),
        total_liquido=sum_amounts(liq.net_salary or ZERO for liq in liquidations),
        records=len(liquidations),
    )
