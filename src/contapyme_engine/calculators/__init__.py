"""Pure reconciliation and journal calculations."""

from contapyme_engine.calculators.coherence import CoherenceReport, CoherenceValidator, TotalsSource
from contapyme_engine.calculators.journal_balancer import AccountMap, JournalBalancer
from contapyme_engine.calculators.reconciliation import ReconciliationResolver

__all__ = [
    "AccountMap",
    "CoherenceReport",
    "CoherenceValidator",
    "JournalBalancer",
    "ReconciliationResolver",
    "TotalsSource",
]
