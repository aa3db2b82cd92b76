"""Journal entry preview and posting."""

from __future__ import annotations

import logging
from uuid import UUID

from contapyme_engine.calculators.journal_balancer import JournalBalancer
from contapyme_engine.calculators.types import (
    JournalEntryCandidate,
    JournalEntryStatus,
    PostingResult,
    RCVAnalysis,
)
from contapyme_engine.services.record_store import RecordStore
from contapyme_engine.services.state_machine import JournalEntryStateMachine

logger = logging.getLogger(__name__)


class JournalService:
    """Service for RCV journal entries.

    Preview is pure and never touches the store. Posting is explicit and
    only happens for an entry whose lines balance exactly.
    """

    def __init__(self, store: RecordStore, balancer: JournalBalancer | None = None):
        self.store = store
        self.balancer = balancer or JournalBalancer()

    def preview(
        self,
        analysis: RCVAnalysis,
        period: str,
        *,
        ledger_id: str | None = None,
        detail_by_entity: bool = False,
    ) -> JournalEntryCandidate:
        """Build a preliminary entry from an RCV analysis."""
        return self.balancer.build_entry(
            analysis,
            period,
            ledger_id=ledger_id,
            detail_by_entity=detail_by_entity,
        )

    async def post_entry(
        self, company_id: UUID, entry: JournalEntryCandidate
    ) -> PostingResult:
        """Post a preliminary entry to the company's journal.

        Raises:
            InvalidTransitionError: the entry was already posted.
            UnbalancedEntryError: debits differ from credits; nothing is written.
            ValueError: the entry has no lines.
        """
        JournalEntryStateMachine.validate_transition(entry.status, JournalEntryStatus.POSTED)
        JournalBalancer.ensure_balanced(entry)
        errors = JournalEntryStateMachine.validate_entry_for_posting(entry)
        if errors:
            raise ValueError("; ".join(errors))

        result = await self.store.post_journal_entry(company_id, entry.period, entry)
        entry.mark_posted(result.entry_number)

        logger.info(
            "Posted journal entry #%d for company %s period %s (%d lines, %s)",
            result.entry_number,
            company_id,
            entry.period,
            result.total_lines,
            result.total_debit,
        )
        return result
