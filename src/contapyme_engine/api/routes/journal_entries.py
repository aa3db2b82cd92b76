"""Journal entry API endpoints."""

from fastapi import APIRouter, status
from fastapi.responses import Response

from contapyme_engine.api.dependencies import CompanyId, DbSession, Store
from contapyme_engine.api.schemas import (
    ErrorResponse,
    JournalEntryPayload,
    JournalEntryResponse,
    JournalPreviewRequest,
    PostingResponse,
)
from contapyme_engine.calculators.utils import parse_period
from contapyme_engine.services.export_service import journal_entry_to_csv
from contapyme_engine.services.journal_service import JournalService

router = APIRouter(prefix="/journal-entries", tags=["journal-entries"])


# ============================================================================
# Preview (no persistence)
# ============================================================================


@router.post(
    "/preview",
    response_model=JournalEntryResponse,
    responses={400: {"model": ErrorResponse}},
)
async def preview_journal_entry(
    store: Store,
    company_id: CompanyId,
    payload: JournalPreviewRequest,
) -> JournalEntryResponse:
    """Build the preliminary journal entry for an RCV analysis."""
    parse_period(payload.period)
    entry = JournalService(store).preview(
        payload.analysis.to_analysis(),
        payload.period,
        ledger_id=payload.ledger_id,
        detail_by_entity=payload.detail_by_entity,
    )
    return JournalEntryResponse.from_candidate(entry)


@router.post(
    "/preview/csv",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}, 400: {"model": ErrorResponse}},
)
async def export_journal_entry_csv(
    store: Store,
    company_id: CompanyId,
    payload: JournalPreviewRequest,
) -> Response:
    """Preliminary journal entry as CSV."""
    parse_period(payload.period)
    entry = JournalService(store).preview(
        payload.analysis.to_analysis(),
        payload.period,
        ledger_id=payload.ledger_id,
        detail_by_entity=payload.detail_by_entity,
    )
    filename = f"asiento-{entry.source_type}-{payload.period}.csv"
    return Response(
        content=journal_entry_to_csv(entry),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================================
# Posting
# ============================================================================


@router.post(
    "",
    response_model=PostingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def post_journal_entry(
    db: DbSession,
    store: Store,
    company_id: CompanyId,
    payload: JournalEntryPayload,
) -> PostingResponse:
    """Post a balanced journal entry to the company's journal."""
    parse_period(payload.period)
    entry = payload.to_candidate()
    result = await JournalService(store).post_entry(company_id, entry)
    await db.commit()
    return PostingResponse.from_result(result, entry)
