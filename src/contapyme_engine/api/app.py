"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contapyme_engine import __version__
from contapyme_engine.api.routes import (
    health_router,
    journal_entries_router,
    payroll_ledger_router,
)
from contapyme_engine.api.schemas import ErrorResponse, JournalEntryResponse
from contapyme_engine.database import dispose_db, init_db
from contapyme_engine.errors import NotFoundError, UnbalancedEntryError
from contapyme_engine.services.state_machine import InvalidTransitionError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    init_db()
    yield
    # Shutdown
    await dispose_db()


def _error(status_code: int, detail: str, code: str, context: dict | None = None) -> JSONResponse:
    body = ErrorResponse(detail=detail, code=code, context=context)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="ContaPyme Reconciliation Engine API",
        description="Payroll book reconciliation and RCV journal entries",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(
            status.HTTP_404_NOT_FOUND,
            str(exc),
            "NOT_FOUND",
            {"resource": exc.resource, **{k: str(v) for k, v in exc.key.items()}},
        )

    @app.exception_handler(UnbalancedEntryError)
    async def unbalanced_handler(request: Request, exc: UnbalancedEntryError) -> JSONResponse:
        entry = JournalEntryResponse.from_candidate(exc.entry)
        return _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            str(exc),
            "UNBALANCED_ENTRY",
            {
                "total_debit": str(exc.total_debit),
                "total_credit": str(exc.total_credit),
                "difference": str(exc.difference),
                "entry": entry.model_dump(mode="json"),
            },
        )

    @app.exception_handler(InvalidTransitionError)
    async def transition_handler(request: Request, exc: InvalidTransitionError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc), "INVALID_TRANSITION")

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc), "INVALID_INPUT")

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred",
            "INTERNAL_ERROR",
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(payroll_ledger_router, prefix="/api/v1")
    app.include_router(journal_entries_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
