"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse

from rental_inspection.api.models import (
    CheckAnswer,
    SessionResponse,
    SubmissionResponse,
    UploadedPhotoResponse,
)
from rental_inspection.app_logging import configure_logging
from rental_inspection.containers import AppContainer
from rental_inspection.domain.photos import RawPhoto
from rental_inspection.domain.reports import ConditionAnswers, ConditionCheck
from rental_inspection.domain.session import SessionContext, parse_language
from rental_inspection.errors import SubmissionInProgress
from rental_inspection.services.submission import SubmissionOutcome, SubmissionResult

_STATUS_BY_OUTCOME = {
    SubmissionOutcome.COMPLETED: status.HTTP_200_OK,
    SubmissionOutcome.IGNORED: status.HTTP_409_CONFLICT,
    SubmissionOutcome.FAILED: status.HTTP_502_BAD_GATEWAY,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/session")
    async def session(  # noqa: PLR0913
        request: Request,
        id: str | None = None,  # noqa: A002
        mid: str | None = None,
        stid: str | None = None,
        lang: str | None = None,
    ) -> SessionResponse:
        """Resolve the session context from query parameters."""
        state_container: AppContainer = request.app.state.container
        context = SessionContext.from_query(
            order_id=id,
            merchant_id=mid,
            store_id=stid,
            lang=lang,
            default_language=state_container.settings.default_language,
        )
        logger.info("Session initialized for order %s", context.order_id)
        return SessionResponse(
            order_id=context.order_id,
            merchant_id=context.merchant_id,
            store_id=context.store_id,
            language=str(context.language),
        )

    @app.post("/submissions")
    async def submit(  # noqa: PLR0913
        request: Request,
        order_id: str = Form(...),
        merchant_id: str = Form("default"),
        store_id: str = Form("default"),
        lang: str | None = Form(None),
        gears: CheckAnswer = Form("ok"),
        gears_problem: str = Form(""),
        brakes: CheckAnswer = Form("ok"),
        brakes_problem: str = Form(""),
        other_issues: CheckAnswer = Form("ok"),
        other_issues_problem: str = Form(""),
        notes: str = Form(""),
        photos: list[UploadFile] = File(...),
    ) -> JSONResponse:
        """Submit a condition report with photos."""
        state_container: AppContainer = request.app.state.container
        settings = state_container.settings
        if not photos or len(photos) > settings.max_photos:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Between 1 and {settings.max_photos} photos are required.",
            )
        raw_photos = [await _to_raw_photo(upload) for upload in photos]
        answers = ConditionAnswers(
            gears=_check(gears, gears_problem),
            brakes=_check(brakes, brakes_problem),
            other_issues=_check(other_issues, other_issues_problem),
            notes=notes,
        )
        orchestrator = state_container.submissions.get(order_id, merchant_id)
        result = await orchestrator.submit(
            order_id,
            merchant_id,
            raw_photos,
            answers,
            store_id=store_id,
            language=parse_language(lang, settings.default_language),
        )
        status_code = _STATUS_BY_OUTCOME[result.outcome]
        if result.rejected:
            status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        return JSONResponse(
            status_code=status_code,
            content=_to_response(result).model_dump(),
        )

    @app.post("/submissions/reset")
    async def reset_submission(
        request: Request,
        order_id: str = Form(...),
        merchant_id: str = Form("default"),
    ) -> dict[str, str]:
        """Allow a completed or failed session to be submitted again."""
        state_container: AppContainer = request.app.state.container
        try:
            state_container.submissions.reset(order_id, merchant_id)
        except SubmissionInProgress as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=str(exc)
            ) from exc
        return {"status": "ok"}

    return app


async def _to_raw_photo(upload: UploadFile) -> RawPhoto:
    content = await upload.read()
    return RawPhoto(
        content=content,
        media_type=upload.content_type or "",
        size=len(content),
        file_name=upload.filename or "photo",
    )


def _check(answer: str, detail: str) -> ConditionCheck:
    return ConditionCheck(has_problem=answer == "problem", detail=detail)


def _to_response(result: SubmissionResult) -> SubmissionResponse:
    return SubmissionResponse(
        outcome=str(result.outcome),
        submission_id=result.report.submission_id if result.report else None,
        uploaded_photos=[
            UploadedPhotoResponse(file_name=record.file_name, file_path=record.file_path)
            for record in result.uploaded
        ],
        error=result.error,
    )
