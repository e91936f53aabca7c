"""Single-flight orchestration of an inspection submission."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from rental_inspection.domain.photos import RawPhoto, UploadedPhotoRecord
from rental_inspection.domain.reports import ConditionAnswers, Report
from rental_inspection.domain.session import DEFAULT_STORE_ID, Language
from rental_inspection.errors import (
    InputTooLarge,
    InspectionError,
    InvalidInput,
    SubmissionInProgress,
    UploadFailed,
    UploadTimeout,
)
from rental_inspection.services.compression import ImageCompressor
from rental_inspection.services.condition import assess_condition
from rental_inspection.services.notifications import NotificationClient
from rental_inspection.services.photos import PhotoUploadService
from rental_inspection.services.reports import ReportService
from rental_inspection.services.retry import Sleep, UploadRetrier

logger = logging.getLogger(__name__)


class SubmissionState(StrEnum):
    """Lifecycle states of a submission attempt."""

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"
    FAILED = "failed"


class SubmissionOutcome(StrEnum):
    """Result of a call to submit."""

    COMPLETED = "completed"
    FAILED = "failed"
    IGNORED = "ignored"


@dataclass(frozen=True)
class PhotoOutcome:
    """Result of processing one photo."""

    file_name: str
    record: UploadedPhotoRecord | None = None
    error: str | None = None
    rejected: bool = False


@dataclass(frozen=True)
class SubmissionResult:
    """Aggregated outcome of a submission."""

    outcome: SubmissionOutcome
    report: Report | None = None
    photos: list[PhotoOutcome] = field(default_factory=list)
    error: str | None = None
    rejected: bool = False
    @property
    def uploaded(self) -> list[UploadedPhotoRecord]:
        """Records of the photos that were stored."""
        return [photo.record for photo in self.photos if photo.record is not None]


@dataclass
class SubmissionAttempt:
    """In-memory state of the current submission."""

    state: SubmissionState = SubmissionState.IDLE
    photos: list[PhotoOutcome] = field(default_factory=list)
    report: Report | None = None
    error: str | None = None

    @property
    def is_guarded(self) -> bool:
        """Whether a new submission must be refused."""
        return self.state in {SubmissionState.IN_FLIGHT, SubmissionState.COMPLETED}


@dataclass
class SubmissionOrchestrator:
    """Runs report creation, photo uploads and notification for one session."""

    report_service: ReportService
    compressor: ImageCompressor
    uploader: PhotoUploadService
    retrier: UploadRetrier
    notifier: NotificationClient
    photo_pause_seconds: float = 0.0
    sleep: Sleep = field(default=asyncio.sleep)
    attempt: SubmissionAttempt = field(default_factory=SubmissionAttempt)

    @property
    def state(self) -> SubmissionState:
        """Current state of the submission."""
        return self.attempt.state

    async def submit(  # noqa: PLR0913
        self,
        order_id: str,
        merchant_id: str,
        raw_photos: list[RawPhoto],
        form_answer: ConditionAnswers,
        *,
        store_id: str = DEFAULT_STORE_ID,
        language: Language = Language.DE,
    ) -> SubmissionResult:
        """Submit a report with photos; repeated calls while busy are ignored."""
        if self.attempt.is_guarded:
            logger.info(
                "Submission for order %s already %s, ignoring",
                order_id,
                self.attempt.state,
            )
            return SubmissionResult(outcome=SubmissionOutcome.IGNORED)
        self.attempt = SubmissionAttempt(state=SubmissionState.IN_FLIGHT)

        try:
            return await self._run(
                order_id, merchant_id, raw_photos, form_answer, store_id, language
            )
        except Exception as exc:
            logger.exception("Submission for order %s failed", order_id)
            return self._fail(str(exc) or type(exc).__name__)
        finally:
            if self.attempt.state == SubmissionState.IN_FLIGHT:
                logger.warning("Submission for order %s was interrupted", order_id)
                self.attempt.state = SubmissionState.FAILED
                self.attempt.error = "Submission interrupted"

    async def _run(  # noqa: PLR0913
        self,
        order_id: str,
        merchant_id: str,
        raw_photos: list[RawPhoto],
        form_answer: ConditionAnswers,
        store_id: str,
        language: Language,
    ) -> SubmissionResult:
        status, description = assess_condition(form_answer, language)
        logger.info(
            "Submitting report for order %s, merchant %s (%s, %d photos)",
            order_id,
            merchant_id,
            status,
            len(raw_photos),
        )
        try:
            report = await asyncio.to_thread(
                self.report_service.create_or_get,
                order_id,
                merchant_id,
                status,
                description,
            )
        except InspectionError as exc:
            return self._fail(str(exc))
        self.attempt.report = report

        for index, raw in enumerate(raw_photos):
            if index and self.photo_pause_seconds:
                await self.sleep(self.photo_pause_seconds)
            outcome = await self._process_photo(raw, order_id, merchant_id)
            self.attempt.photos.append(outcome)
            if outcome.error is not None:
                return self._fail(outcome.error, rejected=outcome.rejected)

        try:
            await self.notifier.notify(order_id, store_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Notification for order %s failed, continuing: %s", order_id, exc
            )

        self.attempt.state = SubmissionState.COMPLETED
        logger.info("Submission %s completed", report.submission_id)
        return SubmissionResult(
            outcome=SubmissionOutcome.COMPLETED,
            report=report,
            photos=list(self.attempt.photos),
        )

    def reset(self) -> None:
        """Return to idle so a new order context can be submitted."""
        if self.attempt.state == SubmissionState.IN_FLIGHT:
            raise SubmissionInProgress("Cannot reset a submission that is running")
        self.attempt = SubmissionAttempt()

    async def _process_photo(
        self, raw: RawPhoto, order_id: str, merchant_id: str
    ) -> PhotoOutcome:
        try:
            compressed = await self.compressor.compress(raw)
        except (InvalidInput, InputTooLarge) as exc:
            logger.warning("Rejected %s: %s", raw.file_name, exc)
            return PhotoOutcome(
                file_name=raw.file_name, error=str(exc), rejected=True
            )
        except InspectionError as exc:
            logger.error("Failed to process %s: %s", raw.file_name, exc)
            return PhotoOutcome(file_name=raw.file_name, error=str(exc))

        try:
            record = await self.retrier.run(
                lambda: asyncio.to_thread(
                    self.uploader.upload, compressed, order_id, merchant_id
                )
            )
        except (UploadTimeout, UploadFailed) as exc:
            logger.error("Failed to upload %s: %s", raw.file_name, exc)
            return PhotoOutcome(file_name=raw.file_name, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            error = UploadFailed(f'Failed to upload "{raw.file_name}": {exc}')
            logger.error("%s", error)
            return PhotoOutcome(file_name=raw.file_name, error=str(error))
        finally:
            compressed.release()
        return PhotoOutcome(file_name=compressed.file_name, record=record)

    def _fail(self, error: str, *, rejected: bool = False) -> SubmissionResult:
        self.attempt.state = SubmissionState.FAILED
        self.attempt.error = error
        return SubmissionResult(
            outcome=SubmissionOutcome.FAILED,
            report=self.attempt.report,
            photos=list(self.attempt.photos),
            error=error,
            rejected=rejected,
        )


@dataclass
class SubmissionRegistry:
    """Keeps one orchestrator per order and merchant session.

    At most ``max_sessions`` sessions are tracked. When the limit is exceeded
    the least recently used sessions that are not running are dropped.
    """

    factory: Callable[[], SubmissionOrchestrator]
    max_sessions: int = 1000
    _orchestrators: dict[tuple[str, str], SubmissionOrchestrator] = field(
        default_factory=dict
    )

    def get(self, order_id: str, merchant_id: str) -> SubmissionOrchestrator:
        """Return the orchestrator for a session, creating it on first use."""
        key = (order_id, merchant_id)
        orchestrator = self._orchestrators.pop(key, None)
        if orchestrator is None:
            orchestrator = self.factory()
        self._orchestrators[key] = orchestrator
        self._evict(keep=key)
        return orchestrator

    def reset(self, order_id: str, merchant_id: str) -> None:
        """Reset the session's submission so it may be submitted again."""
        key = (order_id, merchant_id)
        orchestrator = self._orchestrators.get(key)
        if orchestrator is not None:
            orchestrator.reset()
            del self._orchestrators[key]

    def __len__(self) -> int:
        return len(self._orchestrators)

    def __contains__(self, key: object) -> bool:
        return key in self._orchestrators

    def _evict(self, keep: tuple[str, str]) -> None:
        for key in list(self._orchestrators):
            if len(self._orchestrators) <= self.max_sessions:
                return
            if key == keep:
                continue
            if self._orchestrators[key].state != SubmissionState.IN_FLIGHT:
                logger.info("Dropping submission session %s/%s", *key)
                del self._orchestrators[key]
