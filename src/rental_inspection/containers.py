"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from rental_inspection.adapters.pillow_image_encoder import PillowImageEncoder
from rental_inspection.adapters.supabase_photo_storage import (
    SupabasePhotoRecordRepository,
    SupabasePhotoStorage,
)
from rental_inspection.adapters.supabase_report_repository import (
    SupabaseReportRepository,
)
from rental_inspection.adapters.webhook_client import HttpxWebhookClient
from rental_inspection.config import Settings
from rental_inspection.services.compression import ImageCompressor
from rental_inspection.services.notifications import NotificationClient
from rental_inspection.services.photos import PhotoUploadService
from rental_inspection.services.reports import ReportService
from rental_inspection.services.retry import UploadRetrier
from rental_inspection.services.submission import (
    SubmissionOrchestrator,
    SubmissionRegistry,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    report_service: ReportService
    compressor: ImageCompressor
    photo_upload_service: PhotoUploadService
    notifier: NotificationClient
    submissions: SubmissionRegistry
    close_resources: Callable[[], Awaitable[None]]


def build_orchestrator_factory(
    settings: Settings,
    report_service: ReportService,
    compressor: ImageCompressor,
    photo_upload_service: PhotoUploadService,
    notifier: NotificationClient,
) -> Callable[[], SubmissionOrchestrator]:
    """Return a factory creating one orchestrator per session."""

    def factory() -> SubmissionOrchestrator:
        return SubmissionOrchestrator(
            report_service=report_service,
            compressor=compressor,
            uploader=photo_upload_service,
            retrier=UploadRetrier(
                max_attempts=settings.upload_max_attempts,
                attempt_timeout=settings.upload_attempt_timeout_seconds,
                backoff_unit=settings.upload_backoff_seconds,
            ),
            notifier=notifier,
            photo_pause_seconds=settings.photo_pause_seconds,
        )

    return factory


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    report_service = ReportService(
        repository=SupabaseReportRepository(supabase_client),
        timezone=resolved_settings.report_timezone,
    )
    compressor = ImageCompressor(
        encoder=PillowImageEncoder(),
        max_input_bytes=resolved_settings.max_photo_bytes,
    )
    photo_upload_service = PhotoUploadService(
        storage=SupabasePhotoStorage(
            supabase_client, bucket=resolved_settings.photo_bucket
        ),
        record_repository=SupabasePhotoRecordRepository(supabase_client),
    )
    webhook_client = HttpxWebhookClient.create(
        resolved_settings.notification_webhook_url
    )
    submissions = SubmissionRegistry(
        factory=build_orchestrator_factory(
            resolved_settings,
            report_service,
            compressor,
            photo_upload_service,
            webhook_client,
        ),
        max_sessions=resolved_settings.max_tracked_sessions,
    )

    async def close_resources() -> None:
        await webhook_client.close()

    return AppContainer(
        settings=resolved_settings,
        report_service=report_service,
        compressor=compressor,
        photo_upload_service=photo_upload_service,
        notifier=webhook_client,
        submissions=submissions,
        close_resources=close_resources,
    )
