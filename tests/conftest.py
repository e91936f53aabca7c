"""Shared test fixtures."""

import threading
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from rental_inspection.config import Settings
from rental_inspection.containers import AppContainer, build_orchestrator_factory
from rental_inspection.domain.photos import (
    CompressionPreset,
    RawPhoto,
    UploadedPhotoRecord,
)
from rental_inspection.domain.reports import Report
from rental_inspection.errors import NotificationFailed, UniqueViolation
from rental_inspection.services.compression import ImageCompressor, ImageEncoder
from rental_inspection.services.notifications import NotificationClient
from rental_inspection.services.photos import (
    PhotoRecordRepository,
    PhotoStorage,
    PhotoUploadService,
)
from rental_inspection.services.reports import ReportRepository, ReportService
from rental_inspection.services.retry import UploadRetrier
from rental_inspection.services.submission import (
    SubmissionOrchestrator,
    SubmissionRegistry,
)


@dataclass
class InMemoryReportRepository(ReportRepository):
    """In-memory report repository enforcing the (order, merchant) key."""

    reports: dict[tuple[str, str], Report] = field(default_factory=dict)
    find_calls: int = 0
    insert_calls: int = 0
    find_error: Exception | None = None
    insert_error: Exception | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def find_report(self, order_id: str, merchant_id: str) -> Report | None:
        with self._lock:
            self.find_calls += 1
        if self.find_error is not None:
            raise self.find_error
        return self.reports.get((order_id, merchant_id))

    def insert_report(self, report: Report) -> Report:
        with self._lock:
            self.insert_calls += 1
            if self.insert_error is not None:
                raise self.insert_error
            key = (report.order_id, report.merchant_id)
            if key in self.reports:
                raise UniqueViolation(f"duplicate key {key}")
            self.reports[key] = report
            return report


@dataclass
class RacingReportRepository(InMemoryReportRepository):
    """Repository whose first lookups all miss before any of them returns."""

    racers: int = 2
    _barrier: threading.Barrier | None = None

    def find_report(self, order_id: str, merchant_id: str) -> Report | None:
        with self._lock:
            self.find_calls += 1
            call = self.find_calls
            if self._barrier is None:
                self._barrier = threading.Barrier(self.racers)
            found = self.reports.get((order_id, merchant_id))
        if call <= self.racers:
            self._barrier.wait(timeout=5)
        return found


@dataclass
class FakeImageEncoder(ImageEncoder):
    """Encoder that records presets and fails on selected ladder positions."""

    failing_attempts: set[int] = field(default_factory=set)
    presets: list[CompressionPreset] = field(default_factory=list)

    def encode(self, content: bytes, preset: CompressionPreset) -> bytes:
        self.presets.append(preset)
        attempt = len(self.presets)
        if attempt in self.failing_attempts:
            raise OSError(f"encoder failed on attempt {attempt}")
        return b"jpeg:" + content[:16]


@dataclass
class InMemoryPhotoStorage(PhotoStorage):
    """In-memory bucket that can delay or fail selected uploads."""

    objects: dict[str, bytes] = field(default_factory=dict)
    completed: list[bytes] = field(default_factory=list)
    delays: dict[bytes, float] = field(default_factory=dict)
    failures_remaining: int = 0
    calls: int = 0

    def put_object(self, path: str, content: bytes, content_type: str) -> str:
        self.calls += 1
        if self.failures_remaining > 0:
            self.failures_remaining -= 1
            raise RuntimeError("storage unavailable")
        delay = self.delays.get(content)
        if delay:
            time.sleep(delay)
        self.objects[path] = content
        self.completed.append(content)
        return path


@dataclass
class InMemoryPhotoRecordRepository(PhotoRecordRepository):
    """In-memory photo record repository."""

    records: list[UploadedPhotoRecord] = field(default_factory=list)

    def insert_photo_record(self, record: UploadedPhotoRecord) -> UploadedPhotoRecord:
        self.records.append(record)
        return record


@dataclass
class FakeNotificationClient(NotificationClient):
    """Notification client that records calls and can fail."""

    calls: list[tuple[str, str]] = field(default_factory=list)
    fail: bool = False

    async def notify(self, order_id: str, store_id: str) -> None:
        self.calls.append((order_id, store_id))
        if self.fail:
            raise NotificationFailed("Webhook call failed: 500")


class Clock:
    """Deterministic clock advancing one millisecond per call."""

    def __init__(self) -> None:
        self._millis = 1_700_000_000_000

    def __call__(self) -> datetime:
        self._millis += 1
        return datetime.fromtimestamp(self._millis / 1000, tz=UTC)


async def no_sleep(_seconds: float) -> None:
    return None


def make_photo(name: str = "bike.png", content: bytes = b"raw-image") -> RawPhoto:
    return RawPhoto(
        content=content,
        media_type="image/png",
        size=len(content),
        file_name=name,
    )


@dataclass
class Pipeline:
    """Orchestrator together with the fakes behind it."""

    orchestrator: SubmissionOrchestrator
    reports: InMemoryReportRepository
    encoder: FakeImageEncoder
    storage: InMemoryPhotoStorage
    records: InMemoryPhotoRecordRepository
    notifier: FakeNotificationClient


def build_pipeline(
    reports: InMemoryReportRepository | None = None,
    storage: InMemoryPhotoStorage | None = None,
    notifier: FakeNotificationClient | None = None,
    encoder: FakeImageEncoder | None = None,
) -> Pipeline:
    reports = reports or InMemoryReportRepository()
    storage = storage or InMemoryPhotoStorage()
    notifier = notifier or FakeNotificationClient()
    encoder = encoder or FakeImageEncoder()
    records = InMemoryPhotoRecordRepository()
    orchestrator = SubmissionOrchestrator(
        report_service=ReportService(reports, clock=Clock()),
        compressor=ImageCompressor(encoder=encoder),
        uploader=PhotoUploadService(
            storage=storage, record_repository=records, clock=Clock()
        ),
        retrier=UploadRetrier(max_attempts=3, attempt_timeout=5, sleep=no_sleep),
        notifier=notifier,
    )
    return Pipeline(
        orchestrator=orchestrator,
        reports=reports,
        encoder=encoder,
        storage=storage,
        records=records,
        notifier=notifier,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        notification_webhook_url="https://hooks.example.com/inspection",
        upload_backoff_seconds=0.0,
        photo_pause_seconds=0.0,
    )


@pytest.fixture
def report_repository() -> InMemoryReportRepository:
    return InMemoryReportRepository()


@pytest.fixture
def photo_storage() -> InMemoryPhotoStorage:
    return InMemoryPhotoStorage()


@pytest.fixture
def notifier() -> FakeNotificationClient:
    return FakeNotificationClient()


@pytest.fixture
def container(
    settings: Settings,
    report_repository: InMemoryReportRepository,
    photo_storage: InMemoryPhotoStorage,
    notifier: FakeNotificationClient,
) -> AppContainer:
    report_service = ReportService(report_repository, clock=Clock())
    compressor = ImageCompressor(
        encoder=FakeImageEncoder(), max_input_bytes=settings.max_photo_bytes
    )
    photo_upload_service = PhotoUploadService(
        storage=photo_storage,
        record_repository=InMemoryPhotoRecordRepository(),
        clock=Clock(),
    )
    submissions = SubmissionRegistry(
        factory=build_orchestrator_factory(
            settings, report_service, compressor, photo_upload_service, notifier
        )
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        report_service=report_service,
        compressor=compressor,
        photo_upload_service=photo_upload_service,
        notifier=notifier,
        submissions=submissions,
        close_resources=close_resources,
    )
