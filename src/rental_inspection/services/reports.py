"""Idempotent creation of inspection reports."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from rental_inspection.domain.reports import Report, ReportStatus
from rental_inspection.errors import ReportCreationFailed, UniqueViolation

logger = logging.getLogger(__name__)


class ReportRepository(Protocol):
    """Persistence interface for inspection reports."""

    def find_report(self, order_id: str, merchant_id: str) -> Report | None:
        """Return the report for an order and merchant, if present."""

    def insert_report(self, report: Report) -> Report:
        """Insert a report, raising UniqueViolation if the key already exists."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ReportService:
    """Creates or returns the single report for an order and merchant."""

    repository: ReportRepository
    timezone: str = "Europe/Vienna"
    clock: Callable[[], datetime] = field(default=_utc_now)

    def create_or_get(
        self,
        order_id: str,
        merchant_id: str,
        status: ReportStatus,
        description: str,
    ) -> Report:
        """Return the existing report for the key or create a new one."""
        try:
            existing = self.repository.find_report(order_id, merchant_id)
        except Exception:
            logger.exception(
                "Failed to check for an existing report for order %s", order_id
            )
            existing = None
        if existing is not None:
            logger.info(
                "Report already exists for order %s and merchant %s",
                order_id,
                merchant_id,
            )
            return existing

        created_at = self.clock()
        report = Report(
            order_id=order_id,
            merchant_id=merchant_id,
            status=status,
            description=description,
            submission_id=build_submission_id(order_id, merchant_id, created_at),
            created_at=created_at,
            created_at_local=_format_local(created_at, self.timezone),
        )
        try:
            created = self.repository.insert_report(report)
        except UniqueViolation:
            logger.info(
                "Report for order %s was created concurrently, fetching it", order_id
            )
            return self._fetch_winner(order_id, merchant_id)
        except Exception as exc:
            raise ReportCreationFailed(
                f"Failed to create report for order {order_id}: {exc}"
            ) from exc
        logger.info("Created report %s", created.submission_id)
        return created

    def _fetch_winner(self, order_id: str, merchant_id: str) -> Report:
        try:
            winner = self.repository.find_report(order_id, merchant_id)
        except Exception as exc:
            raise ReportCreationFailed(
                f"Failed to fetch existing report for order {order_id}: {exc}"
            ) from exc
        if winner is None:
            raise ReportCreationFailed(
                f"Report for order {order_id} vanished after a duplicate insert"
            )
        return winner


def build_submission_id(order_id: str, merchant_id: str, moment: datetime) -> str:
    """Build a submission id from the report key and a timestamp."""
    return f"{order_id}_{merchant_id}_{round(moment.timestamp() * 1000)}"


def _format_local(moment: datetime, timezone: str) -> str:
    return moment.astimezone(ZoneInfo(timezone)).strftime("%Y-%m-%d %H:%M:%S")
