"""Supabase-backed report repository."""

from dataclasses import dataclass
from datetime import datetime

from postgrest.exceptions import APIError
from supabase import Client

from rental_inspection.domain.reports import Report, ReportStatus
from rental_inspection.errors import UniqueViolation
from rental_inspection.services.reports import ReportRepository

_UNIQUE_VIOLATION_CODE = "23505"

_COLUMNS = (
    "order_id, merchant_id, status, description, submission_id, "
    "created_at, created_at_vienna"
)


@dataclass
class SupabaseReportRepository(ReportRepository):
    """Supabase implementation for return reports."""

    client: Client

    def find_report(self, order_id: str, merchant_id: str) -> Report | None:
        """Return the report for an order and merchant, if present."""
        response = (
            self.client.table("return_reports")
            .select(_COLUMNS)
            .eq("order_id", order_id)
            .eq("merchant_id", merchant_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_report(response.data[0])

    def insert_report(self, report: Report) -> Report:
        """Insert a report row and return it."""
        try:
            response = (
                self.client.table("return_reports")
                .insert(
                    {
                        "order_id": report.order_id,
                        "merchant_id": report.merchant_id,
                        "status": str(report.status),
                        "description": report.description,
                        "submission_id": report.submission_id,
                        "created_at": (
                            report.created_at.isoformat()
                            if report.created_at
                            else None
                        ),
                        "created_at_vienna": report.created_at_local,
                    }
                )
                .execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION_CODE:
                raise UniqueViolation(
                    f"Report for order {report.order_id} already exists"
                ) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create report in Supabase")
        return _row_to_report(response.data[0])


def _row_to_report(row: dict[str, object]) -> Report:
    created_at = row.get("created_at")
    return Report(
        order_id=str(row["order_id"]),
        merchant_id=str(row["merchant_id"]),
        status=ReportStatus(row["status"]),
        description=str(row.get("description") or ""),
        submission_id=str(row["submission_id"]),
        created_at=(
            datetime.fromisoformat(created_at) if isinstance(created_at, str) else None
        ),
        created_at_local=(
            str(row["created_at_vienna"]) if row.get("created_at_vienna") else None
        ),
    )
