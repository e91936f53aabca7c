"""Domain models for inspection reports."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class ReportStatus(StrEnum):
    """Overall condition verdict of an inspection."""

    NO_DAMAGE = "no_damage"
    DAMAGE_FOUND = "damage_found"


@dataclass(frozen=True)
class Report:
    """Represents the single stored report for an order and merchant."""

    order_id: str
    merchant_id: str
    status: ReportStatus
    description: str
    submission_id: str
    created_at: datetime | None
    created_at_local: str | None = None


@dataclass(frozen=True)
class ConditionCheck:
    """Answer to a single problem-check question."""

    has_problem: bool = False
    detail: str = ""


@dataclass(frozen=True)
class ConditionAnswers:
    """Answers to the condition questionnaire."""

    gears: ConditionCheck = ConditionCheck()
    brakes: ConditionCheck = ConditionCheck()
    other_issues: ConditionCheck = ConditionCheck()
    notes: str = ""
