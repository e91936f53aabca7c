"""Condition questionnaire evaluation."""

from rental_inspection.domain.reports import ConditionAnswers, ReportStatus
from rental_inspection.domain.session import Language

_LABELS: dict[Language, dict[str, str]] = {
    Language.DE: {
        "gears": "Schaltung",
        "brakes": "Bremsen",
        "other_issues": "Sonstige Mängel",
        "notes": "Bemerkungen",
    },
    Language.EN: {
        "gears": "Gears",
        "brakes": "Brakes",
        "other_issues": "Other Issues",
        "notes": "Notes",
    },
}


def assess_condition(
    answers: ConditionAnswers, language: Language
) -> tuple[ReportStatus, str]:
    """Derive the report status and description from questionnaire answers."""
    labels = _LABELS[language]
    checks = {
        "gears": answers.gears,
        "brakes": answers.brakes,
        "other_issues": answers.other_issues,
    }
    has_problems = any(check.has_problem for check in checks.values())
    status = ReportStatus.DAMAGE_FOUND if has_problems else ReportStatus.NO_DAMAGE

    details = []
    for key, check in checks.items():
        detail = check.detail.strip()
        if check.has_problem and detail:
            details.append(f"{labels[key]}: {detail}")
    notes = answers.notes.strip()
    if notes:
        details.append(f"{labels['notes']}: {notes}")
    return status, "; ".join(details)
