"""Session context for a single inspection."""

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum

DEFAULT_MERCHANT_ID = "default"
DEFAULT_STORE_ID = "default"


class Language(StrEnum):
    """Languages supported by the inspection flow."""

    DE = "de"
    EN = "en"


def parse_language(raw: str | None, default: str = "de") -> Language:
    """Parse a language tag, falling back to the default language."""
    cleaned = (raw or "").strip().lower()
    if cleaned in {"en", "de"}:
        return Language(cleaned)
    return Language.EN if default == "en" else Language.DE


@dataclass(frozen=True)
class SessionContext:
    """Identifiers and language resolved once when a session starts."""

    order_id: str
    merchant_id: str
    store_id: str
    language: Language

    @classmethod
    def from_query(
        cls,
        order_id: str | None = None,
        merchant_id: str | None = None,
        store_id: str | None = None,
        lang: str | None = None,
        now: datetime | None = None,
        default_language: str = "de",
    ) -> "SessionContext":
        """Resolve a context from optional query parameters."""
        if not order_id:
            moment = now or datetime.now(tz=UTC)
            order_id = f"ORDER-{round(moment.timestamp() * 1000)}"
        return cls(
            order_id=order_id,
            merchant_id=merchant_id or DEFAULT_MERCHANT_ID,
            store_id=store_id or DEFAULT_STORE_ID,
            language=parse_language(lang, default_language),
        )

    def with_language(self, language: Language) -> "SessionContext":
        """Return a copy of the context using another language."""
        return replace(self, language=language)
