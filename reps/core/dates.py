"""Calendar-date helpers. All scheduling compares dates, never instants."""

from __future__ import annotations

from datetime import date, timedelta

from .errors import InvalidInputError


def today() -> date:
    return date.today()


def parse_date(raw: str | date | None, *, field_name: str = "date") -> date | None:
    """
    Parse an ISO ``YYYY-MM-DD`` string.

    Accepts an existing ``date`` unchanged and ``None``/empty as absent.
    Full ISO timestamps (as returned by the web API) are truncated to
    their date part.

    Raises:
        InvalidInputError: if the value is not a valid calendar date.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        raise InvalidInputError(f"{field_name} must be an ISO date string, got {type(raw).__name__}")
    text = raw.strip().split("T", 1)[0]
    try:
        return date.fromisoformat(text)
    except ValueError as e:
        raise InvalidInputError(f"Malformed {field_name}: {raw!r}") from e


def format_date(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def add_days(start: date, days: int) -> date:
    return start + timedelta(days=days)


def end_of_week(ref: date) -> date:
    """Saturday of the Sunday-to-Saturday week containing ``ref`` (inclusive)."""
    # isoweekday: Mon=1 .. Sun=7; shift so Sunday=0 .. Saturday=6
    sunday_based = ref.isoweekday() % 7
    return ref + timedelta(days=6 - sunday_based)
