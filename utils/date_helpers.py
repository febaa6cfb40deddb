from datetime import date, datetime
from utils.constants import DATE_FORMAT, ISO_DATE_FORMAT


def parse_date(date_str: str) -> date | None:
    """Parse a date string in MM/dd/yyyy format, returning None on failure.

    ISO 8601 (YYYY-MM-DD) is accepted as a fallback.
    """
    if not date_str:
        return None
    for fmt in (DATE_FORMAT, ISO_DATE_FORMAT):
        try:
            return datetime.strptime(date_str.strip(), fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def normalize_date(value: date | str) -> str | None:
    """Return value as an MM/dd/yyyy string, or None if it can't be parsed."""
    if isinstance(value, date):
        return format_date(value)
    parsed = parse_date(value)
    return format_date(parsed) if parsed else None
