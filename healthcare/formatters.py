"""Display helpers shared by the API payloads and the Streamlit views."""
from __future__ import annotations

from datetime import date, datetime, time

from .constants import DOCUMENT_TYPES, RATING_MAX

_DOCUMENT_LABELS = {t["value"]: t["label"] for t in DOCUMENT_TYPES}


def full_name(first_name: str | None, last_name: str | None, prefix: str | None = None) -> str:
    name = " ".join(p for p in (first_name, last_name) if p).strip()
    if prefix and name:
        return f"{prefix} {name}"
    return name or "Unknown"


def _as_date(value: date | datetime | str | None) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        return None


def format_date(value: date | datetime | str | None, fmt: str = "%b %d, %Y") -> str:
    d = _as_date(value)
    return d.strftime(fmt) if d else "N/A"


def format_time(value: str | time | None) -> str:
    """'14:30' -> '2:30 PM'."""
    if value is None or value == "":
        return "N/A"
    if isinstance(value, str):
        try:
            hours, minutes = (int(part) for part in value.split(":")[:2])
        except ValueError:
            return value
    else:
        hours, minutes = value.hour, value.minute
    suffix = "AM" if hours < 12 else "PM"
    display = hours % 12 or 12
    return f"{display}:{minutes:02d} {suffix}"


def format_datetime(value: datetime | str | None) -> str:
    if value is None or value == "":
        return "N/A"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    return f"{format_date(value)} {format_time(value.time())}"


def format_currency(amount: float | int | str | None, currency: str = "$") -> str:
    if amount is None or amount == "":
        return "N/A"
    try:
        return f"{currency}{float(amount):,.2f}"
    except (TypeError, ValueError):
        return "N/A"


def format_file_size(size: int | None) -> str:
    if not size:
        return "0 B"
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def format_rating(rating: float | int | None) -> str:
    if rating is None:
        return "No ratings"
    return f"{float(rating):.1f}/{RATING_MAX}"


def rating_stars(rating: float | int | None) -> str:
    """4.4 -> '★★★★☆'."""
    filled = int(round(float(rating or 0)))
    filled = max(0, min(RATING_MAX, filled))
    return "★" * filled + "☆" * (RATING_MAX - filled)


def status_label(status: str | None) -> str:
    if not status:
        return "Unknown"
    return status.replace("_", " ").replace("-", " ").title()


def document_type_label(document_type: str | None) -> str:
    if not document_type:
        return "Other"
    return _DOCUMENT_LABELS.get(document_type, status_label(document_type))


def time_ago(value: datetime | str | None, now: datetime | None = None) -> str:
    if value is None or value == "":
        return "N/A"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    now = now or datetime.utcnow()
    seconds = int((now - value).total_seconds())
    if seconds < 60:
        return "just now"
    for unit, span in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= span:
            count = seconds // span
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def truncate(text: str | None, length: int = 100) -> str:
    if not text:
        return ""
    if len(text) <= length:
        return text
    return text[: length - 3].rstrip() + "..."
