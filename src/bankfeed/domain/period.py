"""Statement-period parsing."""

import logging
import re
from datetime import date, datetime

from .models import StatementPeriod

logger = logging.getLogger(__name__)

NAMED_RANGE_PATTERN = re.compile(
    r"(\d{1,2}\s+[A-Za-z]{3,9}\s+\d{4})\s+to\s+(\d{1,2}\s+[A-Za-z]{3,9}\s+\d{4})",
    re.IGNORECASE,
)
NUMERIC_RANGE_PATTERN = re.compile(
    r"(\d{1,2}[/\-]\d{1,2}[/\-]\d{4}|\d{4}[/\-]\d{1,2}[/\-]\d{1,2})"
    r"\s+to\s+"
    r"(\d{1,2}[/\-]\d{1,2}[/\-]\d{4}|\d{4}[/\-]\d{1,2}[/\-]\d{1,2})",
    re.IGNORECASE,
)
DATE_FORMATS = ("%d %B %Y", "%d %b %Y", "%d/%m/%Y", "%d-%m-%Y", "%Y-%m-%d", "%Y/%m/%d")

# OCR-mangled month names and abbreviations strptime rejects
MONTH_TYPOS = (
    (re.compile(r"\bF?ruary\b", re.IGNORECASE), "February"),
    (re.compile(r"\bMaren\b", re.IGNORECASE), "March"),
    (re.compile(r"\bSept\b", re.IGNORECASE), "Sep"),
)

_QUOTES = str.maketrans("", "", "\u2018\u2019\u201c\u201d\"'")
_NOISE = re.compile(r"[^A-Za-z0-9/\- ]")
_SEPARATOR = re.compile(r"\s+to\s+", re.IGNORECASE)


def _normalize(raw: str) -> str:
    text = raw.translate(_QUOTES).replace("\u00a0", " ")
    return _SEPARATOR.sub(" to ", text).strip()


def parse_date(text: str) -> date | None:
    """Parse one side of a statement period, tolerating OCR noise."""
    cleaned = _NOISE.sub("", text)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    for pattern, replacement in MONTH_TYPOS:
        cleaned = pattern.sub(replacement, cleaned)
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    try:
        return date.fromisoformat(cleaned)
    except ValueError:
        return None


def parse_statement_period(raw: str | None) -> StatementPeriod | None:
    """Parse text like ``1 January 2024 to 31 January 2024``.

    Returns None when either side cannot be read as a date.
    """
    if not raw or not raw.strip():
        return None
    text = _normalize(raw)

    match = NAMED_RANGE_PATTERN.search(text) or NUMERIC_RANGE_PATTERN.search(text)
    if not match:
        logger.debug(f"No statement period range in: {raw!r}")
        return None

    start = parse_date(match.group(1))
    end = parse_date(match.group(2))
    if start is None or end is None:
        logger.debug(f"Unparseable statement period dates: {raw!r}")
        return None
    return StatementPeriod(start=start, end=end)


def statement_date_for(period: StatementPeriod | None, fallback: date) -> date:
    """Mid-year date of the statement's end year, used to date undated rows."""
    if period is None:
        return fallback
    return date(period.end.year, 6, 30)
