"""Indian fiscal calendar: April–March years, quarter arithmetic, labels.

No external dependencies. Quarters are labelled ``Q1``..``Q4`` and fiscal
years ``FY2526`` (start two digits + end two digits).
"""

from __future__ import annotations

import re
from datetime import date

from nseresults.errors import DataIntegrityError

QUARTERS = ("Q1", "Q2", "Q3", "Q4")

_TWO_PART = re.compile(r"^(?:FY)?\s*(\d{2}|\d{4})\s*[-/]\s*(\d{2}|\d{4})$")
_COMPACT = re.compile(r"^FY\s*(\d{2}|\d{4})$")
_QUARTER = re.compile(r"^(?:Q|QUARTER)?\s*-?\s*([1-4])$")

# Two-digit labels only cover fiscal years starting 2000..2098
_MIN_START = 2000
_MAX_START = 2098

MONTHS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}


def date_from_parts(day: str, month: str, year: str) -> date | None:
    """Build a date from text parts; ``month`` may be a name or a number."""
    month_num = int(month) if month.isdigit() else MONTHS.get(month.lower())
    if month_num is None:
        return None
    try:
        return date(int(year), month_num, int(day))
    except ValueError:
        return None


# ---- Dates -> labels ----

def quarter_for_date(d: date) -> str:
    """Fiscal quarter containing ``d`` (April–June is Q1)."""
    if 4 <= d.month <= 6:
        return "Q1"
    if 7 <= d.month <= 9:
        return "Q2"
    if 10 <= d.month <= 12:
        return "Q3"
    return "Q4"


def fiscal_start_year(d: date) -> int:
    return d.year if d.month >= 4 else d.year - 1


def fiscal_year_label(start_year: int) -> str:
    """``2025`` -> ``"FY2526"``.

    Raises:
        DataIntegrityError: If the year cannot be written as a two-digit label.
    """
    if not _MIN_START <= start_year <= _MAX_START:
        raise DataIntegrityError(f"Fiscal year out of range: {start_year}")
    return f"FY{start_year % 100:02d}{(start_year + 1) % 100:02d}"


def fiscal_year_for_date(d: date) -> str:
    return fiscal_year_label(fiscal_start_year(d))


def period_labels(d: date) -> tuple[str, str] | None:
    """``(quarter, fiscal_year)`` for a period end, or None when unlabellable."""
    if not _MIN_START <= fiscal_start_year(d) <= _MAX_START:
        return None
    return quarter_for_date(d), fiscal_year_for_date(d)


# ---- Label parsing ----

def _expand_year(text: str) -> int:
    return int(text) if len(text) == 4 else 2000 + int(text)


def _in_range(start: int, label: str) -> int:
    if not _MIN_START <= start <= _MAX_START:
        raise DataIntegrityError(f"Fiscal year out of range: {label!r}")
    return start


def parse_fiscal_year(label: str) -> int:
    """Parse a fiscal-year label and return its starting calendar year.

    Accepts ``FY2526``, ``FY25-26``, ``FY 2025-26``, ``2025-26``, ``FY2026``
    and ``FY26``. A single year names the year the fiscal year ends in.

    Raises:
        DataIntegrityError: If the label is malformed or its halves are not
            consecutive years.
    """
    if not label or not isinstance(label, str):
        raise DataIntegrityError(f"Malformed fiscal year label: {label!r}")
    text = label.strip().upper()

    m = _TWO_PART.match(text)
    if m:
        start = _expand_year(m.group(1))
        end_text = m.group(2)
        if len(end_text) == 4:
            end = int(end_text)
        else:
            end = start - start % 100 + int(end_text)
            if end <= start:
                end += 100
        if end != start + 1:
            raise DataIntegrityError(f"Fiscal year halves are not consecutive: {label!r}")
        return _in_range(start, label)

    m = _COMPACT.match(text)
    if m:
        digits = m.group(1)
        if len(digits) == 2:
            return _in_range(2000 + int(digits) - 1, label)
        head, tail = int(digits[:2]), int(digits[2:])
        if tail == (head + 1) % 100:
            # FY2526 style; FY2021 reads the same either way
            return _in_range(2000 + head, label)
        return _in_range(int(digits) - 1, label)

    raise DataIntegrityError(f"Malformed fiscal year label: {label!r}")


def normalize_fiscal_year(label: str) -> str:
    return fiscal_year_label(parse_fiscal_year(label))


def normalize_quarter(label: str) -> str:
    """``"q2"``, ``"Quarter 2"``, ``"2"`` -> ``"Q2"``."""
    if label is None:
        raise DataIntegrityError("Missing quarter label")
    m = _QUARTER.match(str(label).strip().upper())
    if not m:
        raise DataIntegrityError(f"Malformed quarter label: {label!r}")
    return f"Q{m.group(1)}"


# ---- Quarter arithmetic ----

def previous_quarter(quarter: str, fiscal_year: str) -> tuple[str, str]:
    """Quarter immediately before; Q1 wraps to Q4 of the prior fiscal year."""
    q = QUARTERS.index(normalize_quarter(quarter))
    start = parse_fiscal_year(fiscal_year)
    if q == 0:
        return "Q4", fiscal_year_label(start - 1)
    return QUARTERS[q - 1], fiscal_year_label(start)


def next_quarter(quarter: str, fiscal_year: str) -> tuple[str, str]:
    q = QUARTERS.index(normalize_quarter(quarter))
    start = parse_fiscal_year(fiscal_year)
    if q == 3:
        return "Q1", fiscal_year_label(start + 1)
    return QUARTERS[q + 1], fiscal_year_label(start)


def year_ago(quarter: str, fiscal_year: str) -> tuple[str, str]:
    """Same quarter of the prior fiscal year."""
    return normalize_quarter(quarter), fiscal_year_label(parse_fiscal_year(fiscal_year) - 1)


def year_ahead(quarter: str, fiscal_year: str) -> tuple[str, str]:
    return normalize_quarter(quarter), fiscal_year_label(parse_fiscal_year(fiscal_year) + 1)
