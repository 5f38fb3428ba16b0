"""Exchange announcement model and payload normalization."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any
from urllib.parse import urljoin

from dateutil import parser as date_parser

from nseresults.config import NSE_BASE_URL

# Closed alias sets per semantic field, most recent name first
SYMBOL_ALIASES = ("symbol", "sm_symbol", "scrip")
COMPANY_ALIASES = ("sm_name", "company", "companyName")
SUBJECT_ALIASES = ("desc", "subject")
DESCRIPTION_ALIASES = ("attchmntText", "description")
DATE_ALIASES = ("an_dt", "date", "sort_date")
HAS_XBRL_ALIASES = ("hasXbrl", "hasXBRL", "xbrl")
XBRL_URL_ALIASES = ("xbrlUrl", "xbrlFile", "xbrl")
DOCUMENT_URL_ALIASES = ("attchmntFile", "pdfUrl")
SEQ_ID_ALIASES = ("seq_id", "seqId")

XBRL_BY_SEQ_PATH = "/api/corporates-xbrl?index=equities&seq_id={seq_id}"

_DATE_FORMATS = (
    "%d-%b-%Y %H:%M:%S",
    "%d-%b-%Y",
    "%d-%m-%Y %H:%M:%S",
    "%d-%m-%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
)


@dataclass(frozen=True)
class Announcement:
    """Canonical announcement record, built by ``normalize_announcement``.

    Attributes:
        symbol: Exchange ticker, upper-cased.
        company_name: Issuer name if any alias carried it.
        subject: Free-text subject line.
        description: Free-text description / attachment text.
        published_at: Publication timestamp, None when absent or unparseable.
        has_xbrl: Whether a machine-readable filing is flagged.
        xbrl_url: Absolute URL of the machine-readable filing, if known.
        document_url: Absolute URL of the text-bearing document, if any.
        seq_id: Exchange sequence id of the disclosure.
        raw: Original payload, kept for diagnostics.
    """

    symbol: str
    subject: str = ""
    description: str = ""
    company_name: str | None = None
    published_at: datetime | None = None
    has_xbrl: bool = False
    xbrl_url: str | None = None
    document_url: str | None = None
    seq_id: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def announcement_date(self) -> date | None:
        return self.published_at.date() if self.published_at else None


def _first(payload: dict[str, Any], aliases: tuple[str, ...]) -> Any:
    for key in aliases:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "y", "1")
    return bool(value)


def _looks_like_url(value: Any) -> bool:
    return isinstance(value, str) and (value.startswith("http") or value.startswith("/"))


def _absolute(url: str | None, base_url: str) -> str | None:
    if not url:
        return None
    return urljoin(base_url.rstrip("/") + "/", url)


def parse_announcement_date(value: Any) -> datetime | None:
    """Parse the exchange's date formats; returns None instead of guessing."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if not text:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return date_parser.parse(text, dayfirst=True)
    except (ValueError, OverflowError):
        return None


def _document_url(payload: dict[str, Any]) -> str | None:
    url = _first(payload, DOCUMENT_URL_ALIASES)
    if url:
        return str(url)
    attachments = payload.get("attachments")
    if isinstance(attachments, list):
        for item in attachments:
            if not isinstance(item, dict):
                continue
            name = str(item.get("name") or "").lower()
            link = str(item.get("url") or "")
            if "pdf" in name or link.lower().endswith(".pdf"):
                return link or None
    return None


def _xbrl_url(payload: dict[str, Any], document_url: str | None, seq_id: str | None) -> str | None:
    for key in XBRL_URL_ALIASES:
        value = payload.get(key)
        if _looks_like_url(value):
            return value
    if seq_id:
        return XBRL_BY_SEQ_PATH.format(seq_id=seq_id)
    if document_url and document_url.lower().endswith(".pdf"):
        return document_url[:-4] + ".xml"
    return None


def normalize_announcement(
    payload: dict[str, Any], base_url: str = NSE_BASE_URL,
) -> Announcement:
    """Map a raw upstream payload onto the canonical ``Announcement``.

    Raises:
        ValueError: If no symbol alias is present.
    """
    symbol = _text(_first(payload, SYMBOL_ALIASES))
    if not symbol:
        raise ValueError("Announcement payload has no symbol")

    document_url = _document_url(payload)
    seq_id = _text(_first(payload, SEQ_ID_ALIASES))

    flag = _first(payload, HAS_XBRL_ALIASES)
    has_xbrl = flag is not None and (_looks_like_url(flag) or _truthy(flag))
    xbrl_url = _xbrl_url(payload, document_url, seq_id) if has_xbrl else None

    return Announcement(
        symbol=symbol.upper(),
        subject=_text(_first(payload, SUBJECT_ALIASES)) or "",
        description=_text(_first(payload, DESCRIPTION_ALIASES)) or "",
        company_name=_text(_first(payload, COMPANY_ALIASES)),
        published_at=parse_announcement_date(_first(payload, DATE_ALIASES)),
        has_xbrl=has_xbrl,
        xbrl_url=_absolute(xbrl_url, base_url),
        document_url=_absolute(document_url, base_url),
        seq_id=seq_id,
        raw=dict(payload),
    )
