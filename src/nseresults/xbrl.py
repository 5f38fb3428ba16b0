"""Machine-readable (XBRL) results extraction.

Facts are matched by element local name against synonym lists, ignoring the
taxonomy namespace, which differs between filing years. Amounts are filed in
rupees and converted to crores.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from nseresults.errors import ResultsError
from nseresults.fiscal import period_labels
from nseresults.logging import get_logger
from nseresults.models.metrics import FinancialMetrics, ParseResult, ResultType
from nseresults.parsers.base import complete_margins, validate_metrics

logger = get_logger(__name__)

REVENUE_TAGS = ("RevenueFromOperations", "Revenue", "TotalIncome", "IncomeFromOperations")
PROFIT_TAGS = ("ProfitLossForPeriod", "NetProfit", "ProfitAfterTax", "ProfitForPeriod")
EPS_TAGS = (
    "BasicEarningsPerShare",
    "EarningsPerShareBasic",
    "BasicEPS",
    "DilutedEarningsPerShare",
)
OPERATING_PROFIT_TAGS = ("OperatingProfit", "ProfitBeforeExceptionalItemsAndTax", "EBITDA")
TOTAL_INCOME_TAGS = ("TotalIncome",)
NATURE_OF_REPORT_TAG = "NatureOfReportStandaloneConsolidated"

# Above this an amount is taken to be in rupees rather than crores
CRORE_THRESHOLD = 100_000
RUPEES_PER_CRORE = 10_000_000

# Longest period that still counts as a single quarter
_MAX_QUARTER_DAYS = 100


@dataclass
class XbrlContext:
    id: str
    end: date | None
    start: date | None = None
    dimensional: bool = False

    @property
    def days(self) -> int | None:
        if self.start is None or self.end is None:
            return None
        return (self.end - self.start).days


@dataclass
class XbrlFact:
    name: str
    value: str
    context_ref: str | None


def _local(tag: Any) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _child_text(element: Any, name: str) -> str | None:
    for child in element.iter():
        if _local(child.tag) == name and child.text and child.text.strip():
            return child.text.strip()
    return None


def _parse_iso(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _contexts(root: Any) -> list[XbrlContext]:
    contexts = []
    for element in root.iter():
        if _local(element.tag) != "context":
            continue
        end = _parse_iso(_child_text(element, "endDate") or _child_text(element, "instant"))
        start = _parse_iso(_child_text(element, "startDate"))
        dimensional = any(_local(c.tag) in ("segment", "scenario") for c in element.iter())
        contexts.append(XbrlContext(element.get("id", ""), end, start, dimensional))
    return contexts


def _facts(root: Any) -> list[XbrlFact]:
    facts = []
    for element in root.iter():
        ref = element.get("contextRef")
        if ref is None or element.text is None or not element.text.strip():
            continue
        facts.append(XbrlFact(_local(element.tag), element.text.strip(), ref))
    return facts


def current_period_context(contexts: list[XbrlContext]) -> XbrlContext | None:
    """Latest-ending, quarter-length, non-dimensional context."""
    dated = [c for c in contexts if c.end is not None]
    if not dated:
        return contexts[0] if contexts else None

    def rank(c: XbrlContext) -> tuple[int, int, date]:
        quarter_length = c.days is not None and c.days <= _MAX_QUARTER_DAYS
        return (int(not c.dimensional), int(quarter_length), c.end)  # type: ignore[return-value]

    return max(dated, key=rank)


def _number(value: str) -> float | None:
    try:
        return float(value.replace(",", ""))
    except ValueError:
        return None


def to_crores(amount: float) -> str:
    if abs(amount) > CRORE_THRESHOLD:
        amount = amount / RUPEES_PER_CRORE
    return f"{round(amount, 2):.2f}"


def same_period_ids(contexts: list[XbrlContext], chosen: XbrlContext) -> set[str]:
    """Ids of non-dimensional contexts covering exactly the chosen period."""
    ids = {chosen.id}
    for c in contexts:
        if not c.dimensional and (c.start, c.end) == (chosen.start, chosen.end):
            ids.add(c.id)
    return ids


def _find(facts: list[XbrlFact], tags: tuple[str, ...], context_ids: set[str] | None) -> str | None:
    """Exact tag names in priority order, then containment.

    With ``context_ids`` set only facts reported for that period count, so a
    half-year figure never stands in for a missing quarterly one.
    """
    pool = facts if context_ids is None else [f for f in facts if f.context_ref in context_ids]
    for tag in tags:
        for fact in pool:
            if fact.name == tag and _number(fact.value) is not None:
                return fact.value
    for tag in tags:
        for fact in pool:
            if tag in fact.name and _number(fact.value) is not None:
                return fact.value
    return None


def parse_xbrl(content: bytes | str, symbol: str = "") -> ParseResult:
    """Extract ``FinancialMetrics`` from an XBRL instance document."""
    if not content:
        return ParseResult.failure("XBRL document is empty")
    try:
        root = ET.fromstring(content)
    except (ET.ParseError, DefusedXmlException) as e:
        return ParseResult.failure(f"XBRL parsing failed: {e}")

    facts = _facts(root)
    contexts = _contexts(root)
    context = current_period_context(contexts)
    context_id = context.id if context else None
    context_ids = same_period_ids(contexts, context) if context else None

    metrics = FinancialMetrics(source="xbrl")
    labels = period_labels(context.end) if context and context.end else None
    if labels is not None:
        metrics.period_ended = context.end  # type: ignore[union-attr]
        metrics.quarter, metrics.fiscal_year = labels

    for field_name, tags, is_amount in (
        ("revenue", REVENUE_TAGS, True),
        ("net_profit", PROFIT_TAGS, True),
        ("operating_profit", OPERATING_PROFIT_TAGS, True),
        ("total_income", TOTAL_INCOME_TAGS, True),
        ("eps", EPS_TAGS, False),
    ):
        raw = _find(facts, tags, context_ids)
        if raw is None:
            continue
        value = _number(raw)
        setattr(metrics, field_name, to_crores(value) if is_amount else f"{round(value, 2):.2f}")

    nature = next((f.value for f in facts if f.name == NATURE_OF_REPORT_TAG), "")
    if "consolidated" in (context_id or "").lower() or nature.lower().startswith("consolidated"):
        metrics.result_type = ResultType.CONSOLIDATED

    complete_margins(metrics)
    valid, errors, warnings = validate_metrics(metrics)
    if not valid:
        errors = ["No core financial metrics found in XBRL"]
    logger.debug(
        "XBRL parsed",
        symbol=symbol,
        facts=len(facts),
        context=context_id,
        quarter=metrics.quarter,
        fiscal_year=metrics.fiscal_year,
        valid=valid,
    )
    return ParseResult(success=valid, metrics=metrics, errors=errors, warnings=warnings)


class XbrlExtractor:
    """Download-then-parse wrapper bound to an exchange session."""

    def __init__(self, session: Any) -> None:
        self.session = session

    def extract(self, url: str, symbol: str = "") -> ParseResult:
        try:
            content = self.session.download_binary(url)
        except ResultsError as e:
            logger.warning("XBRL download failed", symbol=symbol, url=url, error=str(e))
            return ParseResult.failure(f"XBRL download failed: {e}")
        return parse_xbrl(content, symbol)
