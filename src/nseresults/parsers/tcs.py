"""Tata Consultancy Services results parser.

TCS files a five-column statement of profit and loss::

    Revenue from operations 65,799 63,437 64,259 1,29,236 1,26,872

Columns are current quarter, previous quarter, year-ago quarter, then the
two half-year totals. Only the first column is taken.
"""

from __future__ import annotations

from nseresults.models.metrics import FinancialMetrics, ResultType
from nseresults.parsers.base import AMOUNT, BaseResultsParser, parse_amount, rx

_ROW = r"\s+" + AMOUNT + r"\s+" + AMOUNT + r"\s+" + AMOUNT

REVENUE = rx(r"Revenue\s+from\s+operations" + _ROW)
PROFIT = rx(r"PROFIT\s+FOR\s+THE\s+PERIOD" + _ROW)
PROFIT_BEFORE_TAX = rx(r"PROFIT\s+BEFORE\s+TAX" + _ROW)
OPERATING_PROFIT = rx(
    r"EBIT(?:\s+|\s*\()[^\d]*?" + AMOUNT + r"\s+" + AMOUNT + r"\s+" + AMOUNT,
    r"Operating\s+Profit[^\d]*?" + AMOUNT + r"\s+" + AMOUNT + r"\s+" + AMOUNT,
)
EPS = rx(
    r"Earnings\s+per\s+equity\s+share[^\d]+?" + AMOUNT,
    r"Basic\s+and\s+diluted[^\d]+?" + AMOUNT,
    r"EPS[^\d]+?" + AMOUNT,
)


class TCSParser(BaseResultsParser):
    symbol = "TCS"
    company_name = "Tata Consultancy Services Limited"
    default_result_type = ResultType.CONSOLIDATED

    def extract_metrics(self, text: str) -> FinancialMetrics:
        metrics = self.new_metrics(text)
        notes = metrics.parsing_notes

        for field_name, patterns, label in (
            ("revenue", REVENUE, "Revenue"),
            ("net_profit", PROFIT, "Net profit"),
        ):
            m = patterns[0].search(text)
            if m:
                setattr(metrics, field_name, parse_amount(m.group(1)))
                notes.append(f"{label}: current={m.group(1)}, prev={m.group(2)}, year_ago={m.group(3)}")

        # PBT stands in for operating profit unless EBIT is reported
        metrics.operating_profit = (
            self.extract_number(text, OPERATING_PROFIT, "Operating profit")
            or self.extract_number(text, PROFIT_BEFORE_TAX, "Profit before tax")
        )
        metrics.eps = self.extract_number(text, EPS, "EPS")
        return metrics
