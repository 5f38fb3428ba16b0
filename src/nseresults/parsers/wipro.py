"""Wipro results parser."""

from __future__ import annotations

from nseresults.models.metrics import FinancialMetrics, ResultType
from nseresults.parsers.base import AMOUNT, BaseResultsParser, rx

REVENUE = rx(
    r"Revenue\s+from\s+operations[\s\S]{0,200}?" + AMOUNT,
    r"Total\s+revenue[\s\S]{0,200}?" + AMOUNT,
    r"Net\s+revenues[\s\S]{0,200}?" + AMOUNT,
    r"Total\s+income[\s\S]{0,200}?" + AMOUNT,
)
PROFIT = rx(
    r"Net\s+income[\s\S]{0,200}?" + AMOUNT,
    r"Profit\s+for\s+the\s+(?:period|quarter)[\s\S]{0,200}?" + AMOUNT,
    r"Net\s+profit[\s\S]{0,200}?" + AMOUNT,
    r"\bPAT\b[\s\S]{0,150}?" + AMOUNT,
)
EPS = rx(
    r"(?:Basic\s+)?earnings\s+per\s+share[\s\S]{0,150}?(?:Rs\.?|₹)?\s*" + AMOUNT,
    r"(?:Basic\s+)?EPS[\s\S]{0,150}?(?:Rs\.?|₹)?\s*" + AMOUNT,
)
OPERATING_PROFIT = rx(
    r"Operating\s+income[\s\S]{0,200}?" + AMOUNT,
    r"\bEBIT\b[\s\S]{0,150}?" + AMOUNT,
    r"Operating\s+profit[\s\S]{0,200}?" + AMOUNT,
)
OPERATING_MARGIN = rx(
    r"Operating\s+(?:profit\s+)?margin[\s\S]{0,100}?" + AMOUNT + r"\s*%",
    r"EBIT\s+margin[\s\S]{0,100}?" + AMOUNT + r"\s*%",
)


class WiproParser(BaseResultsParser):
    symbol = "WIPRO"
    company_name = "Wipro Limited"
    default_result_type = ResultType.CONSOLIDATED

    def extract_metrics(self, text: str) -> FinancialMetrics:
        metrics = self.new_metrics(text)
        metrics.revenue = self.extract_number(text, REVENUE, "Revenue")
        metrics.net_profit = self.extract_number(text, PROFIT, "Net profit")
        metrics.eps = self.extract_number(text, EPS, "EPS")
        metrics.operating_profit = self.extract_number(text, OPERATING_PROFIT, "Operating profit")
        metrics.ebitda = metrics.operating_profit
        metrics.operating_profit_margin = self.extract_percentage(text, OPERATING_MARGIN, "Operating margin")
        return metrics
