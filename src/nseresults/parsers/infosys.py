"""Infosys results parser."""

from __future__ import annotations

from nseresults.models.metrics import FinancialMetrics
from nseresults.parsers.base import AMOUNT, BaseResultsParser, rx

# Previous-quarter and year-ago columns following the current figure
_TRAILING = r"\s+\(?-?[\d,]+\.?\d*\)?\s+\(?-?[\d,]+\.?\d*\)?\s*(?:crores?|cr\.?)"

REVENUE = rx(
    r"(?:Total\s+)?Revenues?(?:\s+from\s+operations)?[\s\S]{0,200}?" + AMOUNT + _TRAILING,
    r"Revenue\s+from\s+operations[\s\S]{0,150}?" + AMOUNT,
)
PROFIT = rx(
    r"(?:Net\s+)?Profit(?:\s+for\s+the\s+period)?[\s\S]{0,200}?" + AMOUNT + _TRAILING,
    r"Net\s+profit[\s\S]{0,150}?" + AMOUNT,
)
EPS = rx(
    r"Basic\s+EPS[\s\S]{0,100}?" + AMOUNT,
    r"Earnings\s+per\s+(?:equity\s+)?share[\s\S]{0,100}?" + AMOUNT,
    r"EPS[\s(]*basic[\s)]*[\s\S]{0,50}?" + AMOUNT,
)
OPERATING_PROFIT = rx(
    r"Operating\s+profit[\s\S]{0,150}?" + AMOUNT + r"\s*(?:crores?|cr\.?)",
    r"\bEBIT\b[\s\S]{0,150}?" + AMOUNT,
    r"Profit\s+before\s+tax[\s\S]{0,150}?" + AMOUNT,
)
OPERATING_MARGIN = rx(
    r"Operating\s+margin[\s\S]{0,100}?" + AMOUNT + r"\s*%",
    r"OP\s+margin[\s\S]{0,50}?" + AMOUNT + r"\s*%",
)


class InfosysParser(BaseResultsParser):
    symbol = "INFY"
    company_name = "Infosys Limited"

    def extract_metrics(self, text: str) -> FinancialMetrics:
        metrics = self.new_metrics(text)
        metrics.revenue = self.extract_number(text, REVENUE, "Revenue")
        metrics.net_profit = self.extract_number(text, PROFIT, "Net profit")
        metrics.eps = self.extract_number(text, EPS, "EPS")
        metrics.operating_profit = self.extract_number(text, OPERATING_PROFIT, "Operating profit")
        metrics.operating_profit_margin = self.extract_percentage(text, OPERATING_MARGIN, "Operating margin")
        return metrics
