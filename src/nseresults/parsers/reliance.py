"""Reliance Industries results parser.

Reliance reports segment-heavy conglomerate numbers and leads with EBITDA,
so EBITDA doubles as operating profit.
"""

from __future__ import annotations

from nseresults.models.metrics import FinancialMetrics
from nseresults.parsers.base import AMOUNT, BaseResultsParser, rx

REVENUE = rx(
    r"Total\s+income[\s\S]{0,150}?" + AMOUNT + r"\s*(?:crores?|cr\.?)",
    r"Revenue\s+from\s+operations[\s\S]{0,150}?" + AMOUNT,
    r"Total\s+revenue[\s\S]{0,150}?" + AMOUNT,
    r"Turnover[\s\S]{0,150}?" + AMOUNT,
)
PROFIT = rx(
    r"Profit\s+after\s+tax[\s\S]{0,150}?" + AMOUNT + r"\s*(?:crores?|cr\.?)",
    r"Net\s+profit[\s\S]{0,150}?" + AMOUNT,
    r"\bPAT\b[\s\S]{0,100}?" + AMOUNT,
    r"Profit\s+for\s+the\s+(?:period|quarter)[\s\S]{0,150}?" + AMOUNT,
)
EPS = rx(
    r"Earnings\s+per\s+share[\s\S]{0,100}?" + AMOUNT,
    r"EPS[\s(]*basic[\s)]*[\s\S]{0,50}?" + AMOUNT,
    r"Basic\s+EPS[\s\S]{0,100}?" + AMOUNT,
    r"Earnings\s+per\s+equity\s+share[\s\S]{0,100}?" + AMOUNT,
)
EBITDA = rx(
    r"EBITDA[\s\S]{0,150}?" + AMOUNT + r"\s*(?:crores?|cr\.?)",
    r"Earnings\s+before\s+interest[\s\S]{0,150}?" + AMOUNT,
    r"Operating\s+profit[\s\S]{0,150}?" + AMOUNT,
    r"PBDIT[\s\S]{0,150}?" + AMOUNT,
)
EBITDA_MARGIN = rx(
    r"EBITDA\s+margin[\s\S]{0,100}?" + AMOUNT + r"\s*%",
    r"Operating\s+margin[\s\S]{0,100}?" + AMOUNT + r"\s*%",
)


class RelianceParser(BaseResultsParser):
    symbol = "RELIANCE"
    company_name = "Reliance Industries Limited"

    def extract_metrics(self, text: str) -> FinancialMetrics:
        metrics = self.new_metrics(text)
        metrics.revenue = self.extract_number(text, REVENUE, "Revenue")
        metrics.net_profit = self.extract_number(text, PROFIT, "Net profit")
        metrics.eps = self.extract_number(text, EPS, "EPS")
        metrics.ebitda = self.extract_number(text, EBITDA, "EBITDA")
        metrics.ebitda_margin = self.extract_percentage(text, EBITDA_MARGIN, "EBITDA margin")
        if metrics.ebitda:
            metrics.operating_profit = metrics.ebitda
        return metrics
