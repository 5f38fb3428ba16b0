"""HDFC Bank results parser.

Banks have no revenue line; total income stands in for revenue and
pre-provision operating profit for operating profit.
"""

from __future__ import annotations

from nseresults.models.metrics import FinancialMetrics, ResultType
from nseresults.parsers.base import AMOUNT, BaseResultsParser, rx

REVENUE = rx(
    r"Total\s+income[\s\S]{0,200}?" + AMOUNT,
    r"Total\s+revenue[\s\S]{0,200}?" + AMOUNT,
    r"Net\s+interest\s+income[\s\S]{0,200}?" + AMOUNT,
)
PROFIT = rx(
    r"Net\s+profit[\s\S]{0,200}?" + AMOUNT,
    r"Profit\s+after\s+tax[\s\S]{0,200}?" + AMOUNT,
    r"\bPAT\b[\s\S]{0,150}?" + AMOUNT,
    r"Profit\s+for\s+the\s+(?:quarter|period)[\s\S]{0,200}?" + AMOUNT,
)
EPS = rx(
    r"(?:Basic\s+)?earnings\s+per\s+share[\s\S]{0,150}?(?:Rs\.?|₹)?\s*" + AMOUNT,
    r"(?:Basic\s+)?EPS[\s\S]{0,150}?(?:Rs\.?|₹)?\s*" + AMOUNT,
    r"Earnings\s+per\s+equity\s+share[\s\S]{0,150}?" + AMOUNT,
)
OPERATING_PROFIT = rx(
    r"Operating\s+profit[\s\S]{0,200}?" + AMOUNT,
    r"Pre-provision\s+operating\s+profit[\s\S]{0,200}?" + AMOUNT,
    r"\bPPOP\b[\s\S]{0,150}?" + AMOUNT,
)


class HDFCBankParser(BaseResultsParser):
    symbol = "HDFCBANK"
    company_name = "HDFC Bank Limited"
    default_result_type = ResultType.CONSOLIDATED

    def extract_metrics(self, text: str) -> FinancialMetrics:
        metrics = self.new_metrics(text)
        metrics.revenue = self.extract_number(text, REVENUE, "Total income")
        metrics.total_income = metrics.revenue
        metrics.net_profit = self.extract_number(text, PROFIT, "Net profit")
        metrics.eps = self.extract_number(text, EPS, "EPS")
        metrics.operating_profit = self.extract_number(text, OPERATING_PROFIT, "Operating profit")
        metrics.ebitda = metrics.operating_profit
        return metrics
