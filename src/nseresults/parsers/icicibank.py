"""ICICI Bank results parser."""

from __future__ import annotations

from nseresults.models.metrics import FinancialMetrics, ResultType
from nseresults.parsers.base import AMOUNT, BaseResultsParser, rx

REVENUE = rx(
    r"Total\s+income[\s\S]{0,200}?" + AMOUNT,
    r"Net\s+interest\s+income[\s\S]{0,200}?" + AMOUNT,
    r"Total\s+revenue[\s\S]{0,200}?" + AMOUNT,
)
PROFIT = rx(
    r"Net\s+profit[\s\S]{0,200}?" + AMOUNT,
    r"Profit\s+after\s+tax[\s\S]{0,200}?" + AMOUNT,
    r"\bPAT\b[\s\S]{0,150}?" + AMOUNT,
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
    r"Core\s+operating\s+profit[\s\S]{0,200}?" + AMOUNT,
)
PAT_MARGIN = rx(
    r"(?:Net\s+)?(?:profit|PAT)\s+margin[\s\S]{0,100}?" + AMOUNT + r"\s*%",
)
ROE = rx(
    r"Return\s+on\s+(?:average\s+)?equity[\s\S]{0,100}?" + AMOUNT + r"\s*%",
    r"\bROE\b[\s\S]{0,100}?" + AMOUNT + r"\s*%",
)


class ICICIBankParser(BaseResultsParser):
    symbol = "ICICIBANK"
    company_name = "ICICI Bank Limited"
    default_result_type = ResultType.CONSOLIDATED

    def extract_metrics(self, text: str) -> FinancialMetrics:
        metrics = self.new_metrics(text)
        metrics.revenue = self.extract_number(text, REVENUE, "Total income")
        metrics.total_income = metrics.revenue
        metrics.net_profit = self.extract_number(text, PROFIT, "Net profit")
        metrics.eps = self.extract_number(text, EPS, "EPS")
        metrics.operating_profit = self.extract_number(text, OPERATING_PROFIT, "Operating profit")
        metrics.ebitda = metrics.operating_profit
        metrics.pat_margin = self.extract_percentage(text, PAT_MARGIN, "PAT margin")
        metrics.roe = self.extract_percentage(text, ROE, "ROE")
        return metrics
