"""Fallback parser for issuers without a dedicated parser.

Casts a broad net over the phrasing common to Indian results filings.
Most candidates require an explicit crore unit to avoid picking up note
numbers and dates.
"""

from __future__ import annotations

from nseresults.models.metrics import FinancialMetrics
from nseresults.parsers.base import AMOUNT, BaseResultsParser, rx

_CRORE = r"\s*(?:crores?|cr\.?)"

REVENUE = rx(
    r"Revenue\s+from\s+operations[\s\S]{0,150}?" + AMOUNT + _CRORE,
    r"Total\s+(?:revenue|income)[\s\S]{0,150}?" + AMOUNT + _CRORE,
    r"(?:Net\s+)?sales[\s\S]{0,150}?" + AMOUNT + _CRORE,
    r"Turnover[\s\S]{0,150}?" + AMOUNT + _CRORE,
    r"Total\s+income\s+from\s+operations[\s\S]{0,150}?" + AMOUNT,
)
PROFIT = rx(
    r"Net\s+profit[\s\S]{0,150}?" + AMOUNT + _CRORE,
    r"Profit\s+after\s+tax[\s\S]{0,150}?" + AMOUNT + _CRORE,
    r"\bPAT\b[\s\S]{0,100}?" + AMOUNT + _CRORE,
    r"Profit\s+for\s+the\s+(?:period|quarter|year)[\s\S]{0,150}?" + AMOUNT + _CRORE,
    r"Net\s+profit\s+attributable[\s\S]{0,150}?" + AMOUNT,
)
EPS = rx(
    r"(?:Basic\s+)?earnings\s+per\s+share[\s\S]{0,100}?" + AMOUNT,
    r"(?:Basic\s+)?EPS[\s\S]{0,100}?" + AMOUNT,
    r"Earnings\s+per\s+equity\s+share[^\d]+?" + AMOUNT,
)
OPERATING_PROFIT = rx(
    r"EBITDA[\s\S]{0,150}?" + AMOUNT + _CRORE,
    r"Operating\s+(?:profit|income)[\s\S]{0,150}?" + AMOUNT + _CRORE,
    r"\bEBIT\b[\s\S]{0,150}?" + AMOUNT + _CRORE,
    r"Profit\s+before\s+(?:interest|tax)[\s\S]{0,150}?" + AMOUNT + _CRORE,
    r"PBDIT[\s\S]{0,150}?" + AMOUNT,
)
OPERATING_MARGIN = rx(
    r"Operating\s+(?:profit\s+)?margin[\s\S]{0,100}?" + AMOUNT + r"\s*%",
    r"EBITDA\s+margin[\s\S]{0,100}?" + AMOUNT + r"\s*%",
    r"\bOP\s+margin[\s\S]{0,50}?" + AMOUNT + r"\s*%",
    r"\bOPM\b[\s\S]{0,50}?" + AMOUNT + r"\s*%",
)
PAT_MARGIN = rx(
    r"(?:Net\s+)?(?:Profit|PAT)\s+margin[\s\S]{0,100}?" + AMOUNT + r"\s*%",
    r"\bNPM\b[\s\S]{0,50}?" + AMOUNT + r"\s*%",
)
TOTAL_INCOME = rx(
    r"Total\s+income[\s\S]{0,150}?" + AMOUNT + _CRORE,
)
DEBT = rx(
    r"Total\s+borrowings[\s\S]{0,150}?" + AMOUNT + _CRORE,
    r"(?:Total|Net)\s+debt[\s\S]{0,150}?" + AMOUNT + _CRORE,
)
RESERVES = rx(
    r"Reserves\s+(?:and|&)\s+surplus[\s\S]{0,150}?" + AMOUNT + _CRORE,
    r"Other\s+equity[\s\S]{0,150}?" + AMOUNT + _CRORE,
)
ROE = rx(
    r"Return\s+on\s+(?:average\s+)?equity[\s\S]{0,100}?" + AMOUNT + r"\s*%",
    r"\bROE\b[\s\S]{0,100}?" + AMOUNT + r"\s*%",
)


class GenericParser(BaseResultsParser):
    """Lowest-trust parser used for any symbol not in the registry."""

    def extract_metrics(self, text: str) -> FinancialMetrics:
        metrics = self.new_metrics(text)
        metrics.parsing_notes.insert(0, "Using generic parser")

        metrics.revenue = self.extract_number(text, REVENUE, "Revenue")
        metrics.net_profit = self.extract_number(text, PROFIT, "Net profit")
        metrics.eps = self.extract_number(text, EPS, "EPS")
        metrics.ebitda = self.extract_number(text, OPERATING_PROFIT, "EBITDA/operating profit")
        metrics.operating_profit = metrics.ebitda
        metrics.operating_profit_margin = self.extract_percentage(text, OPERATING_MARGIN, "Operating margin")
        metrics.pat_margin = self.extract_percentage(text, PAT_MARGIN, "PAT margin")
        metrics.roe = self.extract_percentage(text, ROE, "ROE")
        metrics.debt = self.extract_number(text, DEBT, "Debt")
        metrics.reserves = self.extract_number(text, RESERVES, "Reserves")

        if not metrics.revenue:
            metrics.total_income = self.extract_number(text, TOTAL_INCOME, "Total income")
            if metrics.total_income:
                metrics.revenue = metrics.total_income
                metrics.parsing_notes.append("Using total income as revenue")
        return metrics
