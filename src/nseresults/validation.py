"""Data-integrity checks applied before extracted metrics are persisted."""

from __future__ import annotations

from dataclasses import dataclass, field

from nseresults.errors import DataIntegrityError
from nseresults.fiscal import normalize_fiscal_year, normalize_quarter
from nseresults.models.metrics import CORE_METRICS, FinancialMetrics


@dataclass
class ValidationCheck:
    """Single validation check result."""

    name: str
    passed: bool
    message: str = ""


@dataclass
class ValidationResult:
    """Aggregate validation result."""

    checks: list[ValidationCheck] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.checks)

    @property
    def failed_checks(self) -> list[ValidationCheck]:
        return [c for c in self.checks if not c.passed]


def validate_for_persistence(metrics: FinancialMetrics) -> ValidationResult:
    """Run integrity checks on one quarter's metrics.

    Checks:
        1. At least one core metric present
        2. Quarter label is Q1..Q4
        3. Fiscal year label is well-formed with consecutive years
        4. Revenue, when present, is numeric and positive
        5. Core figures are not all zero
        6. Every present numeric field parses as a number
    """
    result = ValidationResult()

    # 1. Core metric
    if metrics.has_core_metric:
        result.checks.append(ValidationCheck("has_core_metric", True))
    else:
        result.checks.append(
            ValidationCheck("has_core_metric", False, "No core financial metrics extracted")
        )

    # 2. Quarter label
    try:
        normalize_quarter(metrics.quarter)  # type: ignore[arg-type]
        result.checks.append(ValidationCheck("quarter_label", True))
    except DataIntegrityError as e:
        result.checks.append(ValidationCheck("quarter_label", False, str(e)))

    # 3. Fiscal year label
    try:
        normalize_fiscal_year(metrics.fiscal_year)  # type: ignore[arg-type]
        result.checks.append(ValidationCheck("fiscal_year_label", True))
    except DataIntegrityError as e:
        result.checks.append(ValidationCheck("fiscal_year_label", False, str(e)))

    # 4. Revenue sanity; losses may make profit negative, revenue never
    revenue = metrics.as_float("revenue")
    if metrics.revenue is not None and (revenue is None or revenue <= 0):
        result.checks.append(
            ValidationCheck("positive_revenue", False, f"Revenue is not positive: {metrics.revenue}")
        )
    else:
        result.checks.append(ValidationCheck("positive_revenue", True))

    # 5. All-zero core figures signal a misread table
    core = [metrics.as_float(name) for name in CORE_METRICS]
    present = [v for v in core if v is not None]
    if present and all(v == 0 for v in present):
        result.checks.append(ValidationCheck("nonzero_core", False, "All core figures are zero"))
    else:
        result.checks.append(ValidationCheck("nonzero_core", True))

    # 6. Numeric text
    bad = [name for name, value in metrics.numeric_fields().items()
           if metrics.as_float(name) is None and value != ""]
    if bad:
        result.checks.append(
            ValidationCheck("numeric_fields", False, f"Non-numeric values: {', '.join(bad)}")
        )
    else:
        result.checks.append(ValidationCheck("numeric_fields", True))

    return result


def ensure_persistable(metrics: FinancialMetrics) -> None:
    """Raise ``DataIntegrityError`` listing every failed check."""
    result = validate_for_persistence(metrics)
    if not result.passed:
        reasons = "; ".join(f"{c.name}: {c.message}" for c in result.failed_checks)
        raise DataIntegrityError(f"Metrics rejected: {reasons}")
