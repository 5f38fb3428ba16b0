"""Listed stock model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Stock:
    symbol: str
    company_name: str
    sector: str = "Unknown"
    id: int | None = None
