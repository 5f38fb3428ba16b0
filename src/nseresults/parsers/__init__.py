"""Results-document parser registry."""

from __future__ import annotations

import importlib

from nseresults.logging import get_logger
from nseresults.parsers.base import BaseResultsParser, complete_margins, validate_metrics
from nseresults.parsers.generic import GenericParser

logger = get_logger(__name__)

# Lazy registry; issuer modules are imported on first use
PARSER_CLASSES: dict[str, str] = {
    "TCS": "nseresults.parsers.tcs.TCSParser",
    "INFY": "nseresults.parsers.infosys.InfosysParser",
    "WIPRO": "nseresults.parsers.wipro.WiproParser",
    "RELIANCE": "nseresults.parsers.reliance.RelianceParser",
    "HDFCBANK": "nseresults.parsers.hdfcbank.HDFCBankParser",
    "ICICIBANK": "nseresults.parsers.icicibank.ICICIBankParser",
    "ITC": "nseresults.parsers.itc.ITCParser",
}


def has_specific_parser(symbol: str) -> bool:
    return symbol.upper() in PARSER_CLASSES


def supported_symbols() -> list[str]:
    return list(PARSER_CLASSES)


def get_parser(symbol: str) -> BaseResultsParser:
    """Issuer-specific parser for ``symbol``, or a ``GenericParser``."""
    dotted = PARSER_CLASSES.get(symbol.upper())
    if dotted is None:
        logger.debug("No specific parser, using generic parser", symbol=symbol)
        return GenericParser(symbol)
    module_path, cls_name = dotted.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls = getattr(module, cls_name)
    return cls()


__all__ = [
    "BaseResultsParser",
    "GenericParser",
    "PARSER_CLASSES",
    "complete_margins",
    "get_parser",
    "has_specific_parser",
    "supported_symbols",
    "validate_metrics",
]
