"""Attribute operator time to order statuses from pasted ticketing logs."""

from .attribution import attribute
from .config import ALL_OPERATORS, AttributionSettings, ParserSettings, StatusMode
from .models import AttributionResult, Interval, LogEvent, ParseResult
from .parser import list_operators, parse

__version__ = "0.1.0"

__all__ = [
    "ALL_OPERATORS",
    "AttributionResult",
    "AttributionSettings",
    "Interval",
    "LogEvent",
    "ParseResult",
    "ParserSettings",
    "StatusMode",
    "attribute",
    "list_operators",
    "parse",
]
