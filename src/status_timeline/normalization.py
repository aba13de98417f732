"""Utilities to normalize pasted table text into fields."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

_LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")
_SPACE_RUN_PATTERN = re.compile(r"\s{2,}")
_TIMESTAMP_PATTERN = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[ T](\d{2}):(\d{2}):(\d{2})$",
    re.ASCII,
)
_RECORD_NUMBER_PATTERN = re.compile(r"^\d+$", re.ASCII)

TIMESTAMP_FMT = "%Y-%m-%d %H:%M:%S"


def split_lines(raw_text: Optional[str]) -> list[str]:
    """Split on any newline style, strip and drop blank lines."""
    if not raw_text:
        return []
    lines = (line.strip() for line in _LINE_BREAK_PATTERN.split(raw_text))
    return [line for line in lines if line]


def normalize_delimiters(line: str) -> str:
    """Recover tab-separated columns from lines pasted with space runs."""
    if "\t" in line:
        return line
    return _SPACE_RUN_PATTERN.sub("\t", line)


def split_fields(line: str) -> list[str]:
    fields = (part.strip() for part in normalize_delimiters(line).split("\t"))
    return [part for part in fields if part]


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse ``YYYY-MM-DD HH:MM:SS`` (or ``T``-separated) as local wall-clock time.

    Returns ``None`` for anything else, including impossible calendar values.
    """
    if not value:
        return None
    match = _TIMESTAMP_PATTERN.match(value.strip())
    if not match:
        return None
    year, month, day, hour, minute, second = (int(part) for part in match.groups())
    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        return None


def is_record_number(value: str) -> bool:
    return bool(_RECORD_NUMBER_PATTERN.match(value))
