"""Parse pasted order-status history into log events."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from .config import ActionVocabulary, ParserSettings
from .models import LogEvent, ParseResult
from .normalization import is_record_number, parse_timestamp, split_fields, split_lines

logger = logging.getLogger(__name__)

NO_LINES_WARNING = "No lines to process."
NO_ROWS_WARNING = "No rows with a YYYY-MM-DD HH:MM:SS timestamp were found."


@dataclass(frozen=True, slots=True)
class ColumnMatch:
    """Columns recovered from the fields that precede the timestamp."""

    record_id: str
    action: str
    operator: str
    order_id: str = ""


ColumnLayout = Callable[[Sequence[str]], Optional[ColumnMatch]]


def _leading_columns(fields: Sequence[str]) -> tuple[str, str]:
    record_id = fields[0] if fields and is_record_number(fields[0]) else ""
    if len(fields) > 1:
        action = fields[1]
    elif fields and not record_id:
        action = fields[0]
    else:
        action = ""
    return record_id, action


def match_with_order_id(fields: Sequence[str]) -> Optional[ColumnMatch]:
    """``id, action, operator..., order id`` where the order id is numeric."""
    if len(fields) < 4 or not is_record_number(fields[-1]):
        return None
    record_id, action = _leading_columns(fields)
    return ColumnMatch(record_id, action, " ".join(fields[2:-1]), fields[-1])


def match_operator_tail(fields: Sequence[str]) -> Optional[ColumnMatch]:
    """``id, action, operator...`` with the order column empty or non-numeric."""
    if len(fields) < 3:
        return None
    record_id, action = _leading_columns(fields)
    return ColumnMatch(record_id, action, " ".join(fields[2:]))


def match_no_operator(fields: Sequence[str]) -> Optional[ColumnMatch]:
    record_id, action = _leading_columns(fields)
    return ColumnMatch(record_id, action, "")


COLUMN_LAYOUTS: tuple[ColumnLayout, ...] = (
    match_with_order_id,
    match_operator_tail,
    match_no_operator,
)


def match_columns(
    fields: Sequence[str], layouts: Sequence[ColumnLayout] = COLUMN_LAYOUTS
) -> Optional[ColumnMatch]:
    for layout in layouts:
        match = layout(fields)
        if match is not None:
            return match
    return None


def locate_timestamp(fields: Sequence[str]) -> Optional[tuple[int, datetime]]:
    """Return the index and value of the last field that is a timestamp."""
    for index in range(len(fields) - 1, -1, -1):
        parsed = parse_timestamp(fields[index])
        if parsed is not None:
            return index, parsed
    return None


def find_header(lines: Sequence[str], pattern: re.Pattern[str]) -> Optional[int]:
    for index, line in enumerate(lines):
        if pattern.search(line.replace("\t", " ")):
            return index
    return None


def parse_line(line: str, vocabulary: ActionVocabulary) -> Optional[LogEvent]:
    """Turn one table line into an event, or ``None`` for non-data noise."""
    fields = split_fields(line)
    located = locate_timestamp(fields)
    if located is None:
        return None
    index, timestamp = located
    columns = match_columns(fields[:index])
    if columns is None:
        return None
    return LogEvent(
        timestamp=timestamp,
        action=vocabulary.classify(columns.action),
        operator=columns.operator,
        record_id=columns.record_id,
        order_id=columns.order_id,
        raw_timestamp=fields[index],
    )


def parse(raw_text: Optional[str], settings: Optional[ParserSettings] = None) -> ParseResult:
    """Parse pasted text into events; malformed lines are skipped silently."""
    settings = settings or ParserSettings()
    lines = split_lines(raw_text)
    content = [line for line in lines if not settings.chrome.matches(line)]
    logger.debug("Dropped %d UI chrome lines.", len(lines) - len(content))
    if not content:
        return ParseResult(warnings=(NO_LINES_WARNING,))

    header_index = find_header(content, settings.header_pattern)
    if header_index is not None:
        content = content[header_index + 1 :]

    events: list[LogEvent] = []
    for line in content:
        event = parse_line(line, settings.vocabulary)
        if event is not None:
            events.append(event)
    logger.debug("Parsed %d events from %d candidate lines.", len(events), len(content))

    if not events:
        return ParseResult(warnings=(NO_ROWS_WARNING,))
    return ParseResult(events=tuple(events))


def list_operators(events: Iterable[LogEvent]) -> list[str]:
    """Distinct non-empty operator labels, sorted case-insensitively."""
    return sorted({event.operator for event in events if event.operator}, key=str.casefold)
