"""Domain models for parsed log events and attributed time."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

NO_STATUS = "(none)"

_ONE_MS = timedelta(milliseconds=1)


class ActionKind(Enum):
    STATUS_CHANGE = "status_change"
    ORDER_OPENED = "order_opened"
    ORDER_CLOSED = "order_closed"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class Action:
    """An action label together with its classification."""

    kind: ActionKind
    label: str

    @property
    def is_status(self) -> bool:
        return self.kind is ActionKind.STATUS_CHANGE


@dataclass(frozen=True, slots=True)
class LogEvent:
    """A single row of the pasted log."""

    timestamp: datetime
    action: Action
    operator: str
    record_id: str = ""
    order_id: str = ""
    raw_timestamp: str = ""


@dataclass(slots=True)
class Interval:
    """Time between two consecutive events, clipped to the window."""

    start: datetime
    end: datetime
    triggering_action: str
    attributed_status: str
    credited: bool
    large_gap_warning: bool = False
    in_order_session: bool = False

    @property
    def duration_ms(self) -> int:
        return (self.end - self.start) // _ONE_MS

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()


@dataclass(slots=True)
class ParseResult:
    events: tuple[LogEvent, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(slots=True)
class AttributionResult:
    """Totals per status plus the intervals they were summed from."""

    totals: dict[str, int] = field(default_factory=dict)
    intervals: list[Interval] = field(default_factory=list)
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    used_event_count: int = 0

    @property
    def has_window(self) -> bool:
        return self.window_start is not None and self.window_end is not None

    @property
    def window_ms(self) -> Optional[int]:
        if self.window_start is None or self.window_end is None:
            return None
        return (self.window_end - self.window_start) // _ONE_MS

    @property
    def credited_ms(self) -> int:
        return sum(self.totals.values())

    @property
    def is_empty(self) -> bool:
        return not self.intervals
