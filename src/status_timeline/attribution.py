"""Attribute elapsed time between log events to operator statuses.

Events are walked in chronological order. Each consecutive pair ``(cur, next)``
forms a candidate interval that is credited to whatever status is current
after ``cur`` has been observed. Two domain rules shape the walk:

* post-processing time only counts while an order session is open, i.e.
  between an order-opened and an order-closed event;
* with mode B enabled, closing an order switches the current status to
  "in progress" until the next explicit status change.

The walk is a pure function of its inputs and keeps no state between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from .config import ActionVocabulary, AttributionSettings, StatusMode
from .models import NO_STATUS, ActionKind, AttributionResult, Interval, LogEvent

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WalkState:
    """Status and order-session state carried along the walk."""

    vocabulary: ActionVocabulary
    mode_b: bool = True
    enforce_order_bracket: bool = True
    current_status: Optional[str] = None
    in_order_session: bool = False

    def observe(self, event: LogEvent) -> None:
        kind = event.action.kind
        if kind is ActionKind.ORDER_OPENED:
            self.in_order_session = True
        elif kind is ActionKind.ORDER_CLOSED:
            self.in_order_session = False
            if self.mode_b:
                self.current_status = self.vocabulary.in_progress
        elif kind is ActionKind.STATUS_CHANGE:
            self.current_status = event.action.label

    @property
    def credited(self) -> bool:
        if self.current_status is None:
            return False
        if self.enforce_order_bracket and self.current_status == self.vocabulary.post_processing:
            return self.in_order_session
        return True


def _timestamp(event: LogEvent) -> datetime:
    return event.timestamp


def select_events(events: Iterable[LogEvent], settings: AttributionSettings) -> list[LogEvent]:
    """Filter, sort and optionally de-duplicate events before the walk."""
    selected = list(events)
    if settings.filters_operator:
        selected = [event for event in selected if event.operator == settings.operator_filter]
    if settings.status_mode is StatusMode.STATUS_LINES_ONLY:
        selected = [event for event in selected if event.action.is_status]

    selected.sort(key=_timestamp)

    if settings.deduplicate:
        latest: dict[datetime, LogEvent] = {}
        for event in selected:
            latest[event.timestamp] = event
        selected = sorted(latest.values(), key=_timestamp)
    return selected


def resolve_window(
    events: Sequence[LogEvent], settings: AttributionSettings
) -> tuple[Optional[datetime], Optional[datetime]]:
    """Return the calculation window, or ``(None, None)`` when it is empty."""
    start = settings.window_start
    end = settings.window_end
    if start is None and events:
        start = events[0].timestamp
    if end is None and events:
        end = events[-1].timestamp
    if start is None or end is None or end <= start:
        return None, None
    return start, end


def clip(
    start: datetime, end: datetime, window_start: datetime, window_end: datetime
) -> Optional[tuple[datetime, datetime]]:
    clipped_start = max(start, window_start)
    clipped_end = min(end, window_end)
    if clipped_end <= clipped_start:
        return None
    return clipped_start, clipped_end


def attribute(
    events: Iterable[LogEvent], settings: Optional[AttributionSettings] = None
) -> AttributionResult:
    """Compute per-status totals and the intervals behind them."""
    settings = settings or AttributionSettings()
    selected = select_events(events, settings)
    window_start, window_end = resolve_window(selected, settings)
    result = AttributionResult(
        window_start=window_start,
        window_end=window_end,
        used_event_count=len(selected),
    )
    if window_start is None or window_end is None or len(selected) < 2:
        logger.debug(
            "Nothing to attribute: %d events, window %s -> %s",
            len(selected),
            window_start,
            window_end,
        )
        return result

    vocabulary = settings.vocabulary
    # Structural events are filtered out in status-lines-only mode, so the
    # order bracket cannot be observed there.
    state = WalkState(
        vocabulary=vocabulary,
        mode_b=settings.mode_b,
        enforce_order_bracket=settings.status_mode is StatusMode.TRACK,
    )
    warn_on_gaps = settings.gap_warning > timedelta(0)

    for cur, nxt in zip(selected, selected[1:]):
        state.observe(cur)
        span = clip(cur.timestamp, nxt.timestamp, window_start, window_end)
        if span is None:
            continue
        start, end = span
        if end - start < settings.min_gap:
            continue

        status = state.current_status
        large_gap = (
            warn_on_gaps
            and status == vocabulary.in_progress
            and nxt.action.kind is ActionKind.ORDER_OPENED
            and end - start >= settings.gap_warning
        )
        interval = Interval(
            start=start,
            end=end,
            triggering_action=cur.action.label,
            attributed_status=status or NO_STATUS,
            credited=state.credited,
            large_gap_warning=large_gap,
            in_order_session=state.in_order_session,
        )
        result.intervals.append(interval)
        if interval.credited:
            result.totals[interval.attributed_status] = (
                result.totals.get(interval.attributed_status, 0) + interval.duration_ms
            )

    logger.debug(
        "Attributed %d intervals across %d statuses.",
        len(result.intervals),
        len(result.totals),
    )
    return result
