"""Pydantic models for exporting attribution results as JSON."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from .models import AttributionResult, Interval
from .normalization import TIMESTAMP_FMT
from .reporting import rank_totals


class IntervalPayload(BaseModel):
    start: str
    end: str
    triggering_action: str
    attributed_status: str
    duration_ms: int
    credited: bool
    large_gap_warning: bool
    in_order_session: bool

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_interval(cls, interval: Interval) -> "IntervalPayload":
        return cls(
            start=interval.start.strftime(TIMESTAMP_FMT),
            end=interval.end.strftime(TIMESTAMP_FMT),
            triggering_action=interval.triggering_action,
            attributed_status=interval.attributed_status,
            duration_ms=interval.duration_ms,
            credited=interval.credited,
            large_gap_warning=interval.large_gap_warning,
            in_order_session=interval.in_order_session,
        )


class TotalPayload(BaseModel):
    status: str
    duration_ms: int

    model_config = ConfigDict(extra="forbid")


class ReportPayload(BaseModel):
    """Machine-readable form of an :class:`AttributionResult`."""

    window_start: Optional[str] = None
    window_end: Optional[str] = None
    window_ms: Optional[int] = None
    used_event_count: int = 0
    credited_ms: int = 0
    totals: list[TotalPayload] = []
    intervals: list[IntervalPayload] = []
    warnings: list[str] = []

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_result(
        cls, result: AttributionResult, warnings: tuple[str, ...] | list[str] = ()
    ) -> "ReportPayload":
        ranked = rank_totals(result)
        return cls(
            window_start=result.window_start.strftime(TIMESTAMP_FMT) if result.window_start else None,
            window_end=result.window_end.strftime(TIMESTAMP_FMT) if result.window_end else None,
            window_ms=result.window_ms,
            used_event_count=result.used_event_count,
            credited_ms=result.credited_ms,
            totals=[TotalPayload(status=status, duration_ms=ms) for status, ms in ranked],
            intervals=[IntervalPayload.from_interval(interval) for interval in result.intervals],
            warnings=list(warnings),
        )
