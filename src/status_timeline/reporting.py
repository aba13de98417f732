"""Simple reporting utilities for CLI output."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from .models import AttributionResult
from .normalization import TIMESTAMP_FMT


class ReportPrinter:
    """Render human-readable attribution reports in the console."""

    def __init__(self, show_intervals: bool = True) -> None:
        self.show_intervals = show_intervals

    def print_report(self, result: AttributionResult) -> None:
        if not result.has_window:
            print("No valid window to calculate; check the dates and the log format.")
            return

        print(
            f"Window {format_timestamp(result.window_start)} -> "
            f"{format_timestamp(result.window_end)}"
        )
        print("-" * 60)
        print(f"Window length: {format_duration((result.window_ms or 0) / 1000)}")
        print(f"Credited time: {format_duration(result.credited_ms / 1000)}")
        print(f"Events used:   {result.used_event_count}")
        print()

        ranked = rank_totals(result)
        if not ranked:
            print("No intervals to calculate (too few status events or only one event).")
        else:
            print("Time by status:")
            for status, ms in ranked:
                share = share_of_window(ms, result)
                print(f"  {status[:40]:<40} {format_duration(ms / 1000)} {share:6.1f}%")

        if self.show_intervals and result.intervals:
            print()
            print("Intervals (- not credited, ! long gap before next order):")
            for interval in result.intervals:
                marks = ("" if interval.credited else "-") + ("!" if interval.large_gap_warning else "")
                print(
                    f"  {format_timestamp(interval.start)} -> {format_timestamp(interval.end)}"
                    f"  {format_duration(interval.duration_seconds)}"
                    f"  {marks:<2} {interval.attributed_status}"
                    f" [{interval.triggering_action or '(untitled)'}]"
                )


def rank_totals(result: AttributionResult) -> list[tuple[str, int]]:
    return sorted(result.totals.items(), key=lambda item: item[1], reverse=True)


def share_of_window(ms: int, result: AttributionResult) -> float:
    """Percentage of the calculation window covered by ``ms``."""
    window_ms = result.window_ms
    if not window_ms:
        return 0.0
    return ms / window_ms * 100


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return "—"
    return value.strftime(TIMESTAMP_FMT)


def format_duration(seconds: float) -> str:
    if not math.isfinite(seconds) or seconds < 0:
        return "—"
    total_seconds = int(seconds)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
