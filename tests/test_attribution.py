from datetime import datetime, timedelta

import pytest

from conftest import CLOSE, IN_PROGRESS, OPEN, POST_PROCESSING, make_event, tab_log
from status_timeline.attribution import attribute, clip, resolve_window, select_events
from status_timeline.config import AttributionSettings, StatusMode
from status_timeline.models import NO_STATUS
from status_timeline.parser import parse
from status_timeline.samples import DEMO_LOG

MINUTE_MS = 60_000


def _interval_at(result, start: str):
    moment = datetime.strptime(start, "%Y-%m-%d %H:%M:%S")
    return next(interval for interval in result.intervals if interval.start == moment)


def test_order_close_switches_to_in_progress_with_mode_b(order_log):
    result = attribute(parse(order_log).events, AttributionSettings(mode_b=True))

    after_close = _interval_at(result, "2024-01-01 10:30:00")
    assert after_close.attributed_status == IN_PROGRESS
    assert after_close.credited
    assert after_close.triggering_action == CLOSE
    assert result.totals == {IN_PROGRESS: 30 * MINUTE_MS}

    before_status = _interval_at(result, "2024-01-01 10:00:00")
    assert before_status.attributed_status == NO_STATUS
    assert not before_status.credited


def test_post_processing_only_credited_inside_order(post_processing_log):
    events = parse(post_processing_log).events

    with_mode_b = attribute(events, AttributionSettings(mode_b=True))
    assert with_mode_b.totals == {
        POST_PROCESSING: 25 * MINUTE_MS,
        IN_PROGRESS: 30 * MINUTE_MS,
    }
    inside = _interval_at(with_mode_b, "2024-01-01 10:05:00")
    assert inside.in_order_session and inside.credited

    without_mode_b = attribute(events, AttributionSettings(mode_b=False))
    assert without_mode_b.totals == {POST_PROCESSING: 25 * MINUTE_MS}
    outside = _interval_at(without_mode_b, "2024-01-01 10:30:00")
    assert outside.attributed_status == POST_PROCESSING
    assert not outside.in_order_session
    assert not outside.credited


def test_post_processing_outside_session_is_never_credited():
    events = [
        make_event("2024-01-01 09:00:00", POST_PROCESSING),
        make_event("2024-01-01 09:10:00", OPEN),
        make_event("2024-01-01 09:20:00", CLOSE),
        make_event("2024-01-01 09:40:00", IN_PROGRESS),
    ]
    result = attribute(events, AttributionSettings(mode_b=False))

    for interval in result.intervals:
        if interval.attributed_status == POST_PROCESSING and not interval.in_order_session:
            assert not interval.credited
    assert result.totals == {POST_PROCESSING: 10 * MINUTE_MS}


def test_dedupe_keeps_later_listed_event():
    events = [
        make_event("2024-01-01 09:00:00", IN_PROGRESS),
        make_event("2024-01-01 09:10:00", "Статус перерыв"),
        make_event("2024-01-01 09:10:00", "Статус обед"),
        make_event("2024-01-01 09:30:00", IN_PROGRESS),
    ]
    deduped = select_events(events, AttributionSettings(deduplicate=True))
    assert [event.action.label for event in deduped] == [IN_PROGRESS, "Статус обед", IN_PROGRESS]

    kept = select_events(events, AttributionSettings(deduplicate=False))
    assert len(kept) == 4

    result = attribute(events, AttributionSettings(deduplicate=True))
    assert result.used_event_count == 3
    assert result.totals == {IN_PROGRESS: 10 * MINUTE_MS, "Статус обед": 20 * MINUTE_MS}


def test_dedupe_never_grows_or_reorders():
    events = [
        make_event("2024-01-01 09:05:00", "Статус b"),
        make_event("2024-01-01 09:00:00", "Статус a"),
        make_event("2024-01-01 09:05:00", "Статус c"),
        make_event("2024-01-01 09:07:00", "Статус d"),
    ]
    plain = select_events(events, AttributionSettings())
    deduped = select_events(events, AttributionSettings(deduplicate=True))

    assert len(deduped) <= len(plain)
    positions = [plain.index(event) for event in deduped]
    assert positions == sorted(positions)


def test_sort_is_stable_for_equal_timestamps():
    events = [
        make_event("2024-01-01 09:05:00", "Статус b"),
        make_event("2024-01-01 09:00:00", "Статус a"),
        make_event("2024-01-01 09:05:00", "Статус c"),
    ]
    ordered = select_events(events, AttributionSettings())
    assert [event.action.label for event in ordered] == ["Статус a", "Статус b", "Статус c"]


def test_min_gap_drops_short_intervals_only():
    events = [
        make_event("2024-01-01 09:00:00", IN_PROGRESS),
        make_event("2024-01-01 09:10:00", "Статус перерыв"),
        make_event("2024-01-01 09:10:45", IN_PROGRESS),
        make_event("2024-01-01 09:20:00", "Статус перерыв"),
    ]
    result = attribute(events, AttributionSettings(min_gap=timedelta(seconds=60)))

    assert len(result.intervals) == 2
    assert "Статус перерыв" not in result.totals
    assert result.totals[IN_PROGRESS] == 10 * MINUTE_MS + (9 * 60 + 15) * 1000


def test_min_gap_threshold_is_inclusive():
    events = [
        make_event("2024-01-01 09:00:00", IN_PROGRESS),
        make_event("2024-01-01 09:01:00", IN_PROGRESS),
    ]
    result = attribute(events, AttributionSettings(min_gap=timedelta(seconds=60)))
    assert len(result.intervals) == 1


def test_min_gap_monotonic(post_processing_log):
    events = parse(post_processing_log).events
    counts = [
        len(attribute(events, AttributionSettings(min_gap=timedelta(seconds=gap))).intervals)
        for gap in (0, 60, 300, 1500, 1800, 3600)
    ]
    assert counts == sorted(counts, reverse=True)


def test_min_gap_applies_after_clipping():
    events = [
        make_event("2024-01-01 09:00:00", IN_PROGRESS),
        make_event("2024-01-01 10:00:00", "Статус перерыв"),
        make_event("2024-01-01 10:30:00", IN_PROGRESS),
    ]
    settings = AttributionSettings(
        window_start=datetime(2024, 1, 1, 9, 59, 15),
        min_gap=timedelta(seconds=60),
    )
    result = attribute(events, settings)

    assert [interval.attributed_status for interval in result.intervals] == ["Статус перерыв"]
    assert result.totals == {"Статус перерыв": 30 * MINUTE_MS}


def test_default_window_spans_first_to_last_event():
    events = [
        make_event("2024-01-01 09:00:00", IN_PROGRESS),
        make_event("2024-01-01 09:20:00", "Статус перерыв"),
        make_event("2024-01-01 10:00:00", IN_PROGRESS),
    ]
    result = attribute(events)

    assert result.window_start == datetime(2024, 1, 1, 9)
    assert result.window_end == datetime(2024, 1, 1, 10)
    assert result.window_ms == 60 * MINUTE_MS
    assert result.credited_ms == result.window_ms
    assert result.used_event_count == 3


def test_window_clips_intervals_and_primes_state():
    events = [
        make_event("2024-01-01 08:00:00", OPEN),
        make_event("2024-01-01 08:30:00", POST_PROCESSING),
        make_event("2024-01-01 09:30:00", CLOSE),
        make_event("2024-01-01 10:30:00", OPEN),
    ]
    settings = AttributionSettings(
        window_start=datetime(2024, 1, 1, 9, 0),
        window_end=datetime(2024, 1, 1, 10, 0),
    )
    result = attribute(events, settings)

    assert result.window_start == datetime(2024, 1, 1, 9)
    assert [(interval.start, interval.end) for interval in result.intervals] == [
        (datetime(2024, 1, 1, 9, 0), datetime(2024, 1, 1, 9, 30)),
        (datetime(2024, 1, 1, 9, 30), datetime(2024, 1, 1, 10, 0)),
    ]
    assert result.totals == {POST_PROCESSING: 30 * MINUTE_MS, IN_PROGRESS: 30 * MINUTE_MS}
    for interval in result.intervals:
        assert settings.window_start <= interval.start < interval.end <= settings.window_end


def test_inverted_window_is_empty_result():
    events = [
        make_event("2024-01-01 09:00:00", IN_PROGRESS),
        make_event("2024-01-01 10:00:00", IN_PROGRESS),
    ]
    settings = AttributionSettings(
        window_start=datetime(2024, 1, 1, 10),
        window_end=datetime(2024, 1, 1, 9),
    )
    result = attribute(events, settings)

    assert result.is_empty
    assert result.totals == {}
    assert result.window_start is None and result.window_end is None
    assert result.window_ms is None
    assert result.used_event_count == 2


@pytest.mark.parametrize("count", [0, 1])
def test_too_few_events_is_empty_not_error(count):
    events = [make_event("2024-01-01 09:00:00", IN_PROGRESS)][:count]
    result = attribute(events)

    assert result.is_empty
    assert result.totals == {}
    assert result.window_start is None
    assert result.used_event_count == count


def test_single_event_with_configured_window_echoes_bounds():
    settings = AttributionSettings(
        window_start=datetime(2024, 1, 1, 8),
        window_end=datetime(2024, 1, 1, 12),
    )
    result = attribute([make_event("2024-01-01 09:00:00", IN_PROGRESS)], settings)

    assert result.is_empty
    assert result.window_start == datetime(2024, 1, 1, 8)
    assert result.window_end == datetime(2024, 1, 1, 12)


def test_operator_filter_is_exact():
    events = [
        make_event("2024-01-01 09:00:00", IN_PROGRESS, operator="OpA"),
        make_event("2024-01-01 09:05:00", "Статус перерыв", operator="OpB"),
        make_event("2024-01-01 09:10:00", "Статус перерыв", operator="OpA"),
        make_event("2024-01-01 09:15:00", IN_PROGRESS, operator="OpA "),
    ]
    result = attribute(events, AttributionSettings(operator_filter="OpA"))

    assert result.used_event_count == 2
    assert result.totals == {IN_PROGRESS: 10 * MINUTE_MS}


def test_large_gap_warning_before_next_order():
    events = [
        make_event("2024-01-01 09:00:00", OPEN),
        make_event("2024-01-01 09:05:00", CLOSE),
        make_event("2024-01-01 09:45:00", OPEN),
        make_event("2024-01-01 09:50:00", CLOSE),
        make_event("2024-01-01 09:55:00", OPEN),
    ]
    result = attribute(events, AttributionSettings(gap_warning=timedelta(minutes=30)))

    flagged = [interval.start for interval in result.intervals if interval.large_gap_warning]
    assert flagged == [datetime(2024, 1, 1, 9, 5)]

    disabled = attribute(events, AttributionSettings(gap_warning=timedelta(0)))
    assert not any(interval.large_gap_warning for interval in disabled.intervals)


def test_large_gap_warning_threshold_is_inclusive():
    events = [
        make_event("2024-01-01 09:00:00", IN_PROGRESS),
        make_event("2024-01-01 09:30:00", OPEN),
    ]
    result = attribute(events, AttributionSettings(gap_warning=timedelta(minutes=30)))
    assert result.intervals[0].large_gap_warning


def test_explicit_status_overrides_inferred_in_progress():
    events = [
        make_event("2024-01-01 09:00:00", OPEN),
        make_event("2024-01-01 09:05:00", CLOSE),
        make_event("2024-01-01 09:06:00", "Статус перерыв"),
        make_event("2024-01-01 09:20:00", OPEN),
    ]
    result = attribute(events)
    assert result.totals == {IN_PROGRESS: MINUTE_MS, "Статус перерыв": 14 * MINUTE_MS}


def test_status_lines_only_mode_attributes_each_status():
    events = [
        make_event("2024-01-01 09:00:00", POST_PROCESSING),
        make_event("2024-01-01 09:10:00", OPEN),
        make_event("2024-01-01 09:20:00", IN_PROGRESS),
        make_event("2024-01-01 09:30:00", "Статус перерыв"),
    ]
    result = attribute(events, AttributionSettings(status_mode=StatusMode.STATUS_LINES_ONLY))

    assert result.used_event_count == 3
    assert result.totals == {POST_PROCESSING: 20 * MINUTE_MS, IN_PROGRESS: 10 * MINUTE_MS}


def test_demo_log_totals():
    result = attribute(parse(DEMO_LOG).events, AttributionSettings(gap_warning=timedelta(minutes=15)))

    assert result.totals == {IN_PROGRESS: 28_496_000, POST_PROCESSING: 507_000}
    assert result.credited_ms == result.window_ms
    flagged = [interval for interval in result.intervals if interval.large_gap_warning]
    assert [interval.start for interval in flagged] == [datetime(2026, 2, 13, 19, 20, 28)]


def test_attribution_is_idempotent(post_processing_log):
    events = parse(post_processing_log).events
    settings = AttributionSettings(min_gap=timedelta(seconds=30), gap_warning=timedelta(minutes=1))
    assert attribute(events, settings) == attribute(events, settings)


def test_totals_match_credited_intervals():
    raw = tab_log(
        ("1", IN_PROGRESS, "OpA", "2024-01-01 09:00:00"),
        ("2", OPEN, "OpA", "5", "2024-01-01 09:03:00"),
        ("3", POST_PROCESSING, "OpA", "2024-01-01 09:13:00"),
        ("4", CLOSE, "OpA", "5", "2024-01-01 09:17:30"),
        ("5", "Комментарий", "OpA", "2024-01-01 09:18:00"),
        ("6", POST_PROCESSING, "OpA", "2024-01-01 09:25:00"),
        ("7", OPEN, "OpA", "6", "2024-01-01 09:40:00"),
    )
    result = attribute(parse(raw).events, AttributionSettings(mode_b=False))

    expected: dict[str, int] = {}
    for interval in result.intervals:
        if interval.credited:
            expected[interval.attributed_status] = (
                expected.get(interval.attributed_status, 0) + interval.duration_ms
            )
    assert result.totals == expected
    assert result.credited_ms <= result.window_ms


def test_resolve_window_and_clip_helpers():
    events = [make_event("2024-01-01 09:00:00", IN_PROGRESS)]
    assert resolve_window(events, AttributionSettings()) == (None, None)
    assert resolve_window([], AttributionSettings()) == (None, None)

    start, end = datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10)
    assert clip(datetime(2024, 1, 1, 8), datetime(2024, 1, 1, 9), start, end) is None
    assert clip(datetime(2024, 1, 1, 8), datetime(2024, 1, 1, 11), start, end) == (start, end)
