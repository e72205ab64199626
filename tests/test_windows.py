"""Tests for timestamp parsing and date windows."""

from datetime import datetime, timedelta, timezone

from conftest import make_convo


def test_parse_timestamp_utc_z():
    """API timestamps ending in Z parse as UTC instants."""
    from helpscout_metrics.windows import parse_timestamp

    dt = parse_timestamp("2026-10-14T12:34:56Z")
    assert dt == datetime(2026, 10, 14, 12, 34, 56, tzinfo=timezone.utc)
    assert dt.tzinfo is not None


def test_parse_timestamp_invalid_returns_none():
    """Unset or garbled timestamps never raise."""
    from helpscout_metrics.windows import parse_timestamp

    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None
    assert parse_timestamp("not a date") is None
    assert parse_timestamp("2026-13-45T99:00:00Z") is None


def test_filters_are_inclusive_at_both_ends(now):
    """Timestamps exactly at start or end are included."""
    from helpscout_metrics.windows import created_between

    start = now - timedelta(days=1)
    convos = [
        make_convo(1, created_at=start.isoformat()),
        make_convo(2, created_at=now.isoformat()),
        make_convo(3, created_at=(start - timedelta(seconds=1)).isoformat()),
        make_convo(4, created_at=(now + timedelta(seconds=1)).isoformat()),
    ]
    assert [c.id for c in created_between(convos, start, now)] == [1, 2]


def test_filters_compare_instants_across_offsets(now):
    """The same instant written in another offset still matches."""
    from helpscout_metrics.windows import user_modified_between

    utc = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    convos = [make_convo(1, user_modified_at=utc)]
    assert len(user_modified_between(convos, now, now)) == 1


def test_closed_filter_skips_open_conversations(now):
    """Conversations without closedAt never match."""
    from helpscout_metrics.windows import closed_between

    convos = [
        make_convo(1, closed_at=None, created_at=now.isoformat(), user_modified_at=now.isoformat()),
        make_convo(2, closed_at="garbage"),
        make_convo(3, closed_at=now.isoformat()),
    ]
    result = closed_between(convos, now - timedelta(hours=1), now)
    assert [c.id for c in result] == [3]


def test_day_boundaries(now):
    """Start and end of day are local 00:00:00 and 23:59:59."""
    from helpscout_metrics.windows import end_of_day, start_of_day

    start = start_of_day(now)
    end = end_of_day(now)
    assert (start.hour, start.minute, start.second, start.microsecond) == (0, 0, 0, 0)
    assert (end.hour, end.minute, end.second, end.microsecond) == (23, 59, 59, 0)
    assert start.date() == end.date() == now.date()


def test_shift_days_keeps_wall_clock(now):
    """Shifting by days keeps the local time of day."""
    from helpscout_metrics.windows import shift_days

    week_ago = shift_days(now, -7)
    assert week_ago.date() == now.date() - timedelta(days=7)
    assert (week_ago.hour, week_ago.minute) == (now.hour, now.minute)


def test_round_half_up():
    """Halves round up, unlike Python's round()."""
    from helpscout_metrics.windows import round_half_up

    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2
    assert round_half_up(10 / 7) == 1
    assert round_half_up(0) == 0
