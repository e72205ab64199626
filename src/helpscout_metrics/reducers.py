"""Metric reducers over a combined list of conversations.

Each reducer reads the conversations and writes its metrics straight
to the sink. They share no state and can run in any order.
"""

from datetime import datetime

from helpscout_metrics.models import Conversation
from helpscout_metrics.sink import MetricsSink
from helpscout_metrics.timeago import timeago
from helpscout_metrics.windows import (
    closed_between,
    created_between,
    end_of_day,
    parse_timestamp,
    round_half_up,
    shift_days,
    start_of_day,
    user_modified_between,
)


def _now(now: datetime | None) -> datetime:
    return now or datetime.now().astimezone()


def total_active(metrics: MetricsSink, convos: list[Conversation], now: datetime | None = None) -> None:
    """Total number of active tickets."""
    active = [c for c in convos if c.is_active]
    metrics.set("helpscout active tickets", len(active))


def weekly(metrics: MetricsSink, convos: list[Conversation], now: datetime | None = None) -> None:
    """Modified and created ticket counts for the last two weeks."""
    now = _now(now)
    week_ago = shift_days(now, -7)
    two_weeks_ago = shift_days(now, -14)

    last_week_modified = user_modified_between(convos, week_ago, now)
    metrics.set("helpscout tickets modified avg", round_half_up(len(last_week_modified) / 7))
    metrics.set("helpscout tickets modified last week", len(last_week_modified))
    metrics.set(
        "helpscout tickets modified 2 weeks ago",
        len(user_modified_between(convos, two_weeks_ago, week_ago)),
    )

    last_week_created = created_between(convos, week_ago, now)
    metrics.set("helpscout tickets created avg", round_half_up(len(last_week_created) / 7))
    metrics.set("helpscout tickets created last week", len(last_week_created))
    metrics.set(
        "helpscout tickets created 2 weeks ago",
        len(created_between(convos, two_weeks_ago, week_ago)),
    )


def oldest_breakdown(metrics: MetricsSink, convos: list[Conversation], now: datetime | None = None) -> None:
    """Active tickets by owner, plus the ticket waiting longest for a reply.

    The oldest ticket is the one with the earliest ``userModifiedAt``; on a
    tie the first one seen wins. When no active ticket has an owner and a
    readable timestamp, the oldest-ticket metrics are not written.
    """
    breakdown: dict[str, int] = {}
    oldest_time: datetime | None = None
    oldest_owner: str | None = None

    for convo in convos:
        if not convo.is_active or convo.owner is None:
            continue
        name = convo.owner.display_name
        breakdown[name] = breakdown.get(name, 0) + 1

        modified = parse_timestamp(convo.user_modified_at)
        if modified is not None and (oldest_time is None or modified < oldest_time):
            oldest_time = modified
            oldest_owner = name

    metrics.set("helpscout active tickets by owner", breakdown)

    if oldest_time is None:
        return

    ago = timeago(oldest_time, now=_now(now), suffix=False)
    metrics.set("helpscout oldest ticket time", oldest_time)
    metrics.set("helpscout oldest ticket owner", oldest_owner)
    metrics.set("helpscout oldest ticket timeago", ago)
    metrics.set("helpscout oldest ticket shaming", f"{oldest_owner}: {ago} of no response.")


def rank_owners(breakdown: dict[str, int]) -> list[str]:
    """Owners by descending count; equal counts keep first-seen order."""
    # sorted() is stable even with reverse=True
    return sorted(breakdown, key=breakdown.__getitem__, reverse=True)


def today_breakdown(metrics: MetricsSink, convos: list[Conversation], now: datetime | None = None) -> None:
    """Tickets closed today by owner, with first and second place."""
    now = _now(now)
    breakdown: dict[str, int] = {}

    for convo in closed_between(convos, start_of_day(now), end_of_day(now)):
        if convo.owner is None:
            continue
        name = convo.owner.display_name
        breakdown[name] = breakdown.get(name, 0) + 1

    ranked = rank_owners(breakdown)
    if len(ranked) > 0:
        metrics.set("helpscout first place owner", ranked[0])
        metrics.set("helpscout first place closed", breakdown[ranked[0]])
    if len(ranked) > 1:
        metrics.set("helpscout second place owner", ranked[1])
        metrics.set("helpscout second place closed", breakdown[ranked[1]])

    metrics.set("helpscout tickets closed today by owner", breakdown)


REDUCERS = (total_active, weekly, oldest_breakdown, today_breakdown)
