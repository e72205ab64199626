"""Fuzzy relative-time phrases ("3 days", "about an hour ago")."""

from datetime import datetime

from helpscout_metrics.windows import round_half_up

SUFFIX_AGO = "ago"
SUFFIX_FROM_NOW = "from now"


def _words(seconds: float) -> str:
    minutes = seconds / 60
    hours = minutes / 60
    days = hours / 24
    years = days / 365

    if seconds < 45:
        return "less than a minute"
    if seconds < 90:
        return "about a minute"
    if minutes < 45:
        return f"{round_half_up(minutes)} minutes"
    if minutes < 90:
        return "about an hour"
    if hours < 24:
        return f"about {round_half_up(hours)} hours"
    if hours < 42:
        return "a day"
    if days < 30:
        return f"{round_half_up(days)} days"
    if days < 45:
        return "about a month"
    if days < 365:
        return f"{round_half_up(days / 30)} months"
    if years < 1.5:
        return "about a year"
    return f"{round_half_up(years)} years"


def timeago(instant: datetime, now: datetime | None = None, suffix: bool = False) -> str:
    """Describe how far ``instant`` is from ``now``.

    Args:
        instant: The moment to describe
        now: Reference moment (default: current time)
        suffix: Append "ago" (or "from now" for future instants)

    Returns:
        Phrase such as "3 days" or, with suffix, "3 days ago"
    """
    if instant.tzinfo is None:
        instant = instant.astimezone()
    now = now or datetime.now().astimezone()
    if now.tzinfo is None:
        now = now.astimezone()

    delta = (now - instant).total_seconds()
    words = _words(abs(delta))
    if not suffix:
        return words
    return f"{words} {SUFFIX_AGO if delta >= 0 else SUFFIX_FROM_NOW}"
