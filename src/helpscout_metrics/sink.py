"""Metrics sinks: where reducers write their named values."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

import httpx

from helpscout_metrics.client import get_slack_config


@runtime_checkable
class MetricsSink(Protocol):
    """Write-only recorder of named metric values.

    Values are numbers, strings, datetimes or a mapping of name to count.
    """

    def set(self, name: str, value: Any) -> None:
        ...


class MemorySink:
    """Keeps the latest value of each metric in a dict."""

    def __init__(self) -> None:
        self.values: dict[str, Any] = {}

    def set(self, name: str, value: Any) -> None:
        self.values[name] = value

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def __len__(self) -> int:
        return len(self.values)

    def as_dict(self) -> dict[str, Any]:
        """JSON-friendly copy, with datetimes as ISO strings."""
        return {
            name: value.isoformat() if isinstance(value, datetime) else value
            for name, value in self.values.items()
        }


def _format_breakdown(breakdown: dict[str, int]) -> str:
    if not breakdown:
        return "_none_"
    ordered = sorted(breakdown.items(), key=lambda x: x[1], reverse=True)
    return "\n".join(f"• *{name}*: {count}" for name, count in ordered)


def build_slack_blocks(values: dict[str, Any]) -> list[dict]:
    """Build a Slack Block Kit message for one tick's metrics."""
    blocks: list[dict] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": "Help Scout Metrics", "emoji": True},
        },
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Active Tickets:*\n{values.get('helpscout active tickets', 0)}"},
                {"type": "mrkdwn", "text": f"*Modified Last Week:*\n{values.get('helpscout tickets modified last week', 0)}"},
                {"type": "mrkdwn", "text": f"*Created Last Week:*\n{values.get('helpscout tickets created last week', 0)}"},
                {"type": "mrkdwn", "text": f"*Created Daily Avg:*\n{values.get('helpscout tickets created avg', 0)}"},
            ],
        },
        {"type": "divider"},
    ]

    if "helpscout first place owner" in values:
        lines = [
            f"🥇 *{values['helpscout first place owner']}* "
            f"({values['helpscout first place closed']} closed)"
        ]
        if "helpscout second place owner" in values:
            lines.append(
                f"🥈 *{values['helpscout second place owner']}* "
                f"({values['helpscout second place closed']} closed)"
            )
        blocks.append({
            "type": "section",
            "text": {"type": "mrkdwn", "text": "*Closed Today*\n" + "\n".join(lines)},
        })

    blocks.append({
        "type": "section",
        "text": {
            "type": "mrkdwn",
            "text": "*Active Tickets by Owner*\n"
            + _format_breakdown(values.get("helpscout active tickets by owner", {})),
        },
    })

    if "helpscout oldest ticket shaming" in values:
        blocks.append({
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": f"⏳ {values['helpscout oldest ticket shaming']}"}],
        })

    return blocks


class SlackSink(MemorySink):
    """Records metrics and posts them to a Slack incoming webhook on flush."""

    def __init__(self, webhook_url: str | None = None, channel: str | None = None) -> None:
        super().__init__()
        self.webhook_url = webhook_url
        self.channel = channel

    async def flush(self) -> dict:
        """Send the recorded metrics to Slack.

        Returns:
            Dict with success status, and an error message on failure
        """
        webhook_url, channel = self.webhook_url, self.channel
        if not webhook_url or not channel:
            config = get_slack_config()
            if not config:
                return {
                    "success": False,
                    "error": "Slack not configured. Run 'helpscout-metrics auth login-slack' first.",
                }
            webhook_url = webhook_url or config[0]
            channel = channel or config[1]

        if not channel.startswith("#"):
            channel = f"#{channel}"

        payload = {"channel": channel, "blocks": build_slack_blocks(self.values)}

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                    timeout=30.0,
                )
                if response.text != "ok":
                    return {"success": False, "error": f"Slack API error: {response.text}"}
        except httpx.RequestError as e:
            return {"success": False, "error": f"Failed to send to Slack: {e}"}

        return {"success": True, "channel": channel}
