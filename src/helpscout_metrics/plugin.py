"""Help Scout metrics plugin: fetch every mailbox, then run the reducers."""

import asyncio
import logging
from datetime import datetime
from typing import Iterable

from helpscout_metrics.client import HelpScoutClient, HelpScoutClientError
from helpscout_metrics.fetch import ConversationSource, collect_conversations
from helpscout_metrics.reducers import REDUCERS
from helpscout_metrics.sink import MetricsSink

logger = logging.getLogger(__name__)


class HelpScoutMetrics:
    """One configured metrics job, invoked once per reporting tick.

    Either every reducer runs against the full set of conversations, or,
    if any mailbox fails to load, nothing is written for the tick.
    """

    def __init__(
        self,
        api_key: str | None,
        mailboxes: Iterable[str | int],
        client: ConversationSource | None = None,
    ):
        self.mailboxes = list(mailboxes)
        self.client = client or HelpScoutClient(api_key=api_key)

    async def collect(self, metrics: MetricsSink) -> bool:
        """Fetch all mailboxes and write every metric to ``metrics``.

        Returns:
            True if metrics were written, False if the fetch failed
        """
        try:
            convos = await collect_conversations(self.client, self.mailboxes)
        except HelpScoutClientError as e:
            logger.error("failed to query helpscout mailboxes %s: %s", self.mailboxes, e)
            return False

        logger.info(
            "fetched %d conversations from %d mailboxes", len(convos), len(self.mailboxes)
        )
        now = datetime.now().astimezone()
        for reducer in REDUCERS:
            reducer(metrics, convos, now=now)
        return True

    def __call__(self, metrics: MetricsSink) -> bool:
        """Run one tick synchronously."""
        return asyncio.run(self.collect(metrics))


def plugin(api_key: str | None, mailboxes: Iterable[str | int]) -> HelpScoutMetrics:
    """Create a Help Scout metrics plugin for the given mailboxes."""
    return HelpScoutMetrics(api_key, mailboxes)
