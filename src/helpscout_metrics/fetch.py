"""Paginated conversation retrieval across mailboxes."""

import asyncio
import logging
from typing import Iterable, Protocol

from helpscout_metrics.models import Conversation, ConversationPage

logger = logging.getLogger(__name__)

# Maximum in-flight page requests per mailbox
PAGE_CONCURRENCY = 5


class ConversationSource(Protocol):
    """Anything that can fetch one page of a mailbox's conversations."""

    async def list_conversations(self, mailbox_id: str | int, page: int = 1) -> ConversationPage:
        ...


async def fetch_mailbox(
    client: ConversationSource,
    mailbox_id: str | int,
    concurrency: int = PAGE_CONCURRENCY,
) -> list[Conversation]:
    """Get every conversation in a mailbox, walking all pages.

    Page 1 is fetched first; the remaining pages are fetched concurrently
    with at most ``concurrency`` requests in flight and appended after it.

    Raises:
        HelpScoutAPIError: On the first failed page. Pages already fetched
            for this mailbox are discarded.
    """
    first = await client.list_conversations(mailbox_id, page=1)
    convos = list(first.items)
    remaining = range(first.page + 1, first.pages + 1)
    if not remaining:
        return convos

    semaphore = asyncio.Semaphore(concurrency)

    async def fetch_page(page: int) -> ConversationPage:
        async with semaphore:
            logger.debug("fetching mailbox %s conversations page %d / %d ..", mailbox_id, page, first.pages)
            return await client.list_conversations(mailbox_id, page=page)

    try:
        responses = await asyncio.gather(*(fetch_page(page) for page in remaining))
    except Exception as e:
        logger.debug("mailbox %s page fetch failed: %s", mailbox_id, e)
        raise

    logger.debug("fetched all %d conversation pages for mailbox %s", first.pages, mailbox_id)
    for response in responses:
        convos.extend(response.items)
    return convos


async def collect_conversations(
    client: ConversationSource,
    mailbox_ids: Iterable[str | int],
) -> list[Conversation]:
    """Fetch all mailboxes concurrently and combine their conversations.

    No deduplication is done. Any mailbox failure fails the whole collection.
    """
    mailbox_ids = list(mailbox_ids)
    logger.debug("querying helpscout mailboxes %s ..", mailbox_ids)
    results = await asyncio.gather(*(fetch_mailbox(client, m) for m in mailbox_ids))
    logger.debug("finished querying helpscout mailboxes")

    convos: list[Conversation] = []
    for mailbox_convos in results:
        convos.extend(mailbox_convos)
    return convos
