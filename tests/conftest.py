"""Shared fixtures for helpscout-metrics tests."""

from datetime import datetime

import pytest

from helpscout_metrics.models import Conversation, ConversationPage


def make_convo(
    id=1,
    status="active",
    owner: str | None = "Alice",
    created_at: str | None = None,
    user_modified_at: str | None = None,
    closed_at: str | None = None,
) -> Conversation:
    """Build a conversation the way the API would send it."""
    data = {
        "id": id,
        "status": status,
        "createdAt": created_at,
        "userModifiedAt": user_modified_at,
        "closedAt": closed_at,
    }
    if owner is not None:
        data["owner"] = {"id": 7, "firstName": owner, "lastName": "Smith"}
    return Conversation.model_validate(data)


class FakeClient:
    """In-memory page source recording every request."""

    def __init__(self, mailboxes: dict, failing: set | None = None):
        # mailboxes: {mailbox_id: [[convo, ...], [convo, ...], ...]} one list per page
        self.mailboxes = mailboxes
        self.failing = failing or set()
        self.calls: list[tuple] = []

    async def list_conversations(self, mailbox_id, page=1):
        from helpscout_metrics.client import HelpScoutAPIError

        self.calls.append((mailbox_id, page))
        if (mailbox_id, page) in self.failing or (mailbox_id, None) in self.failing:
            raise HelpScoutAPIError(f"Request failed: mailbox {mailbox_id} page {page}")
        pages = self.mailboxes[mailbox_id]
        return ConversationPage(items=pages[page - 1], page=page, pages=len(pages))


@pytest.fixture
def now() -> datetime:
    """A fixed local mid-afternoon reference time."""
    return datetime(2026, 10, 14, 15, 30, 0).astimezone()
