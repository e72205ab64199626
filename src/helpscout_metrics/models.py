"""Help Scout conversation records as returned by the mailbox API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Accept the API's camelCase names, ignore everything we don't read
_MODEL_CONFIG = ConfigDict(populate_by_name=True, extra="ignore")


class Owner(BaseModel):
    """User a conversation is assigned to."""
    model_config = _MODEL_CONFIG
    id: Optional[int] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        # Reports use the first name only
        return self.first_name or ""


class Conversation(BaseModel):
    """A single support conversation.

    Timestamps are kept as the raw strings the API sent and parsed on
    demand, so a missing or garbled date never fails validation.
    """
    model_config = _MODEL_CONFIG
    id: Optional[int | str] = None
    number: Optional[int] = None
    subject: Optional[str] = None
    mailbox_id: Optional[int | str] = Field(default=None, alias="mailboxId")
    status: Optional[str] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    user_modified_at: Optional[str] = Field(default=None, alias="userModifiedAt")
    closed_at: Optional[str] = Field(default=None, alias="closedAt")
    owner: Optional[Owner] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class ConversationPage(BaseModel):
    """One page of a paginated conversations collection."""
    model_config = _MODEL_CONFIG
    items: list[Conversation] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    pages: int = Field(default=1, ge=0)
    count: Optional[int] = None
