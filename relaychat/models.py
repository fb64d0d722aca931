"""
Conversation Models

Pydantic models for persisted chat sessions and their messages.
Field aliases match the camelCase layout written to local storage.
"""

import uuid
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "assistant"]

DEFAULT_TITLE = "New Chat"
TITLE_ELLIPSIS = "..."


def generate_id() -> str:
    """Return a random (version 4) UUID string."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(UTC)


class Message(BaseModel):
    """Single message in a session transcript."""

    role: Role
    content: str
    timestamp: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(frozen=True)


class Session(BaseModel):
    """
    One persisted conversation thread.

    Attributes:
        id: Local identifier used for selection and deletion
        correlation_id: Token sent to the webhook as ``sessionId`` so the
            remote agent can scope its own memory to this thread
        title: Placeholder until the first user message fixes it
        messages: Append-only transcript in chronological order
    """

    id: str = Field(default_factory=generate_id)
    correlation_id: str = Field(default_factory=generate_id, alias="sessionId")
    title: str = DEFAULT_TITLE
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")
    messages: list[Message] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def user_message_count(self) -> int:
        return sum(1 for message in self.messages if message.role == "user")

    def to_storage(self) -> dict:
        """Serialize with storage aliases and ISO timestamps."""
        return self.model_dump(mode="json", by_alias=True)


def derive_title(first_message: str, max_length: int) -> str:
    """Build a session title from the first user message."""
    title = first_message[:max_length]
    if len(first_message) > max_length:
        title += TITLE_ELLIPSIS
    return title
