"""
Chat Service

Turn controller between the user interface, the conversation store and the
remote agent. One request may be in flight at a time; submissions made while
busy are rejected rather than queued.
"""

import logging
from collections.abc import Callable
from typing import Any, Protocol

from relaychat.conversations import ConversationStore
from relaychat.exceptions import TransportError
from relaychat.models import Message, Session
from relaychat.normalizer import normalize

logger = logging.getLogger(__name__)

ERROR_REPLY_TEXT = (
    "Sorry, I encountered an error while processing your request. Please try again."
)


class Transport(Protocol):
    async def send(self, message: str, session_id: str) -> Any: ...


class ChatService:
    """Map user actions onto store operations and webhook turns."""

    def __init__(
        self,
        store: ConversationStore,
        transport: Transport,
        normalizer: Callable[[Any], str] = normalize,
    ) -> None:
        self.store = store
        self.transport = transport
        self.normalizer = normalizer
        self.busy = False

    async def submit(self, text: str) -> Message | None:
        """
        Run one user turn and return the assistant reply.

        Blank input and input received while a turn is pending are ignored
        and return None. Any failure while sending or reading the reply is
        answered with a fixed assistant error message.
        """
        content = text.strip()
        if not content:
            return None
        if self.busy:
            logger.info("Ignoring submission while a request is pending")
            return None

        self.store.append_message("user", content)
        session = self.store.active
        self.busy = True
        try:
            raw = await self.transport.send(content, session.correlation_id)
            reply = self.normalizer(raw)
        except TransportError as exc:
            logger.error("API Error: %s", exc, extra={"error": exc.to_dict()})
            reply = ERROR_REPLY_TEXT
        except Exception:
            logger.exception("Failed to process webhook response")
            reply = ERROR_REPLY_TEXT
        finally:
            self.busy = False

        return self.store.append_message("assistant", reply)

    def new_chat(self) -> None:
        """Start over; the session is created by the next submission."""
        self.store.set_active(None)

    def select(self, session_id: str) -> Session | None:
        return self.store.set_active(session_id)

    def delete(self, session_id: str) -> None:
        self.store.delete_session(session_id)
