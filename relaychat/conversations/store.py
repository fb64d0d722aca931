"""Storage-backed state for chat sessions."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from relaychat.config import Settings
from relaychat.exceptions import StorageError
from relaychat.models import Message, Role, Session, derive_title, utc_now
from relaychat.storage import JsonFileStorage, KeyValueStorage

logger = logging.getLogger(__name__)

DEFAULT_CHATS_KEY = "relaychat-chats"
DEFAULT_ACTIVE_CHAT_KEY = "relaychat-active-chat"
DEFAULT_MAX_TITLE_LENGTH = 50


class ConversationStore:
    """
    Own the session list and the active-session pointer.

    Sessions are kept most-recent-first. Every mutating call writes the full
    state back to storage before returning. Storage failures are logged and
    never raised: a failed read leaves an empty store, a failed write leaves
    the in-memory state unpersisted.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        chats_key: str = DEFAULT_CHATS_KEY,
        active_chat_key: str = DEFAULT_ACTIVE_CHAT_KEY,
        max_title_length: int = DEFAULT_MAX_TITLE_LENGTH,
    ) -> None:
        self._storage = storage
        self._chats_key = chats_key
        self._active_chat_key = active_chat_key
        self._max_title_length = max_title_length
        self._sessions: list[Session] = []
        self._active_id: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> ConversationStore:
        return cls(
            JsonFileStorage(settings.storage.path),
            chats_key=settings.storage.chats_key,
            active_chat_key=settings.storage.active_chat_key,
            max_title_length=settings.storage.max_title_length,
        )

    @property
    def sessions(self) -> tuple[Session, ...]:
        return tuple(self._sessions)

    @property
    def active(self) -> Session | None:
        if self._active_id is None:
            return None
        return self.get(self._active_id)

    def get(self, session_id: str) -> Session | None:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def load(self) -> None:
        """Replace in-memory state with what storage holds."""
        try:
            sessions = self._read_sessions()
            active_id = self._storage.get_item(self._active_chat_key)
        except (StorageError, ValidationError, ValueError, TypeError) as exc:
            logger.error(
                "Failed to load chats from storage: %s",
                exc,
                extra={"chats_key": self._chats_key},
            )
            self._sessions = []
            self._active_id = None
            return

        self._sessions = sessions
        self._active_id = None
        if active_id and self.get(active_id) is not None:
            self._active_id = active_id
        logger.debug(
            "Loaded %d sessions (active=%s)", len(self._sessions), self._active_id
        )

    def _read_sessions(self) -> list[Session]:
        raw = self._storage.get_item(self._chats_key)
        if not raw:
            return []
        payload: Any = json.loads(raw)
        if not isinstance(payload, list):
            raise TypeError(f"Expected a list of sessions, got {type(payload).__name__}")

        sessions: list[Session] = []
        seen: set[str] = set()
        for item in payload:
            session = Session.model_validate(item)
            if session.id in seen:
                logger.warning("Dropping duplicate session %s from storage", session.id)
                continue
            seen.add(session.id)
            sessions.append(session)
        return sessions

    def save(self) -> None:
        """Write the session list and active pointer to storage."""
        try:
            self._storage.set_item(
                self._chats_key,
                json.dumps([session.to_storage() for session in self._sessions]),
            )
            if self._active_id is not None:
                self._storage.set_item(self._active_chat_key, self._active_id)
            else:
                self._storage.remove_item(self._active_chat_key)
        except StorageError as exc:
            logger.error(
                "Failed to save chats to storage: %s",
                exc,
                extra={"error": exc.to_dict()},
            )

    def create_session(self) -> Session:
        session = Session()
        self._sessions.insert(0, session)
        self._active_id = session.id
        self.save()
        logger.debug("Created session %s", session.id)
        return session

    def append_message(self, role: Role, content: str) -> Message:
        """
        Append a message to the active session, creating one if needed.

        The first user message of a session also fixes its title.
        """
        message = Message(role=role, content=content)
        session = self.active
        if session is None:
            session = self.create_session()

        is_first_user_message = role == "user" and session.user_message_count == 0
        session.messages.append(message)
        session.updated_at = utc_now()
        if is_first_user_message:
            session.title = derive_title(content, self._max_title_length)

        self.save()
        return message

    def delete_session(self, session_id: str) -> None:
        """Remove a session; unknown ids are ignored."""
        index = next(
            (i for i, session in enumerate(self._sessions) if session.id == session_id),
            None,
        )
        if index is None:
            return

        del self._sessions[index]
        if self._active_id == session_id:
            if index < len(self._sessions):
                self._active_id = self._sessions[index].id
            elif self._sessions:
                self._active_id = self._sessions[0].id
            else:
                self._active_id = None
        self.save()
        logger.debug("Deleted session %s (active=%s)", session_id, self._active_id)

    def set_active(self, session_id: str | None) -> Session | None:
        """Point at a session by id; no match clears the pointer."""
        session = self.get(session_id) if session_id else None
        self._active_id = session.id if session else None
        self.save()
        return session
