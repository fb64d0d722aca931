"""Conversation persistence helpers for local chat history."""

from .store import ConversationStore

__all__ = ["ConversationStore"]
