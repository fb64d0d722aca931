"""
Error Types

Exceptions raised by the storage and transport layers. None of these are
fatal to a chat session: the conversation store recovers from storage
errors and the chat service turns transport errors into an assistant reply.
"""

from typing import Any


class RelayChatError(Exception):
    """
    Base exception for RelayChat errors.

    Attributes:
        message: Error description
        recoverable: Whether the caller can retry or continue
        context: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        recoverable: bool = True,
        context: dict[str, Any] | None = None,
    ):
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "message": self.message,
            "recoverable": self.recoverable,
            "context": self.context,
            "type": self.__class__.__name__,
        }


class StorageError(RelayChatError):
    """Error reading or writing the local key-value store."""

    pass


class TransportError(RelayChatError):
    """Error sending a message to the remote agent webhook."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, recoverable=True, context=context)
