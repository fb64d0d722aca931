"""RelayChat - terminal chat client for AI agent webhooks."""

__version__ = "0.1.0"
