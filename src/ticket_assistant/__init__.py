"""Ticket assistant package."""

from .config import ConversationConfig, RetrievalConfig, Settings

__all__ = ["ConversationConfig", "RetrievalConfig", "Settings"]
