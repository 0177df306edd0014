"""Chat client for the assistant endpoint."""

from __future__ import annotations

from .chat import ChatClient, ChatReply

__all__ = ["ChatClient", "ChatReply"]
