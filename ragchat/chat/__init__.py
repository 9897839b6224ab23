"""Client-side chat: API client and session orchestration.

Responsibilities:
    - Thread creation and streaming chat requests over httpx
    - Applying classified stream events to the conversation
    - Stop, retry, edit-and-resubmit, and new-session operations
"""

from ragchat.chat.client import ChatApiClient, ChatRequestError
from ragchat.chat.session import ChatBackend, ChatSession, ConnectionStatus

__all__ = ["ChatApiClient", "ChatBackend", "ChatRequestError", "ChatSession", "ConnectionStatus"]
