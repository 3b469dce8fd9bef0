"""Chat sessions and the orchestration of user turns.

Responsibilities:
    - Session list, active-session pointer, title derivation
    - Optimistic user message, then reply or error message
    - Remote and offline demo reply backends
"""

from docassist.chat.backends import ChatBackend, DemoChatBackend, RemoteChatBackend
from docassist.chat.orchestrator import ChatOrchestrator, ChatTurn
from docassist.chat.sessions import ChatSession, Message, PendingExchange, SessionStore

__all__ = [
    "ChatBackend",
    "ChatOrchestrator",
    "ChatSession",
    "ChatTurn",
    "DemoChatBackend",
    "Message",
    "PendingExchange",
    "RemoteChatBackend",
    "SessionStore",
]
