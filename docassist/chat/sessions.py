"""In-memory chat session state.

Owns every chat session and the pointer to the active one. No I/O happens
here; the orchestrator drives all mutations serially.

Invariants:
    - The session list is never empty.
    - The active index always points at an existing session.
    - Messages within a session are chronological and append-only.
    - A session's title is derived once, when it reaches its second message.

Records handed out are frozen; every mutation replaces the stored record.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from docassist.client.errors import SessionIndexError

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"
TITLE_LENGTH = 30
TITLE_ELLIPSIS = "..."


class Message(BaseModel):
    """A single chat message.

    Attributes:
        role: The speaker, user or assistant.
        content: The message text.
        timestamp: When the message was created.
        error: True for assistant messages standing in for a failed reply.
    """

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)
    error: bool = False


class ChatSession(BaseModel):
    """One conversation thread.

    Attributes:
        id: Server-assigned session id once known, locally generated before.
        title: Display title.
        messages: Chronological message history.
        last_activity: Time of the latest exchange.
        server_assigned: Whether ``id`` came from the server.
        key: Local identity that never changes, even when ``id`` does.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = DEFAULT_TITLE
    messages: tuple[Message, ...] = ()
    last_activity: datetime
    server_assigned: bool = False
    key: str = Field(default_factory=lambda: uuid.uuid4().hex)


class PendingExchange(BaseModel):
    """A user message appended provisionally, awaiting its reply."""

    model_config = ConfigDict(frozen=True)

    session_key: str
    user_message: Message


def derive_title(content: str) -> str:
    """Build a session title from the first user message."""
    return content[:TITLE_LENGTH] + TITLE_ELLIPSIS


class SessionStore:
    """Owns chat sessions and the active-session pointer.

    Args:
        clock: Time source for new sessions and activity updates.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._sessions: list[ChatSession] = [self._new_session()]
        self._active = 0

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def sessions(self) -> tuple[ChatSession, ...]:
        return tuple(self._sessions)

    @property
    def active_index(self) -> int:
        return self._active

    @property
    def active(self) -> ChatSession:
        return self._sessions[self._active]

    @property
    def messages(self) -> tuple[Message, ...]:
        """Messages of the active session, as displayed."""
        return self.active.messages

    def __len__(self) -> int:
        return len(self._sessions)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def create_session(self) -> ChatSession:
        """Create an empty session at the front of the list and activate it."""
        session = self._new_session()
        self._sessions.insert(0, session)
        self._active = 0
        logger.debug(f"Created session {session.id}")
        return session

    def switch_active(self, index: int) -> tuple[Message, ...]:
        """Make the session at ``index`` active.

        Returns:
            The newly active session's messages for display.

        Raises:
            SessionIndexError: If ``index`` is out of range.
        """
        self._check_index(index)
        self._active = index
        return self._sessions[index].messages

    def delete_session(self, index: int) -> bool:
        """Remove the session at ``index``.

        The last remaining session is never removed. Deleting the active
        session activates index 0; deleting one before it keeps the active
        pointer on the same session.

        Returns:
            False if the session was kept because it is the last one.

        Raises:
            SessionIndexError: If ``index`` is out of range.
        """
        self._check_index(index)
        if len(self._sessions) <= 1:
            logger.debug("Refusing to delete the last remaining session")
            return False

        removed = self._sessions.pop(index)
        if index == self._active:
            self._active = 0
        elif index < self._active:
            self._active -= 1
        logger.debug(f"Deleted session {removed.id}, active index now {self._active}")
        return True

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def begin_exchange(self, user_message: Message) -> PendingExchange:
        """Append a user message provisionally to the active session.

        Returns:
            Handle used to confirm or fail the exchange later, even if the
            user switches sessions in between.
        """
        session = self.active
        self._append(session.key, (user_message,))
        return PendingExchange(session_key=session.key, user_message=user_message)

    def complete_exchange(
        self,
        pending: PendingExchange,
        assistant_message: Message,
        session_id: str | None = None,
    ) -> ChatSession | None:
        """Confirm a pending exchange with the assistant's reply.

        Adopts ``session_id`` as the server-assigned id when provided.

        Returns:
            The updated session, or None if it was deleted meanwhile.
        """
        return self._append(pending.session_key, (assistant_message,), session_id)

    def fail_exchange(
        self, pending: PendingExchange, error_message: Message
    ) -> ChatSession | None:
        """Close a pending exchange with a message describing the failure.

        The provisional user message stays in place.
        """
        return self._append(pending.session_key, (error_message,))

    def append_exchange(
        self,
        user_message: Message,
        assistant_message: Message,
        session_id: str | None = None,
    ) -> ChatSession:
        """Append a completed user/assistant exchange to the active session."""
        pending = self.begin_exchange(user_message)
        self.complete_exchange(pending, assistant_message, session_id)
        return self.active

    def append_notice(self, message: Message) -> ChatSession:
        """Append a standalone assistant message to the active session."""
        self._append(self.active.key, (message,))
        return self.active

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _new_session(self) -> ChatSession:
        return ChatSession(id=str(uuid.uuid4()), last_activity=self._clock())

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._sessions):
            raise SessionIndexError(index, len(self._sessions))

    def _position(self, key: str) -> int | None:
        for position, session in enumerate(self._sessions):
            if session.key == key:
                return position
        return None

    def _append(
        self,
        key: str,
        new_messages: tuple[Message, ...],
        session_id: str | None = None,
    ) -> ChatSession | None:
        position = self._position(key)
        if position is None:
            logger.info("Dropping messages for a session that no longer exists")
            return None

        session = self._sessions[position]
        messages = session.messages + new_messages
        update: dict[str, object] = {
            "messages": messages,
            "last_activity": max(session.last_activity, self._clock()),
        }

        # Title is derived exactly once, on the transition to two messages
        if len(session.messages) < 2 <= len(messages):
            first_user = next((m for m in messages if m.role == "user"), None)
            if first_user is not None:
                update["title"] = derive_title(first_user.content)

        if session_id and (session_id != session.id or not session.server_assigned):
            update["id"] = session_id
            update["server_assigned"] = True

        updated = session.model_copy(update=update)
        self._sessions[position] = updated
        return updated
