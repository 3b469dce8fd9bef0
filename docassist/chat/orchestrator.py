"""Chat orchestration: one user turn from input to terminal message.

Every accepted turn ends with an assistant message in the session, either
the reply or a message describing what went wrong. Rejected turns leave no
trace and issue no request.
"""

import logging

from pydantic import BaseModel

from docassist.chat.backends import ChatBackend
from docassist.chat.sessions import Message, SessionStore
from docassist.client.errors import (
    BusyError,
    DisconnectedError,
    EmptyMessageError,
    GatewayError,
)
from docassist.client.health import HealthMonitor

logger = logging.getLogger(__name__)


def error_reply_text(detail: str) -> str:
    return (
        f"Sorry, I encountered an error: {detail}. Please make sure the API "
        "server is running and has documents uploaded."
    )


class ChatTurn(BaseModel):
    """Outcome of one accepted chat turn.

    Attributes:
        user_message: The message the user sent.
        reply: The assistant's reply, or the synthetic error message.
        session_id: The session's id after the turn.
        error: Failure detail when the call failed.
        error_type: Name of the failure class (RequestTimeout, NetworkError, HttpError).
    """

    user_message: Message
    reply: Message
    session_id: str
    error: str | None = None
    error_type: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ChatOrchestrator:
    """Sends user messages and records the results in the session store.

    At most one call is outstanding per instance; a second submission while
    one is in flight is rejected, not queued.

    Args:
        store: Session store receiving the messages.
        backend: Where replies come from.
        health: Connectivity source; submissions are rejected while disconnected.
    """

    def __init__(
        self,
        store: SessionStore,
        backend: ChatBackend,
        health: HealthMonitor | None = None,
    ) -> None:
        self._store = store
        self._backend = backend
        self._health = health
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def store(self) -> SessionStore:
        return self._store

    async def send_message(self, text: str) -> ChatTurn:
        """Send one message from the user in the active session.

        Args:
            text: The user's input.

        Returns:
            The completed turn. Network failures are reported on the turn,
            not raised.

        Raises:
            EmptyMessageError: If ``text`` is empty or whitespace.
            BusyError: If a previous message is still in flight.
            DisconnectedError: If the API is known to be unreachable.
        """
        if not text.strip():
            raise EmptyMessageError()
        if self._busy:
            raise BusyError()
        if self._health is not None and self._health.disconnected:
            raise DisconnectedError(self._health.state.reason)

        self._busy = True
        try:
            return await self._exchange(text)
        finally:
            self._busy = False

    def post_notice(self, text: str) -> Message:
        """Append an assistant notice (upload results, errors) to the active session."""
        message = Message(role="assistant", content=text)
        self._store.append_notice(message)
        return message

    async def _exchange(self, text: str) -> ChatTurn:
        session = self._store.active
        session_id = session.id if session.server_assigned else None

        user_message = Message(role="user", content=text)
        pending = self._store.begin_exchange(user_message)

        try:
            result = await self._backend.reply(text, session_id)
        except (GatewayError, ValueError) as e:
            logger.error(f"Chat request failed: {e}")
            reply = Message(role="assistant", content=error_reply_text(str(e)), error=True)
            updated = self._store.fail_exchange(pending, reply)
            return ChatTurn(
                user_message=user_message,
                reply=reply,
                session_id=updated.id if updated else session.id,
                error=str(e),
                error_type=type(e).__name__,
            )

        reply = Message(role="assistant", content=result.response)
        updated = self._store.complete_exchange(pending, reply, result.session_id)
        logger.info(f"Chat reply received for session {result.session_id or session.id}")
        return ChatTurn(
            user_message=user_message,
            reply=reply,
            session_id=updated.id if updated else (result.session_id or session.id),
        )
