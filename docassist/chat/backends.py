"""Chat backends: where a user message goes to get a reply.

``RemoteChatBackend`` talks to the API's chat endpoint. ``DemoChatBackend``
answers offline with canned responses, for demos without a running server.
Both satisfy the same contract, so the orchestrator never branches on mode.
"""

import asyncio
import logging
import random
import uuid
from typing import Protocol

from docassist.client.gateway import RequestGateway
from docassist.client.scheduling import Sleep
from docassist.models.schemas import ChatReply, ChatRequest

logger = logging.getLogger(__name__)

CHAT_ENDPOINT = "/chat"


class ChatBackend(Protocol):
    """Produces a reply for one user message."""

    async def reply(self, message: str, session_id: str | None) -> ChatReply: ...


class RemoteChatBackend:
    """Sends chat messages to the remote API.

    Args:
        gateway: Gateway used for the chat call.
        timeout: Time budget per exchange in seconds.
    """

    def __init__(self, gateway: RequestGateway, timeout: float = 30.0) -> None:
        self._gateway = gateway
        self._timeout = timeout

    async def reply(self, message: str, session_id: str | None) -> ChatReply:
        """Issue one chat call.

        The session_id field is omitted entirely when no server id exists yet.

        Raises:
            GatewayError: If the call fails.
            ValueError: If the response body is malformed.
        """
        request = ChatRequest(message=message, session_id=session_id)
        data = await self._gateway.call(
            CHAT_ENDPOINT, "POST", json=request.to_body(), timeout=self._timeout
        )
        return ChatReply.model_validate(data)


DEMO_RESPONSES: dict[str, str] = {
    "summary": (
        "The uploaded documents cover several related topics. Ask about a "
        "specific section and I will point you to the relevant passages."
    ),
    "contract": (
        "Contracts in the uploaded documents share a common structure: the "
        "parties, the obligations of each party, payment terms, and the "
        "conditions for termination."
    ),
    "termination": (
        "Termination usually requires written notice. The notice period "
        "depends on the agreement type, and compensation may be owed in "
        "some circumstances."
    ),
    "deadline": (
        "The documents mention several deadlines. The most important ones "
        "concern filing periods and notice requirements."
    ),
    "dispute": (
        "Disputes are typically resolved in stages: internal procedures "
        "first, then mediation, and court proceedings only if needed."
    ),
}


class DemoChatBackend:
    """Answers with canned responses selected by keyword.

    Args:
        sleep: Sleep function used to simulate latency, injectable for tests.
        delay: Range of simulated latency in seconds.
        rng: Random source for latency and keyword-less replies.
    """

    def __init__(
        self,
        sleep: Sleep = asyncio.sleep,
        delay: tuple[float, float] = (1.0, 3.0),
        rng: random.Random | None = None,
    ) -> None:
        self._sleep = sleep
        self._delay = delay
        self._rng = rng or random.Random()

    async def reply(self, message: str, session_id: str | None) -> ChatReply:
        await self._sleep(self._rng.uniform(*self._delay))

        lowered = message.lower()
        for keyword, response in DEMO_RESPONSES.items():
            if keyword in lowered:
                break
        else:
            response = self._rng.choice(list(DEMO_RESPONSES.values()))

        session_id = session_id or f"demo-{uuid.uuid4().hex[:8]}"
        logger.debug(f"Demo reply for session {session_id}")
        return ChatReply(response=response, session_id=session_id)
