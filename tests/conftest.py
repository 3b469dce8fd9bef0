"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - sleeper: sleep replacement that only wakes when the test says so
    - config: client configuration pointing at the in-process test API
    - pdf_bytes: minimal bytes accepted as a PDF

Helpers:
    - ScriptedGateway: stands in for RequestGateway with scripted results
    - settle: lets pending tasks run until they block again
"""

import asyncio
from dataclasses import dataclass
from typing import Any

import pytest

from docassist.client.config import ClientConfig

TEST_BASE_URL = "http://test"


async def settle(rounds: int = 20) -> None:
    """Yield to the event loop until scheduled tasks have run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class ManualSleeper:
    """Sleep replacement recording each requested delay.

    Sleepers stay blocked until ``advance()`` releases them, so interval
    loops can be stepped one tick at a time without real waiting.
    """

    def __init__(self) -> None:
        self.delays: list[float] = []
        self._waiters: list[asyncio.Future[None]] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        await future

    @property
    def pending(self) -> int:
        return sum(1 for f in self._waiters if not f.done())

    async def advance(self) -> None:
        """Wake every blocked sleeper and let the woken tasks run."""
        await settle()
        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if not future.done():
                future.set_result(None)
        await settle()


async def no_sleep(_delay: float) -> None:
    return None


@dataclass
class Call:
    endpoint: str
    method: str
    json: dict[str, Any] | None
    files: list[Any] | None
    timeout: float | None


class ScriptedGateway:
    """Gateway double returning scripted results in order.

    Each script item is returned as the call's result, raised if it is an
    exception, or awaited if it is a future.
    """

    def __init__(self, *script: Any) -> None:
        self.script = list(script)
        self.calls: list[Call] = []

    def push(self, *items: Any) -> None:
        self.script.extend(items)

    async def call(
        self,
        endpoint: str,
        method: str = "GET",
        *,
        json: dict[str, Any] | None = None,
        files: list[Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        self.calls.append(Call(endpoint, method, json, files, timeout))
        if not self.script:
            raise AssertionError(f"Unexpected call: {method} {endpoint}")
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, asyncio.Future):
            return await item
        return item

    async def aclose(self) -> None:
        return None


@pytest.fixture
def sleeper() -> ManualSleeper:
    """Return a sleeper that blocks until advanced.

    Returns:
        Fresh ManualSleeper for the test.
    """
    return ManualSleeper()


@pytest.fixture
def config() -> ClientConfig:
    """Return configuration for the in-process test API.

    Returns:
        ClientConfig with default budgets and demo mode off.
    """
    return ClientConfig(api_base_url=TEST_BASE_URL, demo_mode=False)


@pytest.fixture
def pdf_bytes() -> bytes:
    """Return minimal content with a PDF header.

    Returns:
        Bytes that pass client-side PDF validation.
    """
    return b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\n%%EOF"
