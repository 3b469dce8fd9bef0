"""Service availability monitoring.

Probes the health endpoint and keeps the client's belief about whether the
remote service is reachable. While disconnected, a retry probe fires on a
fixed interval until one succeeds; while connected, no timer runs.
"""

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel, ConfigDict

from docassist.client.errors import GatewayError
from docassist.client.gateway import RequestGateway
from docassist.client.scheduling import ScheduledTask, Sleep
from docassist.models.schemas import HealthStatus

logger = logging.getLogger(__name__)

HEALTH_ENDPOINT = "/health"


class Connectivity(str, Enum):
    """Reachability of the remote service."""

    UNKNOWN = "unknown"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class ConnectivityState(BaseModel):
    """Current connectivity belief.

    Attributes:
        status: Unknown until the first probe completes.
        reason: Normalized error message while disconnected.
        health: Last health payload while connected.
    """

    model_config = ConfigDict(frozen=True)

    status: Connectivity = Connectivity.UNKNOWN
    reason: str | None = None
    health: HealthStatus | None = None


class HealthMonitor:
    """Tracks connectivity through periodic health probes.

    Probes never raise; every failure becomes a Disconnected state with the
    error message as reason.

    Args:
        gateway: Gateway used for probes.
        timeout: Time budget per probe in seconds.
        retry_interval: Seconds between probes while disconnected.
        on_change: Called with the new state whenever it changes.
        sleep: Sleep function, injectable for tests.
    """

    def __init__(
        self,
        gateway: RequestGateway,
        *,
        timeout: float = 5.0,
        retry_interval: float = 10.0,
        on_change: Callable[[ConnectivityState], None] | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._gateway = gateway
        self._timeout = timeout
        self._retry_interval = retry_interval
        self._on_change = on_change
        self._sleep = sleep
        self._state = ConnectivityState()
        self._retry: ScheduledTask | None = None

    @property
    def state(self) -> ConnectivityState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state.status is Connectivity.CONNECTED

    @property
    def disconnected(self) -> bool:
        return self._state.status is Connectivity.DISCONNECTED

    @property
    def retrying(self) -> bool:
        return self._retry is not None and self._retry.active

    async def start(self) -> ConnectivityState:
        """Issue the initial probe."""
        return await self.probe()

    async def probe(self) -> ConnectivityState:
        """Probe the health endpoint once and update the state.

        A success stops any pending retry; a failure arms one if none is armed.

        Returns:
            The resulting connectivity state.
        """
        try:
            data = await self._gateway.call(
                HEALTH_ENDPOINT, "GET", timeout=self._timeout
            )
            health = HealthStatus.model_validate(data or {"status": "ok"})
        except (GatewayError, ValueError) as e:
            self._set_state(
                ConnectivityState(status=Connectivity.DISCONNECTED, reason=str(e))
            )
            self._arm_retry()
            return self._state

        self._set_state(ConnectivityState(status=Connectivity.CONNECTED, health=health))
        self._disarm_retry()
        return self._state

    async def stop(self) -> None:
        """Cancel any pending retry."""
        if self._retry is not None:
            self._retry.cancel()
            await self._retry.wait()
            self._retry = None

    async def _retry_tick(self) -> bool:
        state = await self.probe()
        return state.status is not Connectivity.CONNECTED

    def _arm_retry(self) -> None:
        if self.retrying:
            return
        logger.info(f"API unreachable, retrying every {self._retry_interval:g}s")
        self._retry = ScheduledTask(
            self._retry_tick,
            self._retry_interval,
            sleep=self._sleep,
            name="health-retry",
        ).start()

    def _disarm_retry(self) -> None:
        if self._retry is None:
            return
        self._retry.cancel()
        self._retry = None

    def _set_state(self, state: ConnectivityState) -> None:
        previous = self._state
        self._state = state
        if state.status is not previous.status:
            if state.status is Connectivity.CONNECTED:
                logger.info("API connection established")
            else:
                logger.warning(f"API connection failed: {state.reason}")
        if state != previous and self._on_change is not None:
            self._on_change(state)
