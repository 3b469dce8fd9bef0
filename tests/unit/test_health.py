"""Unit tests for HealthMonitor."""

import pytest_check as check

from docassist.client.errors import HttpError, NetworkError, RequestTimeout
from docassist.client.health import Connectivity, ConnectivityState, HealthMonitor
from tests.conftest import ManualSleeper, ScriptedGateway, settle

HEALTHY = {"status": "healthy", "documents_count": 3, "collection_exists": True}


class TestHealthProbe:
    """Tests for single probes."""

    def test_initial_state_unknown(self, sleeper: ManualSleeper) -> None:
        """Before any probe the status is unknown."""
        monitor = HealthMonitor(ScriptedGateway(), sleep=sleeper)

        check.equal(monitor.state.status, Connectivity.UNKNOWN)
        check.is_false(monitor.connected)
        check.is_false(monitor.disconnected)

    async def test_success_connects_without_retry(self, sleeper: ManualSleeper) -> None:
        """A healthy response sets Connected and arms no timer."""
        gateway = ScriptedGateway(HEALTHY)
        monitor = HealthMonitor(gateway, sleep=sleeper)

        state = await monitor.start()

        check.equal(state.status, Connectivity.CONNECTED)
        check.equal(state.health.document_total, 3)
        check.equal(gateway.calls[0].endpoint, "/health")
        check.equal(gateway.calls[0].timeout, 5.0)
        check.is_false(monitor.retrying)
        check.equal(sleeper.delays, [])

    async def test_failure_disconnects_and_arms_retry(self, sleeper: ManualSleeper) -> None:
        """A failed probe records the reason and schedules a retry."""
        monitor = HealthMonitor(
            ScriptedGateway(RequestTimeout("/health", 5.0)), sleep=sleeper
        )

        state = await monitor.start()
        await settle()

        check.equal(state.status, Connectivity.DISCONNECTED)
        check.equal(state.reason, "Request to /health timed out after 5s")
        check.is_true(monitor.retrying)
        await monitor.stop()

    async def test_malformed_payload_is_a_failure(self, sleeper: ManualSleeper) -> None:
        """A health body that is not an object counts as unreachable."""
        monitor = HealthMonitor(ScriptedGateway(["not", "a", "dict"]), sleep=sleeper)

        state = await monitor.probe()

        check.equal(state.status, Connectivity.DISCONNECTED)
        await monitor.stop()


class TestHealthRetry:
    """Tests for the retry loop while disconnected."""

    async def test_retries_until_success(self, sleeper: ManualSleeper) -> None:
        """Retries fire every interval and stop after the first success."""
        gateway = ScriptedGateway(
            NetworkError("Connection refused"),
            NetworkError("Connection refused"),
            HttpError(503, "Service unavailable"),
            HEALTHY,
        )
        monitor = HealthMonitor(gateway, sleep=sleeper)

        await monitor.start()
        for _ in range(3):
            await sleeper.advance()

        check.is_true(monitor.connected)
        check.is_false(monitor.retrying)
        check.equal(len(gateway.calls), 4)
        check.equal(sleeper.delays, [10.0, 10.0, 10.0])
        check.equal(sleeper.pending, 0)

    async def test_custom_retry_interval(self, sleeper: ManualSleeper) -> None:
        """The retry interval is configurable."""
        monitor = HealthMonitor(
            ScriptedGateway(NetworkError("down")), retry_interval=2.5, sleep=sleeper
        )

        await monitor.start()
        await settle()

        check.equal(sleeper.delays, [2.5])
        await monitor.stop()

    async def test_single_retry_loop(self, sleeper: ManualSleeper) -> None:
        """Repeated failures never start a second retry loop."""
        gateway = ScriptedGateway(
            NetworkError("down"), NetworkError("down"), NetworkError("down")
        )
        monitor = HealthMonitor(gateway, sleep=sleeper)

        await monitor.start()
        await monitor.probe()
        await sleeper.advance()

        check.equal(len(gateway.calls), 3)
        check.equal(sleeper.pending, 1)
        await monitor.stop()

    async def test_external_success_cancels_retry(self, sleeper: ManualSleeper) -> None:
        """A successful probe from elsewhere stops the retry loop."""
        gateway = ScriptedGateway(NetworkError("down"), HEALTHY)
        monitor = HealthMonitor(gateway, sleep=sleeper)

        await monitor.start()
        await monitor.probe()
        await sleeper.advance()

        check.is_true(monitor.connected)
        check.is_false(monitor.retrying)
        check.equal(len(gateway.calls), 2)

    async def test_stop_cancels_retry(self, sleeper: ManualSleeper) -> None:
        """After stop no further probe is issued."""
        gateway = ScriptedGateway(NetworkError("down"))
        monitor = HealthMonitor(gateway, sleep=sleeper)

        await monitor.start()
        await monitor.stop()
        await sleeper.advance()

        check.is_false(monitor.retrying)
        check.equal(len(gateway.calls), 1)


class TestHealthNotifications:
    """Tests for change notifications."""

    async def test_on_change_fires_only_on_change(self, sleeper: ManualSleeper) -> None:
        """Identical consecutive states do not notify again."""
        changes: list[ConnectivityState] = []
        gateway = ScriptedGateway(
            NetworkError("down"), NetworkError("down"), HEALTHY
        )
        monitor = HealthMonitor(gateway, on_change=changes.append, sleep=sleeper)

        await monitor.start()
        await sleeper.advance()
        await sleeper.advance()

        check.equal(
            [c.status for c in changes],
            [Connectivity.DISCONNECTED, Connectivity.CONNECTED],
        )

    async def test_new_reason_notifies(self, sleeper: ManualSleeper) -> None:
        """A different failure reason is a change."""
        changes: list[ConnectivityState] = []
        gateway = ScriptedGateway(NetworkError("down"), RequestTimeout("/health", 5.0))
        monitor = HealthMonitor(gateway, on_change=changes.append, sleep=sleeper)

        await monitor.start()
        await sleeper.advance()

        check.equal(len(changes), 2)
        check.equal(changes[-1].reason, "Request to /health timed out after 5s")
        await monitor.stop()
