"""Polling of a server-side ingestion job.

Once an upload returns a job id, the tracker polls the job status endpoint
on a fixed interval. Each successful poll replaces the snapshot wholesale.
Polling stops for good when the job itself reports completed or failed;
transient poll errors are logged and the next poll still fires.
"""

import asyncio
import logging
from collections.abc import Callable

from docassist.client.errors import GatewayError
from docassist.client.gateway import RequestGateway
from docassist.client.scheduling import ScheduledTask, Sleep
from docassist.models.schemas import JobStatus

logger = logging.getLogger(__name__)

STATUS_ENDPOINT = "/upload/status/{job_id}"

SnapshotCallback = Callable[[JobStatus], None]


class UploadJobTracker:
    """Tracks one ingestion job until it completes or fails.

    Args:
        gateway: Gateway used for status polls.
        job_id: Identifier returned by the upload submission.
        interval: Seconds between polls.
        on_update: Called with every new snapshot.
        on_complete: Called exactly once with the terminal snapshot.
        sleep: Sleep function, injectable for tests.
    """

    def __init__(
        self,
        gateway: RequestGateway,
        job_id: str,
        *,
        interval: float = 1.0,
        on_update: SnapshotCallback | None = None,
        on_complete: SnapshotCallback | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._gateway = gateway
        self._job_id = job_id
        self._interval = interval
        self._on_update = on_update
        self._on_complete = on_complete
        self._sleep = sleep
        self._snapshot: JobStatus | None = None
        self._last_error: str | None = None
        self._terminated = False
        self._task: ScheduledTask | None = None
        self.poll_count = 0

    @property
    def job_id(self) -> str:
        return self._job_id

    @property
    def snapshot(self) -> JobStatus | None:
        return self._snapshot

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def terminated(self) -> bool:
        return self._terminated

    def start(self) -> ScheduledTask:
        """Begin polling, first poll immediately.

        Returns:
            Handle whose cancellation stops all further polls.
        """
        if self._task is None:
            self._task = ScheduledTask(
                self._tick,
                self._interval,
                sleep=self._sleep,
                immediate=True,
                name=f"upload-poll-{self._job_id}",
            ).start()
            logger.info(f"Tracking upload job {self._job_id}")
        return self._task

    def cancel(self) -> None:
        """Stop polling; no poll fires after this returns."""
        self._terminated = True
        if self._task is not None:
            self._task.cancel()

    async def wait(self) -> None:
        """Wait until polling has stopped."""
        if self._task is not None:
            await self._task.wait()

    async def poll_once(self) -> JobStatus | None:
        """Fetch the job status once, unless tracking has ended.

        Returns:
            The current snapshot, which is unchanged if the poll failed.
        """
        if self._terminated:
            return self._snapshot

        self.poll_count += 1
        endpoint = STATUS_ENDPOINT.format(job_id=self._job_id)
        try:
            data = await self._gateway.call(endpoint, "GET")
            snapshot = JobStatus.model_validate(data)
        except (GatewayError, ValueError) as e:
            self._last_error = str(e)
            logger.warning(f"Status poll for job {self._job_id} failed: {e}")
            return self._snapshot

        # A cancel during the request wins over a late response
        if self._terminated:
            return self._snapshot

        self._snapshot = snapshot
        self._last_error = None
        logger.debug(
            f"Job {self._job_id}: {snapshot.status.value} {snapshot.overall.percent:.0f}%"
        )
        if self._on_update is not None:
            self._on_update(snapshot)

        if snapshot.status.terminal:
            self._terminated = True
            if self._task is not None:
                self._task.cancel()
            logger.info(f"Upload job {self._job_id} {snapshot.status.value}")
            if self._on_complete is not None:
                self._on_complete(snapshot)

        return snapshot

    async def _tick(self) -> bool:
        await self.poll_once()
        return not self._terminated
