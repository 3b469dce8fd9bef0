"""Upload submission and document management against the remote API.

An upload either completes synchronously, in which case the result is
applied to the batch directly, or returns a job id, in which case an
``UploadJobTracker`` takes over and feeds its snapshots into the batch.
"""

import asyncio
import logging
from collections.abc import Callable

from pydantic import BaseModel

from docassist.client.errors import GatewayError
from docassist.client.gateway import RequestGateway
from docassist.client.scheduling import Sleep
from docassist.models.schemas import JobStatus, UploadResult
from docassist.uploads.files import FileStatus, UploadBatch
from docassist.uploads.tracker import UploadJobTracker

logger = logging.getLogger(__name__)

UPLOAD_ENDPOINT = "/upload"
DOCUMENTS_ENDPOINT = "/documents"


class UploadOutcome(BaseModel):
    """Result of submitting an upload batch.

    Attributes:
        result: Server response when the submission succeeded.
        error: Failure detail when it did not.
        tracked: True when a job tracker was started for the result.
    """

    result: UploadResult | None = None
    error: str | None = None
    tracked: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class UploadService:
    """Submits uploads and tracks their ingestion jobs.

    Only one job is tracked at a time: tracking a new job cancels the
    previous tracker.

    Args:
        gateway: Gateway for upload, status and document calls.
        timeout: Time budget for an upload submission in seconds.
        poll_interval: Seconds between job status polls.
        sleep: Sleep function, injectable for tests.
    """

    def __init__(
        self,
        gateway: RequestGateway,
        *,
        timeout: float = 120.0,
        poll_interval: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._gateway = gateway
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._sleep = sleep
        self._tracker: UploadJobTracker | None = None

    @property
    def tracker(self) -> UploadJobTracker | None:
        return self._tracker

    async def submit(
        self,
        batch: UploadBatch,
        *,
        on_update: Callable[[UploadBatch], None] | None = None,
        on_complete: Callable[[UploadBatch, JobStatus], None] | None = None,
    ) -> UploadOutcome:
        """Upload every file of ``batch`` in one multipart request.

        Args:
            batch: Files to upload; updated in place as progress arrives.
            on_update: Called whenever the batch changes.
            on_complete: Called once when a tracked job finishes.

        Returns:
            The submission outcome. Failures are reported, not raised.
        """
        if not batch.files:
            return UploadOutcome(error="No PDF files to upload")

        batch.mark_all(FileStatus.UPLOADING)
        _notify(on_update, batch)

        files = [
            ("files", (f.name, f.content, "application/pdf"))
            for f in batch.files
            if f.status is FileStatus.UPLOADING
        ]
        try:
            data = await self._gateway.call(
                UPLOAD_ENDPOINT, "POST", files=files, timeout=self._timeout
            )
            result = UploadResult.model_validate(data or {})
        except (GatewayError, ValueError) as e:
            logger.error(f"Upload failed: {e}")
            batch.mark_all(FileStatus.ERROR, error=str(e))
            _notify(on_update, batch)
            return UploadOutcome(error=str(e))

        if result.job_id is None:
            batch.apply_result(result)
            _notify(on_update, batch)
            logger.info(f"Upload processed: {', '.join(result.files_processed)}")
            return UploadOutcome(result=result)

        batch.job_id = result.job_id
        batch.mark_all(FileStatus.PROCESSING)
        _notify(on_update, batch)

        def handle_update(snapshot: JobStatus) -> None:
            batch.apply_job(snapshot)
            _notify(on_update, batch)

        def handle_complete(snapshot: JobStatus) -> None:
            if on_complete is not None:
                on_complete(batch, snapshot)

        self.track(result.job_id, on_update=handle_update, on_complete=handle_complete)
        return UploadOutcome(result=result, tracked=True)

    def track(
        self,
        job_id: str,
        *,
        on_update: Callable[[JobStatus], None] | None = None,
        on_complete: Callable[[JobStatus], None] | None = None,
    ) -> UploadJobTracker:
        """Start tracking ``job_id``, cancelling any previously tracked job."""
        self.cancel()
        self._tracker = UploadJobTracker(
            self._gateway,
            job_id,
            interval=self._poll_interval,
            on_update=on_update,
            on_complete=on_complete,
            sleep=self._sleep,
        )
        self._tracker.start()
        return self._tracker

    def cancel(self) -> None:
        """Stop tracking the current job, if any."""
        if self._tracker is not None:
            self._tracker.cancel()
            self._tracker = None

    async def clear_documents(self) -> None:
        """Delete every document from the remote collection.

        Raises:
            GatewayError: If the server did not confirm the deletion.
        """
        await self._gateway.call(DOCUMENTS_ENDPOINT, "DELETE", timeout=self._timeout)
        logger.info("Cleared all documents")


def _notify(callback: Callable[[UploadBatch], None] | None, batch: UploadBatch) -> None:
    if callback is not None:
        callback(batch)
