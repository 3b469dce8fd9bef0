"""Application context wiring the client components together.

The hosting application creates one ``AppContext`` on startup and shuts it
down on exit. Nothing here is global: every component receives its
collaborators through its constructor.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from types import TracebackType

import httpx

from docassist.chat.backends import ChatBackend, DemoChatBackend, RemoteChatBackend
from docassist.chat.orchestrator import ChatOrchestrator, ChatTurn
from docassist.chat.sessions import SessionStore
from docassist.client.config import ClientConfig, get_client_config
from docassist.client.errors import GatewayError
from docassist.client.gateway import RequestGateway
from docassist.client.health import Connectivity, ConnectivityState, HealthMonitor
from docassist.client.scheduling import Sleep
from docassist.models.schemas import JobState, JobStatus
from docassist.uploads.files import UploadBatch, select_files
from docassist.uploads.service import UploadOutcome, UploadService

logger = logging.getLogger(__name__)


class AppContext:
    """Owns the gateway, connectivity monitor, sessions, chat and uploads.

    Args:
        config: Client configuration. Loads from environment if not provided.
        client: Optional HTTP client, e.g. with a test transport.
        sleep: Sleep function for retry and poll intervals, injectable for tests.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config or get_client_config()
        self.gateway = RequestGateway(self.config.api_base_url, client=client)
        self.sessions = SessionStore()
        self.health: HealthMonitor | None = None
        self.batch: UploadBatch | None = None
        self._listeners: list[Callable[[], None]] = []
        self._uploading = False
        self._background: set[asyncio.Task[None]] = set()

        backend: ChatBackend
        if self.config.demo_mode:
            backend = DemoChatBackend(sleep=sleep)
        else:
            backend = RemoteChatBackend(self.gateway, timeout=self.config.chat_timeout)
            self.health = HealthMonitor(
                self.gateway,
                timeout=self.config.health_timeout,
                retry_interval=self.config.health_retry_interval,
                on_change=lambda _state: self._changed(),
                sleep=sleep,
            )

        self.chat = ChatOrchestrator(self.sessions, backend, health=self.health)
        self.uploads = UploadService(
            self.gateway,
            timeout=self.config.upload_timeout,
            poll_interval=self.config.poll_interval,
            sleep=sleep,
        )

    @property
    def connectivity(self) -> ConnectivityState:
        if self.health is None:
            return ConnectivityState(status=Connectivity.CONNECTED)
        return self.health.state

    @property
    def uploading(self) -> bool:
        return self._uploading

    def add_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback fired whenever visible state changes."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def start(self) -> None:
        """Run the initial health probe."""
        mode = "demo" if self.config.demo_mode else self.config.api_base_url
        logger.info(f"Starting document assistant client ({mode})")
        if self.health is not None:
            await self.health.start()

    async def shutdown(self) -> None:
        """Cancel polling and retries, then close the HTTP client."""
        self.uploads.cancel()
        background = list(self._background)
        for task in background:
            task.cancel()
        await asyncio.gather(*background, return_exceptions=True)
        if self.health is not None:
            await self.health.stop()
        await self.gateway.aclose()
        logger.info("Document assistant client stopped")

    async def __aenter__(self) -> "AppContext":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.shutdown()

    # ------------------------------------------------------------------
    # User intents
    # ------------------------------------------------------------------

    async def send_message(self, text: str) -> ChatTurn:
        try:
            return await self.chat.send_message(text)
        finally:
            self._changed()

    async def upload(self, candidates: Iterable[tuple[str, bytes]]) -> UploadOutcome:
        """Validate, submit and track an upload, posting notices to the chat.

        Args:
            candidates: (filename, content) pairs picked by the user.

        Returns:
            The submission outcome.
        """
        if self.config.demo_mode:
            self.chat.post_notice("Uploads are not available in demo mode.")
            self._changed()
            return UploadOutcome(error="Demo mode")

        if self._uploading:
            self.chat.post_notice(
                "⏳ An upload is already in progress. Please wait for it to finish."
            )
            self._changed()
            return UploadOutcome(error="An upload is already in progress")

        self._uploading = True
        try:
            return await self._submit(candidates)
        finally:
            self._uploading = False

    async def _submit(self, candidates: Iterable[tuple[str, bytes]]) -> UploadOutcome:
        batch = select_files(candidates)
        self.batch = batch

        if not batch.files:
            self.chat.post_notice(
                "❌ Please upload only PDF files. Other file types are not supported."
            )
            self._changed()
            return UploadOutcome(error="No PDF files to upload")

        if batch.skipped:
            self.chat.post_notice(
                f"⚠️ {len(batch.skipped)} file(s) were skipped. "
                f"Only uploading {len(batch.files)} PDF file(s)."
            )

        outcome = await self.uploads.submit(
            batch,
            on_update=lambda _batch: self._changed(),
            on_complete=self._job_finished,
        )

        if not outcome.ok:
            self.chat.post_notice(
                f"❌ Upload failed: {outcome.error}. Please make sure the API server "
                "is running and try again."
            )
        elif not outcome.tracked and outcome.result is not None:
            result = outcome.result
            self.chat.post_notice(
                f"✅ {result.message}\n"
                f"Files processed: {', '.join(result.files_processed)}\n"
                f"Total documents in system: {result.total_documents}\n\n"
                "You can now ask questions about these documents!"
            )
            await self.refresh_health()
        else:
            self.chat.post_notice(
                f"⏳ Processing {len(batch.files)} file(s). Progress is shown while "
                "the documents are ingested."
            )

        self._changed()
        return outcome

    async def clear_documents(self) -> bool:
        """Remove every document from the remote collection.

        Returns:
            True if the server confirmed the deletion.
        """
        if self.config.demo_mode:
            self.chat.post_notice("Clearing documents is not available in demo mode.")
            self._changed()
            return False

        try:
            await self.uploads.clear_documents()
        except GatewayError as e:
            self.chat.post_notice(f"❌ Failed to clear documents: {e}")
            self._changed()
            return False

        await self.refresh_health()
        self.chat.post_notice(
            "🗑️ All documents have been cleared from the system. "
            "You can upload new documents to start fresh."
        )
        self._changed()
        return True

    async def refresh_health(self) -> None:
        if self.health is not None:
            await self.health.probe()

    def schedule_health_refresh(self) -> None:
        """Refresh health in the background; shutdown cancels and awaits it."""
        if self.health is None:
            return
        task = asyncio.get_running_loop().create_task(self.refresh_health())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _job_finished(self, batch: UploadBatch, snapshot: JobStatus) -> None:
        if snapshot.status is JobState.COMPLETED:
            names = ", ".join(f.name for f in batch.files)
            self.chat.post_notice(
                f"✅ Processing complete ({snapshot.overall.chunks_done} chunks)\n"
                f"Files processed: {names}\n\n"
                "You can now ask questions about these documents!"
            )
        else:
            self.chat.post_notice(
                f"❌ Processing failed: {snapshot.error or 'unknown error'}"
            )
        self._changed()
        self.schedule_health_refresh()

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener()
