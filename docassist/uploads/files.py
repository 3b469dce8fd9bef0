"""Client-side records for files selected for upload.

Each selected file gets an ``UploadFile`` whose status only moves forward:

    pending -> uploading -> processing -> completed
    any non-terminal status -> error

Completed and errored records are terminal and never change again.
"""

import logging
import uuid
from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from docassist.client.errors import InvalidTransitionError, UploadValidationError
from docassist.models.schemas import JobState, JobStatus, UploadResult

logger = logging.getLogger(__name__)

# Constants
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
PDF_MAGIC_BYTES = b"%PDF"


class FileStatus(str, Enum):
    """Client-side status of one file in an upload."""

    PENDING = "pending"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def terminal(self) -> bool:
        return self in (FileStatus.COMPLETED, FileStatus.ERROR)


_ORDER = {
    FileStatus.PENDING: 0,
    FileStatus.UPLOADING: 1,
    FileStatus.PROCESSING: 2,
    FileStatus.COMPLETED: 3,
}

# Status strings reported per file by the job status endpoint
SERVER_FILE_STATUS: dict[str, FileStatus] = {
    "pending": FileStatus.PENDING,
    "queued": FileStatus.PENDING,
    "uploading": FileStatus.UPLOADING,
    "running": FileStatus.PROCESSING,
    "processing": FileStatus.PROCESSING,
    "completed": FileStatus.COMPLETED,
    "done": FileStatus.COMPLETED,
    "failed": FileStatus.ERROR,
    "error": FileStatus.ERROR,
}


class UploadFile(BaseModel):
    """One file selected for upload.

    Attributes:
        name: Filename; unique within a batch and the key in job snapshots.
        content: Raw file bytes.
        id: Local identifier.
        status: Current status.
        progress: Percent complete within the current status.
        error: Failure detail once errored.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    content: bytes = Field(repr=False)
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:9])
    status: FileStatus = FileStatus.PENDING
    progress: float = Field(default=0.0, ge=0.0, le=100.0)
    error: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)

    def can_advance(self, status: FileStatus) -> bool:
        if self.status.terminal:
            return False
        if status is FileStatus.ERROR:
            return True
        return _ORDER[status] >= _ORDER[self.status]

    def advance(
        self,
        status: FileStatus,
        progress: float | None = None,
        error: str | None = None,
    ) -> "UploadFile":
        """Return a copy moved to ``status``.

        Raises:
            InvalidTransitionError: If the record is terminal or the move goes backwards.
        """
        if not self.can_advance(status):
            raise InvalidTransitionError(
                f"{self.name}: cannot move from {self.status.value} to {status.value}"
            )
        if progress is None:
            progress = 100.0 if status is FileStatus.COMPLETED else self.progress
            if status is not self.status and not status.terminal:
                progress = 0.0
        return self.model_copy(
            update={
                "status": status,
                "progress": min(max(progress, 0.0), 100.0),
                "error": error if status is FileStatus.ERROR else None,
            }
        )


class SkippedFile(BaseModel):
    """A candidate file rejected before upload."""

    model_config = ConfigDict(frozen=True)

    name: str
    reason: str


def validate_pdf(name: str, content: bytes) -> None:
    """Check that a candidate is a PDF within the size limit.

    Raises:
        UploadValidationError: If the file cannot be uploaded.
    """
    if not name.lower().endswith(".pdf"):
        raise UploadValidationError("Only PDF files are supported")

    if not content:
        raise UploadValidationError("Empty file")

    if len(content) > MAX_FILE_SIZE:
        size_mb = len(content) / (1024 * 1024)
        raise UploadValidationError(f"File size ({size_mb:.1f}MB) exceeds maximum allowed (50MB)")

    if not content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise UploadValidationError("Invalid PDF: file does not start with PDF header")


class UploadBatch(BaseModel):
    """The files of one upload submission and their progress.

    Before the server reports a job snapshot, overall progress is the mean
    of the files' progress. Once a snapshot arrives its overall percent is
    used instead.
    """

    files: tuple[UploadFile, ...] = ()
    skipped: tuple[SkippedFile, ...] = ()
    job_id: str | None = None
    server_progress: float | None = None

    @property
    def overall_progress(self) -> float:
        if self.server_progress is not None:
            return self.server_progress
        if not self.files:
            return 0.0
        return sum(_file_percent(f) for f in self.files) / len(self.files)

    @property
    def completed_count(self) -> int:
        return sum(1 for f in self.files if f.status is FileStatus.COMPLETED)

    @property
    def all_completed(self) -> bool:
        return bool(self.files) and self.completed_count == len(self.files)

    @property
    def has_errors(self) -> bool:
        return any(f.status is FileStatus.ERROR for f in self.files)

    @property
    def finished(self) -> bool:
        return all(f.status.terminal for f in self.files)

    def get(self, name: str) -> UploadFile | None:
        return next((f for f in self.files if f.name == name), None)

    def mark_all(self, status: FileStatus, error: str | None = None) -> None:
        """Move every file that can make the move to ``status``."""
        self.files = tuple(
            f.advance(status, error=error) if f.can_advance(status) else f
            for f in self.files
        )

    def apply_job(self, snapshot: JobStatus) -> None:
        """Adopt a polled job snapshot.

        Per-file statuses only ever move forward; a regression reported by
        the server is ignored. A terminal job settles every remaining file.
        """
        self.job_id = snapshot.job_id
        self.server_progress = snapshot.overall.percent

        updated: list[UploadFile] = []
        for record in self.files:
            remote = snapshot.files.get(record.name)
            if remote is not None:
                status = SERVER_FILE_STATUS.get(remote.status.lower())
                if status is not None and record.can_advance(status):
                    record = record.advance(status, progress=remote.percent, error=remote.error)
            updated.append(record)
        self.files = tuple(updated)

        if snapshot.status is JobState.COMPLETED:
            self.mark_all(FileStatus.COMPLETED)
        elif snapshot.status is JobState.FAILED:
            self.mark_all(FileStatus.ERROR, error=snapshot.error or "Processing failed")

    def apply_result(self, result: UploadResult) -> None:
        """Adopt a synchronous upload result.

        Files named in ``files_processed`` complete; the rest error. An
        empty list is taken to mean every file was processed.
        """
        processed = set(result.files_processed) or {f.name for f in self.files}
        updated: list[UploadFile] = []
        for record in self.files:
            if not record.status.terminal:
                if record.name in processed:
                    record = record.advance(FileStatus.COMPLETED)
                else:
                    record = record.advance(FileStatus.ERROR, error="Not processed by server")
            updated.append(record)
        self.files = tuple(updated)
        self.server_progress = 100.0


def _file_percent(record: UploadFile) -> float:
    if record.status in (FileStatus.COMPLETED, FileStatus.ERROR):
        return 100.0
    if record.status is FileStatus.PENDING:
        return 0.0
    # Uploading fills the first half, processing the second
    base = 0.0 if record.status is FileStatus.UPLOADING else 50.0
    return base + record.progress / 2


def select_files(candidates: Iterable[tuple[str, bytes]]) -> UploadBatch:
    """Build an upload batch from (filename, content) pairs.

    Non-PDF, empty, oversized, and duplicate-named files are skipped with a reason.
    """
    files: list[UploadFile] = []
    skipped: list[SkippedFile] = []
    seen: set[str] = set()

    for name, content in candidates:
        try:
            validate_pdf(name, content)
        except UploadValidationError as e:
            logger.warning(f"Skipping {name}: {e}")
            skipped.append(SkippedFile(name=name, reason=str(e)))
            continue
        if name in seen:
            skipped.append(SkippedFile(name=name, reason="Duplicate filename"))
            continue
        seen.add(name)
        files.append(UploadFile(name=name, content=content))

    return UploadBatch(files=tuple(files), skipped=tuple(skipped))


def read_candidates(paths: Iterable[Path | str]) -> list[tuple[str, bytes]]:
    """Read files from disk as (filename, content) pairs."""
    return [(Path(p).name, Path(p).read_bytes()) for p in paths]
