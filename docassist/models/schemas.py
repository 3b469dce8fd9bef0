from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatRequest(BaseModel):
    """Request payload for the chat endpoint.

    Attributes:
        message: User's question or prompt.
        session_id: Server-assigned session, omitted on a session's first message.
    """

    message: str = Field(..., min_length=1)
    session_id: str | None = None

    def to_body(self) -> dict[str, str]:
        """Serialize for the wire, dropping session_id when unset."""
        return self.model_dump(exclude_none=True)


class ChatReply(BaseModel):
    """Response from the chat endpoint.

    Attributes:
        response: The assistant's answer.
        session_id: Session identifier to send with follow-up messages.
    """

    response: str
    session_id: str | None = None


class HealthStatus(BaseModel):
    """Payload of the health endpoint.

    Older servers report ``total_documents`` instead of ``documents_count``.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    status: str
    documents_count: int | None = None
    total_documents: int | None = None
    collection_exists: bool | None = None
    components: dict[str, Any] | None = None

    @property
    def document_total(self) -> int:
        return self.documents_count or self.total_documents or 0


class UploadResult(BaseModel):
    """Response from the upload endpoint.

    A ``job_id`` means ingestion continues server-side and must be polled;
    without one the upload was processed synchronously.
    """

    message: str = ""
    files_processed: list[str] = Field(default_factory=list)
    total_documents: int | None = None
    job_id: str | None = None


class JobState(str, Enum):
    """Status values of a server-tracked ingestion job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED)


class FileJobStatus(BaseModel):
    """Server-side progress of one file within a job."""

    model_config = ConfigDict(frozen=True)

    pages_total: int | None = None
    chunks_total: int = 0
    chunks_done: int = 0
    percent: float = Field(default=0.0, ge=0.0, le=100.0)
    status: str = "pending"
    error: str | None = None


class OverallProgress(BaseModel):
    """Job-level aggregate progress; authoritative over any client estimate."""

    model_config = ConfigDict(frozen=True)

    percent: float = Field(default=0.0, ge=0.0, le=100.0)
    chunks_total: int = 0
    chunks_done: int = 0


class JobStatus(BaseModel):
    """Snapshot of an ingestion job, as returned by the status endpoint.

    Attributes:
        job_id: Identifier returned by the upload submission.
        status: Job-level state; the only termination signal.
        files: Per-file progress keyed by filename.
        overall: Aggregate progress across all files.
        error: Job-level error detail when failed.
    """

    model_config = ConfigDict(frozen=True)

    job_id: str
    status: JobState
    files: dict[str, FileJobStatus] = Field(default_factory=dict)
    overall: OverallProgress = Field(default_factory=OverallProgress)
    error: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        """Accept status strings in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v
