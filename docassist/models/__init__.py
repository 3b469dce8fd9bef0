"""Pydantic models for the remote API's request and response bodies.

Provides validation of everything the client sends and receives, so the
orchestration layer only ever handles well-formed data.

Models:
    - ChatRequest / ChatReply: chat exchange
    - HealthStatus: service availability and document counts
    - UploadResult: upload submission result
    - JobStatus, FileJobStatus, OverallProgress: polled ingestion job snapshot
"""

from docassist.models.schemas import (
    ChatReply,
    ChatRequest,
    FileJobStatus,
    HealthStatus,
    JobState,
    JobStatus,
    OverallProgress,
    UploadResult,
)

__all__ = [
    "ChatReply",
    "ChatRequest",
    "FileJobStatus",
    "HealthStatus",
    "JobState",
    "JobStatus",
    "OverallProgress",
    "UploadResult",
]
