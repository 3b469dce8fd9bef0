"""In-process document assistant API for integration tests.

Implements the endpoints the client talks to with in-memory state, so the
real RequestGateway can be exercised end to end through httpx's ASGI
transport.
"""

import logging
import uuid
from dataclasses import dataclass, field

from fastapi import FastAPI, HTTPException, UploadFile, status
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ChatBody(BaseModel):
    message: str
    session_id: str | None = None


@dataclass
class FakeJob:
    """An ingestion job that advances one step per status poll."""

    job_id: str
    files: list[str]
    steps: list[str]
    polls: int = 0


@dataclass
class FakeState:
    """Mutable server state shared by the endpoints.

    Attributes:
        healthy: When False, /health answers 503.
        async_jobs: Answer uploads with a job id instead of a synchronous result.
        job_steps: Job statuses reported on successive polls.
        fail_job: Report the job as failed instead of completed.
        chat_error: When set, /chat answers 500 with this detail.
    """

    healthy: bool = True
    async_jobs: bool = False
    job_steps: list[str] = field(default_factory=lambda: ["pending", "running", "completed"])
    fail_job: bool = False
    chat_error: str | None = None
    documents: list[str] = field(default_factory=list)
    sessions: dict[str, list[str]] = field(default_factory=dict)
    jobs: dict[str, FakeJob] = field(default_factory=dict)


def create_app(state: FakeState | None = None) -> FastAPI:
    """Create the fake API bound to ``state``.

    Args:
        state: Server state; a fresh one is created if not provided.

    Returns:
        FastAPI application with ``app.state.fake`` set to the state.
    """
    state = state or FakeState()
    application = FastAPI(title="Fake Document Assistant API")
    application.state.fake = state

    @application.get("/health")
    async def health() -> dict:
        if not state.healthy:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Vector store unavailable",
            )
        return {
            "status": "healthy",
            "documents_count": len(state.documents),
            "collection_exists": bool(state.documents),
        }

    @application.post("/chat")
    async def chat(body: ChatBody) -> dict:
        if state.chat_error:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=state.chat_error,
            )
        session_id = body.session_id or f"srv-{uuid.uuid4().hex[:8]}"
        history = state.sessions.setdefault(session_id, [])
        history.append(body.message)
        return {
            "response": f"Answer #{len(history)} to: {body.message}",
            "session_id": session_id,
        }

    @application.post("/upload")
    async def upload(files: list[UploadFile]) -> dict:
        names = [f.filename or "unnamed.pdf" for f in files]
        for f in files:
            await f.read()

        if state.async_jobs:
            job_id = f"job-{uuid.uuid4().hex[:8]}"
            state.jobs[job_id] = FakeJob(job_id=job_id, files=names, steps=list(state.job_steps))
            logger.info(f"Accepted upload job {job_id}")
            return {"message": "Upload accepted", "job_id": job_id}

        state.documents.extend(names)
        return {
            "message": "Documents uploaded successfully",
            "files_processed": names,
            "total_documents": len(state.documents),
        }

    @application.get("/upload/status/{job_id}")
    async def upload_status(job_id: str) -> dict:
        job = state.jobs.get(job_id)
        if job is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")

        step = job.steps[min(job.polls, len(job.steps) - 1)]
        job.polls += 1
        if step == "completed" and state.fail_job:
            step = "failed"

        percent = {"pending": 0.0, "running": 50.0}.get(step, 100.0)
        file_status = {"pending": "queued", "running": "processing"}.get(step, step)
        if step == "completed" and job.files[0] not in state.documents:
            state.documents.extend(job.files)

        return {
            "job_id": job_id,
            "status": step,
            "files": {
                name: {"status": file_status, "percent": percent, "chunks_total": 4}
                for name in job.files
            },
            "overall": {
                "percent": percent,
                "chunks_total": 4 * len(job.files),
                "chunks_done": int(4 * len(job.files) * percent / 100),
            },
            "error": "Embedding service unavailable" if step == "failed" else None,
        }

    @application.delete("/documents")
    async def clear_documents() -> dict:
        state.documents.clear()
        return {"message": "All documents cleared"}

    return application
