"""Document uploads and ingestion job tracking.

Responsibilities:
    - PDF selection and validation before upload
    - Per-file status records with forward-only transitions
    - Upload submission, synchronous or job-tracked
    - Fixed-interval polling of server-side ingestion jobs
"""

from docassist.uploads.files import (
    FileStatus,
    SkippedFile,
    UploadBatch,
    UploadFile,
    read_candidates,
    select_files,
)
from docassist.uploads.service import UploadOutcome, UploadService
from docassist.uploads.tracker import UploadJobTracker

__all__ = [
    "FileStatus",
    "SkippedFile",
    "UploadBatch",
    "UploadFile",
    "UploadJobTracker",
    "UploadOutcome",
    "UploadService",
    "read_candidates",
    "select_files",
]
