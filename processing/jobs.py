"""
ProcessingJob repository.

The orchestrator task that owns a job is its only writer; every write goes
through `update_job`, which enforces the state machine and keeps progress
monotonic.
"""

import logging

from .exceptions import JobStateError
from .models import MediaItem, ProcessingJob

logger = logging.getLogger(__name__)

MAX_ERROR_CHARS = 4000


def create_job(kind: str, payload: dict) -> ProcessingJob:
    return ProcessingJob.objects.create(kind=kind, input_payload=payload)


def get_job(job_id) -> ProcessingJob | None:
    return ProcessingJob.objects.filter(pk=job_id).first()


def update_job(
    job: ProcessingJob,
    *,
    status: str | None = None,
    progress: int | None = None,
    error: str | None = None,
    output_media: MediaItem | None = None,
) -> ProcessingJob:
    if job.is_terminal:
        raise JobStateError(f"Job {job.pk} is already {job.status}")

    if status and status != job.status:
        if not job.can_transition_to(status):
            raise JobStateError(f"Job {job.pk} cannot move from {job.status} to {status}")
        logger.info("Job %s: %s -> %s", job.pk, job.status, status)
        job.status = status
    if progress is not None:
        job.progress = max(job.progress, max(0, min(100, int(progress))))
    if error is not None:
        job.error_message = error[:MAX_ERROR_CHARS]
    if output_media is not None:
        job.output_media = output_media
    job.save(update_fields=["status", "progress", "error_message", "output_media", "updated_at"])
    return job


def complete_job(job: ProcessingJob, media: MediaItem) -> ProcessingJob:
    return update_job(job, status=ProcessingJob.Status.COMPLETE, progress=100, output_media=media)


def fail_job(job: ProcessingJob, message: str) -> ProcessingJob:
    return update_job(job, status=ProcessingJob.Status.FAILED, error=message or "Unknown error")
