import logging
from pathlib import Path

from celery import shared_task
from celery.exceptions import SoftTimeLimitExceeded
from django.db import transaction

from . import commands, encoder, jobs, normalize, thumbnails
from .exceptions import ProbeError, ProcessingError, SourceMediaError
from .models import MediaItem, ProcessingJob
from .s3 import StoredObject
from .utils import format_clock, merge_tags, safe_filename, source_extension
from .workspace import JobWorkspace, job_workspace

logger = logging.getLogger(__name__)

Status = ProcessingJob.Status

# Descriptive metadata copied from source to output items
CARRIED_FIELDS = ("label", "artist", "venue", "tour")


def _load_sources(media_ids) -> list[MediaItem]:
    """Resolve every id up front; nothing is downloaded unless all are valid videos."""
    found = MediaItem.objects.in_bulk(media_ids)
    sources = []
    for media_id in media_ids:
        item = found.get(media_id)
        if item is None:
            raise SourceMediaError(f"Media item {media_id} not found")
        if item.category != MediaItem.Category.VIDEO:
            raise SourceMediaError(f'Media item {media_id} ("{item.title}") is not a video')
        sources.append(item)
    return sources


def _encode_progress(job: ProcessingJob, floor: int, span: int, expected_seconds: float):
    """Map encoder elapsed time linearly onto [floor, floor + span]."""
    def report(seconds: float):
        if expected_seconds <= 0:
            return
        pct = floor + min(span, round(seconds / expected_seconds * span))
        if pct > job.progress:
            jobs.update_job(job, progress=pct)
    return report


def _best_effort_thumbnail(workspace: JobWorkspace, video_path: Path) -> str:
    try:
        thumb = thumbnails.capture_thumbnail(video_path, workspace.root)
        return workspace.upload(thumb, "image/jpeg").object_path
    except SoftTimeLimitExceeded:
        raise
    except Exception:
        logger.warning("Thumbnail generation failed for %s", video_path, exc_info=True)
        return ""


def _probe_duration(video_path: Path, fallback: int | None) -> int | None:
    try:
        return round(encoder.probe(video_path).duration)
    except ProbeError as e:
        logger.warning("Probe failed for %s, using %s: %s", video_path, fallback, e)
        return fallback


def _register_output(job: ProcessingJob, stored: StoredObject, *, title: str, **fields) -> MediaItem:
    with transaction.atomic():
        media = MediaItem.objects.create(
            title=title,
            filename=safe_filename(title),
            storage_path=stored.object_path,
            content_type="video/mp4",
            category=MediaItem.Category.VIDEO,
            size=stored.size,
            **fields,
        )
        jobs.complete_job(job, media)
    logger.info("Job %s complete: media item %s (%d bytes)", job.pk, media.pk, stored.size)
    return media


def _run_trim(job: ProcessingJob, workspace: JobWorkspace) -> MediaItem:
    params = job.input_payload
    trim_start = float(params["trim_start"])
    trim_end = float(params["trim_end"])
    if trim_end <= trim_start:
        raise ProcessingError("trim_end must be greater than trim_start")
    (source,) = _load_sources([params["media_id"]])

    jobs.update_job(job, status=Status.DOWNLOADING, progress=10)
    input_path = workspace.download(source.storage_path, f"input{source_extension(source.filename)}")

    jobs.update_job(job, status=Status.PROCESSING, progress=30)
    clip_seconds = trim_end - trim_start
    output_path = workspace.path("output.mp4")
    encoder.run_encode(
        commands.trim_args(input_path, trim_start, trim_end, output_path),
        on_progress=_encode_progress(job, 30, 60, clip_seconds),
    )

    jobs.update_job(job, status=Status.UPLOADING, progress=90)
    stored = workspace.upload(output_path, "video/mp4")
    thumbnail_path = _best_effort_thumbnail(workspace, output_path)
    duration = _probe_duration(output_path, fallback=round(clip_seconds))

    return _register_output(
        job,
        stored,
        title=params.get("title") or f"{source.title} (trimmed)",
        description=(
            f"Trimmed from {source.title}: {format_clock(trim_start)} - {format_clock(trim_end)}"
        ),
        tags=merge_tags(source.tags, extra="trimmed"),
        thumbnail_path=thumbnail_path,
        duration_seconds=duration,
        **{name: getattr(source, name) for name in CARRIED_FIELDS},
    )


def _shared_metadata(sources: list[MediaItem]) -> dict:
    shared = {}
    for name in CARRIED_FIELDS:
        values = {getattr(s, name) for s in sources}
        if len(values) == 1:
            shared[name] = values.pop()
    return shared


def _run_merge(job: ProcessingJob, workspace: JobWorkspace) -> MediaItem:
    params = job.input_payload
    media_ids = list(params.get("media_ids") or [])
    if len(media_ids) < 2:
        raise SourceMediaError("Need at least 2 videos to merge")
    sources = _load_sources(media_ids)
    count = len(sources)

    jobs.update_job(job, status=Status.DOWNLOADING, progress=5)
    downloaded = []
    for i, source in enumerate(sources):
        downloaded.append(
            workspace.download(source.storage_path, f"input_{i}{source_extension(source.filename)}")
        )
        jobs.update_job(job, progress=5 + round((i + 1) / count * 20))

    # Sequential on purpose: progress accounting assumes one source at a time.
    normalized = []
    for i, path in enumerate(downloaded):
        normalized.append(normalize.normalize(path, workspace.path(f"norm_{i}.mp4")))
        jobs.update_job(job, progress=25 + round((i + 1) / count * 30))

    jobs.update_job(job, status=Status.PROCESSING, progress=60)
    output_path = normalize.concatenate(
        normalized, workspace.path("concat.txt"), workspace.path("merged.mp4")
    )

    jobs.update_job(job, status=Status.UPLOADING, progress=85)
    stored = workspace.upload(output_path, "video/mp4")
    thumbnail_path = _best_effort_thumbnail(workspace, output_path)
    duration = _probe_duration(output_path, fallback=None)

    return _register_output(
        job,
        stored,
        title=params.get("title") or f"Merged Video ({count} clips)",
        description="Combined from: " + ", ".join(s.title for s in sources),
        tags=merge_tags(*(s.tags for s in sources), extra="merged"),
        thumbnail_path=thumbnail_path,
        duration_seconds=duration,
        **_shared_metadata(sources),
    )


def _record_failure(job: ProcessingJob, exc: Exception):
    message = str(exc) or exc.__class__.__name__
    try:
        job.refresh_from_db()
        if job.is_terminal:
            logger.error("Job %s already %s; not recording failure: %s", job.pk, job.status, message)
            return
        jobs.fail_job(job, message)
    except Exception:
        logger.exception("Could not record failure for job %s", job.pk)


def _execute(job_id, pipeline):
    job = jobs.get_job(job_id)
    if job is None:
        logger.error("Job %s not found; nothing to do", job_id)
        return
    if job.is_terminal:
        logger.warning("Job %s is already %s; skipping", job.pk, job.status)
        return

    logger.info("Starting %s job %s", job.kind, job.pk)
    with job_workspace(job.pk) as workspace:
        try:
            pipeline(job, workspace)
        except Exception as e:
            logger.exception("%s job %s failed", job.kind.capitalize(), job.pk)
            _record_failure(job, e)


@shared_task(name="processing.trim_video")
def trim_video(job_id: str):
    _execute(job_id, _run_trim)


@shared_task(name="processing.merge_video")
def merge_video(job_id: str):
    _execute(job_id, _run_merge)


def _dispatch(job: ProcessingJob):
    task = trim_video if job.kind == ProcessingJob.Kind.TRIM else merge_video
    try:
        task.delay(str(job.pk))
    except Exception as e:
        logger.exception("Could not dispatch %s job %s", job.kind, job.pk)
        jobs.fail_job(job, f"Could not dispatch job: {e}")


def submit_job(kind: str, payload: dict) -> ProcessingJob:
    """
    Persist a queued job and hand it to a worker once the row is committed.

    Callers validate `payload` first; anything rejected there never becomes a job.
    """
    job = jobs.create_job(kind, payload)
    transaction.on_commit(lambda: _dispatch(job))
    logger.info("Queued %s job %s", kind, job.pk)
    return job
