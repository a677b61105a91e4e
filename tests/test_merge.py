import pytest

from processing import jobs, tasks
from processing.commands import normalize_filter
from processing.models import MediaItem, ProcessingJob

pytestmark = pytest.mark.django_db

Status = ProcessingJob.Status


def _merge_job(media_ids, **extra):
    return jobs.create_job(ProcessingJob.Kind.MERGE, {"media_ids": media_ids, **extra})


def test_merge_normalizes_each_source_then_concatenates_once(pipeline, make_video):
    sources = [
        make_video(10, title="Opener", filename="a.mp4"),
        make_video(20, title="Main Set", filename="b.mkv"),
        make_video(5, title="Encore", filename="c.webm"),
    ]
    job = _merge_job([s.pk for s in sources])

    tasks.merge_video(str(job.pk))

    job.refresh_from_db()
    assert job.status == Status.COMPLETE
    assert job.progress == 100
    assert pipeline.encoder.count("normalize") == 3
    assert pipeline.encoder.count("concat") == 1
    assert job.output_media.duration_seconds == pytest.approx(35, abs=0.5)


def test_normalization_targets_common_profile(pipeline, make_video):
    job = _merge_job([make_video(10).pk, make_video(12).pk])

    tasks.merge_video(str(job.pk))

    for call in (c for c in pipeline.encoder.calls if c["kind"] == "normalize"):
        args = call["args"]
        assert args[args.index("-vf") + 1] == normalize_filter()
        assert "1280:720" in normalize_filter()
        assert args[args.index("-r") + 1] == "30"
        assert args[args.index("-ar") + 1] == "44100"
        assert args[args.index("-ac") + 1] == "2"
        assert args[args.index("-c:v") + 1] == "libx264"
        assert args[args.index("-c:a") + 1] == "aac"


def test_concat_is_stream_copy_over_normalized_files_in_order(pipeline, make_video):
    job = _merge_job([make_video(3).pk, make_video(4).pk, make_video(5).pk])

    tasks.merge_video(str(job.pk))

    (concat,) = [c for c in pipeline.encoder.calls if c["kind"] == "concat"]
    args = concat["args"]
    assert args[args.index("-c") + 1] == "copy"
    normalized = [str(c["output"]) for c in pipeline.encoder.calls if c["kind"] == "normalize"]
    assert concat["manifest"].splitlines() == [f"file '{p}'" for p in normalized]

    # every normalization finished before the join started
    kinds = [c["kind"] for c in pipeline.encoder.calls]
    assert kinds.index("concat") > max(i for i, k in enumerate(kinds) if k == "normalize")


def test_merge_output_metadata(pipeline, make_video):
    a = make_video(10, title="Night One", tags=["live", "tour"], artist="The Band", venue="Roxy")
    b = make_video(10, title="Night Two", tags=["tour", "encore"], artist="The Band", venue="Forum")
    job = _merge_job([a.pk, b.pk])

    tasks.merge_video(str(job.pk))

    job.refresh_from_db()
    media = job.output_media
    assert media.title == "Merged Video (2 clips)"
    assert media.description == "Combined from: Night One, Night Two"
    assert media.tags == ["live", "tour", "encore", "merged"]
    assert media.category == MediaItem.Category.VIDEO
    assert media.artist == "The Band"  # shared by both sources
    assert media.venue == ""  # sources disagree


def test_merge_uses_requested_title(pipeline, make_video):
    job = _merge_job([make_video(10).pk, make_video(10).pk], title="Best Of")

    tasks.merge_video(str(job.pk))

    job.refresh_from_db()
    assert job.output_media.title == "Best Of"


def test_merge_progress_is_monotonic_and_banded(pipeline, make_video):
    job = _merge_job([make_video(10).pk, make_video(20).pk, make_video(5).pk])

    tasks.merge_video(str(job.pk))

    progress = [p for _, p in pipeline.history]
    assert progress == sorted(progress)
    assert progress[-1] == 100
    downloading = [p for s, p in pipeline.history if s == Status.DOWNLOADING]
    # Normalization runs under "downloading"; "processing" starts with the concat.
    assert downloading == [5, 12, 18, 25, 35, 45, 55]
    processing = [p for s, p in pipeline.history if s == Status.PROCESSING]
    assert processing == [60]
    assert (Status.UPLOADING, 85) in pipeline.history


def test_merge_with_missing_source_fails_without_downloading(pipeline, make_video):
    a = make_video(10)
    b = make_video(10)
    job = _merge_job([a.pk, b.pk, 999999])

    tasks.merge_video(str(job.pk))

    job.refresh_from_db()
    assert job.status == Status.FAILED
    assert "999999" in job.error_message
    assert pipeline.store.downloads == []
    assert pipeline.encoder.calls == []
    assert list(pipeline.work.iterdir()) == []


def test_merge_with_non_video_source_fails_without_downloading(pipeline, make_video):
    a = make_video(10)
    cover = make_video(0, category=MediaItem.Category.IMAGE, title="Cover Art")
    job = _merge_job([a.pk, cover.pk])

    tasks.merge_video(str(job.pk))

    job.refresh_from_db()
    assert job.status == Status.FAILED
    assert "Cover Art" in job.error_message
    assert pipeline.store.downloads == []


def test_merge_needs_two_sources(pipeline, make_video):
    job = _merge_job([make_video(10).pk])

    tasks.merge_video(str(job.pk))

    job.refresh_from_db()
    assert job.status == Status.FAILED
    assert job.error_message == "Need at least 2 videos to merge"


@pytest.mark.parametrize("stage", ["download", "normalize", "concat", "upload"])
def test_merge_failure_at_any_stage_cleans_up(pipeline, make_video, stage):
    if stage == "download":
        pipeline.store.client.fail_download = True
    elif stage == "upload":
        pipeline.store.client.fail_upload = True
    else:
        pipeline.encoder.fail_on = {stage}
    job = _merge_job([make_video(10).pk, make_video(10).pk])

    tasks.merge_video(str(job.pk))

    job.refresh_from_db()
    assert job.status == Status.FAILED
    assert job.output_media is None
    assert list(pipeline.work.iterdir()) == []


def test_normalize_failure_stops_before_next_source(pipeline, make_video):
    pipeline.encoder.fail_on = {"normalize"}
    job = _merge_job([make_video(10).pk, make_video(10).pk, make_video(10).pk])

    tasks.merge_video(str(job.pk))

    assert pipeline.encoder.count("normalize") == 1
    assert pipeline.encoder.count("concat") == 0


def test_merge_probe_failure_leaves_duration_empty(pipeline, make_video):
    pipeline.probe["fail"] = True
    job = _merge_job([make_video(10).pk, make_video(10).pk])

    tasks.merge_video(str(job.pk))

    job.refresh_from_db()
    assert job.status == Status.COMPLETE
    assert job.output_media.duration_seconds is None
