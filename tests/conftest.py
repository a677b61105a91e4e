"""Shared fakes: an in-memory S3 client and an ffmpeg/ffprobe stand-in.

Fake media files are tiny text blobs of the form ``duration=<seconds>`` so
that durations flow through trim, normalize and concat the way real
streams would.
"""

import re
from pathlib import Path

import pytest
from PIL import Image

from processing import encoder, jobs, s3
from processing.exceptions import EncodeError, ProbeError
from processing.models import MediaItem

DURATION_RE = re.compile(rb"duration=([\d.]+)")


def read_duration(path) -> float:
    match = DURATION_RE.search(Path(path).read_bytes())
    return float(match.group(1)) if match else 0.0


class FakeS3Client:
    def __init__(self):
        self.objects = {}
        self.downloads = []
        self.uploads = []
        self.fail_download = False
        self.fail_upload = False

    def download_file(self, bucket, key, filename):
        self.downloads.append((bucket, key))
        if self.fail_download:
            raise OSError("simulated download failure")
        Path(filename).write_bytes(self.objects[(bucket, key)])

    def upload_file(self, filename, bucket, key, ExtraArgs=None):
        if self.fail_upload:
            raise OSError("simulated upload failure")
        self.uploads.append({"bucket": bucket, "key": key, "extra": ExtraArgs})
        self.objects[(bucket, key)] = Path(filename).read_bytes()


class FakeStore:
    def __init__(self, client):
        self.client = client

    def put(self, object_path: str, data: bytes):
        self.client.objects[s3.resolve_object_path(object_path)] = data

    @property
    def downloads(self):
        return self.client.downloads

    @property
    def uploads(self):
        return self.client.uploads


class FakeEncoder:
    """Stands in for encoder.run_encode, classifying calls by their arguments."""

    def __init__(self):
        self.calls = []
        self.fail_on = set()
        self.progress_points = 3

    @staticmethod
    def classify(args) -> str:
        if "concat" in args:
            return "concat"
        if "-frames:v" in args:
            return "frame"
        if "-vf" in args:
            return "normalize"
        if "-to" in args:
            return "trim"
        return "other"

    def __call__(self, args, on_progress=None):
        args = [str(a) for a in args]
        kind = self.classify(args)
        output = Path(args[-1])
        record = {"kind": kind, "args": args, "output": output}
        self.calls.append(record)
        if kind in self.fail_on:
            raise EncodeError(f"ffmpeg exited with code 1: simulated {kind} failure", returncode=1)

        if kind == "trim":
            start = float(args[args.index("-ss") + 1])
            end = float(args[args.index("-to") + 1])
            clip = end - start
            if on_progress is not None:
                for i in range(self.progress_points + 1):
                    on_progress(clip * i / self.progress_points)
            output.write_bytes(b"duration=%.3f" % clip)
        elif kind == "normalize":
            source = Path(args[args.index("-i") + 1])
            output.write_bytes(b"normalized duration=%.3f" % read_duration(source))
        elif kind == "concat":
            manifest = Path(args[args.index("-i") + 1]).read_text()
            record["manifest"] = manifest
            paths = re.findall(r"file '(.+)'", manifest)
            total = sum(read_duration(p) for p in paths)
            output.write_bytes(b"duration=%.3f" % total)
        elif kind == "frame":
            Image.new("RGB", (1280, 720), (40, 80, 120)).save(output, format="PNG")

    def count(self, kind: str) -> int:
        return sum(1 for c in self.calls if c["kind"] == kind)


@pytest.fixture
def s3_settings(settings):
    settings.S3_BUCKET = "vault-bucket"
    settings.S3_PRIVATE_OBJECT_DIR = "/vault-bucket/private"
    return settings


@pytest.fixture
def fake_s3(monkeypatch, s3_settings):
    client = FakeS3Client()
    monkeypatch.setattr(s3, "get_s3_client", lambda: client)
    return FakeStore(client)


@pytest.fixture
def work_root(settings, tmp_path):
    root = tmp_path / "work"
    root.mkdir()
    settings.PROCESSING_TMP_DIR = str(root)
    return root


@pytest.fixture
def fake_encoder(monkeypatch):
    fake = FakeEncoder()
    monkeypatch.setattr(encoder, "run_encode", fake)
    return fake


@pytest.fixture
def fake_probe(monkeypatch):
    state = {"fail": False, "calls": []}

    def probe(path):
        state["calls"].append(Path(path))
        if state["fail"]:
            raise ProbeError("ffprobe exited with code 1")
        return encoder.ProbeResult(duration=read_duration(path))

    monkeypatch.setattr(encoder, "probe", probe)
    return state


@pytest.fixture
def job_history(monkeypatch):
    """Every (status, progress) a job is written with, in order."""
    history = []
    real_update = jobs.update_job

    def recording_update(job, **kwargs):
        result = real_update(job, **kwargs)
        history.append((result.status, result.progress))
        return result

    monkeypatch.setattr(jobs, "update_job", recording_update)
    return history


@pytest.fixture
def make_video(fake_s3):
    counter = {"n": 0}

    def make(duration: float = 60.0, *, category=MediaItem.Category.VIDEO, **fields):
        counter["n"] += 1
        object_path = f"/objects/uploads/source-{counter['n']}"
        fake_s3.put(object_path, b"duration=%.3f" % duration)
        defaults = {
            "title": f"Source {counter['n']}",
            "storage_path": object_path,
            "filename": f"source_{counter['n']}.mov",
            "content_type": "video/quicktime",
            "category": category,
            "tags": [],
        }
        defaults.update(fields)
        return MediaItem.objects.create(**defaults)

    return make


@pytest.fixture
def pipeline(fake_s3, fake_encoder, fake_probe, work_root, job_history):
    """Everything a trim/merge task touches outside the database, faked."""
    class Pipeline:
        store = fake_s3
        encoder = fake_encoder
        probe = fake_probe
        work = work_root
        history = job_history

    return Pipeline
