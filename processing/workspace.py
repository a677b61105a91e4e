"""Job-scoped scratch directories bridging local disk and the object store."""

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path

from django.conf import settings

from . import s3

logger = logging.getLogger(__name__)


class JobWorkspace:
    """
    A private temp directory for one job.

    The directory is created on first use, so a job that fails validation
    never touches the disk. `cleanup()` removes it and everything below it.
    """

    def __init__(self, job_id):
        self.job_id = job_id
        self._root: Path | None = None

    @property
    def allocated(self) -> bool:
        return self._root is not None

    @property
    def root(self) -> Path:
        if self._root is None:
            self._root = Path(
                tempfile.mkdtemp(prefix=f"vault-job-{self.job_id}-", dir=settings.PROCESSING_TMP_DIR)
            )
            logger.debug("Allocated workspace %s for job %s", self._root, self.job_id)
        return self._root

    def path(self, filename: str) -> Path:
        return self.root / filename

    def download(self, object_path: str, filename: str) -> Path:
        return s3.download_file(object_path, self.path(filename))

    def upload(self, local_path: Path, content_type: str) -> s3.StoredObject:
        return s3.upload_file(local_path, content_type)

    def cleanup(self):
        if self._root is None:
            return
        shutil.rmtree(self._root, ignore_errors=True)
        if self._root.exists():
            logger.warning("Workspace %s for job %s could not be fully removed", self._root, self.job_id)
        self._root = None


@contextmanager
def job_workspace(job_id):
    ws = JobWorkspace(job_id)
    try:
        yield ws
    finally:
        ws.cleanup()
