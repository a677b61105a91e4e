import uuid
from django.db import models


class MediaItem(models.Model):
    class Category(models.TextChoices):
        VIDEO = "video"
        IMAGE = "image"
        AUDIO = "audio"
        DOCUMENT = "document"
        OTHER = "other"

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    storage_path = models.CharField(max_length=512)  # e.g. /objects/uploads/<uuid>
    filename = models.CharField(max_length=255, blank=True, default="")
    content_type = models.CharField(max_length=127, blank=True, default="")
    category = models.CharField(max_length=16, choices=Category.choices, default=Category.OTHER)
    size = models.PositiveBigIntegerField(default=0)
    duration_seconds = models.PositiveIntegerField(null=True, blank=True)
    thumbnail_path = models.CharField(max_length=512, blank=True, default="")
    tags = models.JSONField(default=list, blank=True)

    # Descriptive metadata carried onto derived items
    label = models.CharField(max_length=255, blank=True, default="")
    artist = models.CharField(max_length=255, blank=True, default="")
    venue = models.CharField(max_length=255, blank=True, default="")
    tour = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title


class ProcessingJob(models.Model):
    class Kind(models.TextChoices):
        TRIM = "trim"
        MERGE = "merge"

    class Status(models.TextChoices):
        QUEUED = "queued"
        DOWNLOADING = "downloading"
        PROCESSING = "processing"
        UPLOADING = "uploading"
        COMPLETE = "complete"
        FAILED = "failed"

    # Happy-path order; FAILED is reachable from any non-terminal status.
    STATUS_SEQUENCE = (
        Status.QUEUED,
        Status.DOWNLOADING,
        Status.PROCESSING,
        Status.UPLOADING,
        Status.COMPLETE,
    )
    TERMINAL_STATUSES = frozenset({Status.COMPLETE, Status.FAILED})

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    kind = models.CharField(max_length=8, choices=Kind.choices, editable=False)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.QUEUED)
    progress = models.PositiveSmallIntegerField(default=0)  # 0..100
    input_payload = models.JSONField(default=dict, blank=True)
    error_message = models.TextField(blank=True, default="")
    output_media = models.ForeignKey(
        MediaItem,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="source_jobs",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.kind} job {self.pk} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def can_transition_to(self, status: str) -> bool:
        """Forward-only along STATUS_SEQUENCE; FAILED from anywhere non-terminal."""
        if self.is_terminal:
            return False
        if status == self.Status.FAILED:
            return True
        return self.STATUS_SEQUENCE.index(status) >= self.STATUS_SEQUENCE.index(self.status)
