from rest_framework import serializers
from rest_framework.exceptions import NotFound

from .models import MediaItem, ProcessingJob
from .s3 import create_presigned_get


def _require_video(media_id: int) -> MediaItem:
    item = MediaItem.objects.filter(pk=media_id).first()
    if item is None:
        raise NotFound(f"Media item {media_id} not found")
    if item.category != MediaItem.Category.VIDEO:
        raise serializers.ValidationError(f'Item "{item.title}" is not a video')
    return item


class ProcessingJobSerializer(serializers.ModelSerializer):
    output_media_id = serializers.PrimaryKeyRelatedField(source="output_media", read_only=True)
    output_url = serializers.SerializerMethodField()

    class Meta:
        model = ProcessingJob
        fields = [
            "id",
            "kind",
            "status",
            "progress",
            "error_message",
            "output_media_id",
            "output_url",
            "created_at",
            "updated_at",
        ]

    def get_output_url(self, job):
        if job.status != ProcessingJob.Status.COMPLETE or job.output_media is None:
            return None
        return create_presigned_get(job.output_media.storage_path)


class TrimRequestSerializer(serializers.Serializer):
    media_id = serializers.IntegerField()
    trim_start = serializers.FloatField(min_value=0)
    trim_end = serializers.FloatField(min_value=0)
    title = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate(self, attrs):
        if attrs["trim_end"] <= attrs["trim_start"]:
            raise serializers.ValidationError({"trim_end": "trim_end must be greater than trim_start"})
        _require_video(attrs["media_id"])
        return attrs


class MergeRequestSerializer(serializers.Serializer):
    media_ids = serializers.ListField(child=serializers.IntegerField(), min_length=2)
    title = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate_media_ids(self, value):
        for media_id in value:
            _require_video(media_id)
        return value
