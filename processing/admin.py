from django.contrib import admin

from .models import MediaItem, ProcessingJob


@admin.register(MediaItem)
class MediaItemAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "category", "size", "duration_seconds", "created_at")
    list_filter = ("category",)
    search_fields = ("title", "artist", "venue")


@admin.register(ProcessingJob)
class ProcessingJobAdmin(admin.ModelAdmin):
    list_display = ("id", "kind", "status", "progress", "output_media", "updated_at")
    list_filter = ("kind", "status")
    readonly_fields = ("kind", "input_payload", "created_at", "updated_at")
