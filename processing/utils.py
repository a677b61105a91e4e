import os
import re

DEFAULT_VIDEO_EXT = ".mp4"


def source_extension(filename: str) -> str:
    """Extension to stage a download under, so ffmpeg can sniff the container."""
    _, ext = os.path.splitext(filename or "")
    return ext or DEFAULT_VIDEO_EXT


def safe_filename(title: str, ext: str = DEFAULT_VIDEO_EXT) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", title) + ext


def format_clock(seconds: float) -> str:
    """m:ss, minutes unbounded."""
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


def merge_tags(*tag_lists, extra: str | None = None) -> list[str]:
    """Concatenate tag lists, de-duplicated in first-seen order."""
    seen = {}
    for tags in tag_lists:
        for tag in tags or []:
            seen.setdefault(tag, None)
    if extra:
        seen.setdefault(extra, None)
    return list(seen)
