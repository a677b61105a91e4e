"""ffmpeg argument lists for each pipeline step (binary name excluded)."""

from pathlib import Path

TARGET_WIDTH = 1280
TARGET_HEIGHT = 720
TARGET_FPS = 30
AUDIO_SAMPLE_RATE = 44100
AUDIO_CHANNELS = 2

H264_ARGS = ["-c:v", "libx264", "-preset", "fast", "-crf", "23"]
AAC_ARGS = ["-c:a", "aac", "-b:a", "128k"]
FASTSTART_ARGS = ["-movflags", "+faststart"]


def _seconds(value: float) -> str:
    # Fixed-point, never exponent form; ffmpeg's time parser rejects "1e+06".
    return f"{float(value):.6f}".rstrip("0").rstrip(".")


def trim_args(input_path: Path, start: float, end: float, output_path: Path) -> list[str]:
    return [
        "-y",
        "-i", str(input_path),
        "-ss", _seconds(start),
        "-to", _seconds(end),
        *H264_ARGS,
        *AAC_ARGS,
        *FASTSTART_ARGS,
        str(output_path),
    ]


def normalize_filter(width: int = TARGET_WIDTH, height: int = TARGET_HEIGHT) -> str:
    """Scale inside width x height keeping aspect, then letterbox to the exact size."""
    return (
        f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2"
    )


def normalize_args(input_path: Path, output_path: Path) -> list[str]:
    return [
        "-y",
        "-i", str(input_path),
        *H264_ARGS,
        *AAC_ARGS,
        "-ar", str(AUDIO_SAMPLE_RATE),
        "-ac", str(AUDIO_CHANNELS),
        "-vf", normalize_filter(),
        "-r", str(TARGET_FPS),
        *FASTSTART_ARGS,
        str(output_path),
    ]


def concat_args(manifest_path: Path, output_path: Path) -> list[str]:
    return [
        "-y",
        "-f", "concat",
        "-safe", "0",
        "-i", str(manifest_path),
        "-c", "copy",
        *FASTSTART_ARGS,
        str(output_path),
    ]


def frame_args(input_path: Path, output_path: Path, offset: float = 1.0) -> list[str]:
    return [
        "-y",
        "-ss", _seconds(min(offset, 1.0)),
        "-i", str(input_path),
        "-frames:v", "1",
        str(output_path),
    ]
