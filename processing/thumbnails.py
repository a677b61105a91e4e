from pathlib import Path

from PIL import Image

from . import commands, encoder

THUMBNAIL_WIDTH = 320


def capture_thumbnail(video_path: Path, workdir: Path, offset: float = 1.0) -> Path:
    """Grab one frame near the start of the clip and save a 320 px wide JPEG."""
    frame_path = workdir / "frame.png"
    encoder.run_encode(commands.frame_args(video_path, frame_path, offset))

    with Image.open(frame_path) as frame:
        img = frame.convert("RGB")
    # Fixed width, height follows the source aspect ratio.
    height = max(1, round(img.height * THUMBNAIL_WIDTH / img.width))
    img = img.resize((THUMBNAIL_WIDTH, height))

    thumb_path = workdir / "thumb.jpg"
    img.save(thumb_path, format="JPEG", quality=85)
    return thumb_path
