"""
ffmpeg / ffprobe subprocess adapter.

ffmpeg has no machine-readable progress channel on stderr, so progress is
scraped from the periodic ``time=HH:MM:SS.ff`` status lines. Everything
above this module only sees elapsed seconds through a callback.
"""

import json
import logging
import re
import subprocess
from dataclasses import dataclass
from typing import Callable, Sequence

from django.conf import settings

from .exceptions import EncodeError, ProbeError

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"time=(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")

ProgressCallback = Callable[[float], None]


@dataclass(frozen=True)
class ProbeResult:
    duration: float


def parse_progress_time(line: str) -> float | None:
    """Return elapsed seconds from an ffmpeg status line, or None."""
    match = TIME_PATTERN.search(line)
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def run_encode(args: Sequence, on_progress: ProgressCallback | None = None) -> None:
    """
    Run ffmpeg with `args`, feeding elapsed seconds to `on_progress`.

    Raises EncodeError on a non-zero exit; the message carries only the
    tail of stderr. If anything interrupts the read loop (including the
    callback raising) the child is killed before the exception propagates.
    """
    cmd = [settings.FFMPEG_BINARY, *(str(a) for a in args)]
    tail_chars = settings.ENCODER_STDERR_TAIL_CHARS
    logger.debug("Executing command: %s", " ".join(cmd))

    try:
        # text mode gives universal newlines, so "\r"-terminated status lines split too
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except OSError as e:
        raise EncodeError(f"Could not start {cmd[0]}: {e}") from e

    tail = ""
    try:
        for line in proc.stderr:
            tail = (tail + line)[-tail_chars:]
            if on_progress is not None:
                seconds = parse_progress_time(line)
                if seconds is not None:
                    on_progress(seconds)
        returncode = proc.wait()
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()
        proc.stderr.close()

    if returncode != 0:
        raise EncodeError(
            f"{cmd[0]} exited with code {returncode}: {tail}",
            returncode=returncode,
            stderr_tail=tail,
        )


def probe(path) -> ProbeResult:
    """Read container duration with ffprobe."""
    cmd = [
        settings.FFPROBE_BINARY,
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        str(path),
    ]
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=settings.PROBE_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise ProbeError(f"ffprobe failed: {e}") from e

    if result.returncode != 0:
        raise ProbeError(f"ffprobe exited with code {result.returncode}")

    try:
        info = json.loads(result.stdout)
        duration = float((info.get("format") or {}).get("duration") or 0)
    except (ValueError, TypeError, AttributeError) as e:
        raise ProbeError(f"ffprobe parse error: {e}") from e
    return ProbeResult(duration=duration)
