"""
Merge preparation: re-encode every source to one profile, then stream-copy join.

The concat demuxer with ``-c copy`` only produces a valid file when all
inputs share codec parameters, timebase and frame size. Joining sources
that skipped `normalize` yields corrupt or desynced output.
"""

import logging
from pathlib import Path
from typing import Sequence

from . import commands, encoder

logger = logging.getLogger(__name__)


def normalize(input_path: Path, output_path: Path) -> Path:
    logger.debug("Normalizing %s -> %s", input_path, output_path)
    encoder.run_encode(commands.normalize_args(input_path, output_path))
    return output_path


def write_concat_manifest(paths: Sequence[Path], manifest_path: Path) -> Path:
    lines = []
    for p in paths:
        quoted = str(p).replace("'", "'\\''")
        lines.append(f"file '{quoted}'")
    manifest_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return manifest_path


def concatenate(paths: Sequence[Path], manifest_path: Path, output_path: Path) -> Path:
    write_concat_manifest(paths, manifest_path)
    logger.debug("Concatenating %d normalized inputs into %s", len(paths), output_path)
    encoder.run_encode(commands.concat_args(manifest_path, output_path))
    return output_path
