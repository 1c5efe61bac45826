"""Filesystem helpers shared by the parser and the metadata store."""

import os
import tempfile
from pathlib import Path


def atomic_write_text(path: Path, text: str) -> None:
    """Write text to path so readers see either the old or the new content.

    Args:
        path: Destination file. Parent directories are created as needed.
        text: Content to write, encoded as UTF-8.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(suffix=path.suffix, prefix=".tmp_", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        Path(tmp_path).replace(path)  # Atomic on POSIX
    except BaseException:
        Path(tmp_path).unlink(missing_ok=True)
        raise
