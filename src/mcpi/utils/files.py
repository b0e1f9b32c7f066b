# ABOUTME: Atomic file writes shared by config and cache writers.
# ABOUTME: Content goes to a temp file in the target dir, then os.replace swaps it in.
import os
import tempfile
from pathlib import Path


def atomic_write_text(path: Path, content: str) -> None:
    """Write text so readers see either the old or the new file, never a partial one.

    ABOUTME: Creates parent directories if needed
    ABOUTME: Temp file is removed if anything fails before the rename

    Raises:
        OSError: If the directory or file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
