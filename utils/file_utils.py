"""
File helpers for the JSON files the sync stores keep on disk.
"""

import json
import os
import tempfile
from pathlib import Path


def write_json_atomic(path: Path, data) -> None:
    """
    Write data as JSON, replacing path in one step.

    The content goes to a uniquely named temp file in the same directory,
    which is then swapped in with os.replace. Readers see either the old
    file or the new one, never a partial write. Concurrent writers never
    share a temp file.

    Args:
        path: Destination file
        data: JSON-serializable value

    Raises:
        OSError: If the directory or file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
    )

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
