# src/dayroll/storage/object_store.py

from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path, PurePosixPath

from ..core.errors import UploadError

logger = logging.getLogger(__name__)


def completion_image_path(user_id: str, task_id: int, timestamp_ms: int, filename: str) -> str:
    """
    Storage key for a completion photo:
      {user_id}/{task_id}-completion-{timestamp_ms}.{ext}

    The extension is taken from the original file name ("bin" if it has none).
    """
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    return f"{user_id}/{task_id}-completion-{timestamp_ms}.{ext}"


class LocalObjectStore:
    """
    Object storage backed by a local directory.

    Keys are relative POSIX paths; they are never allowed to escape the root.
    Writes go to a temp file first and are moved into place.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        key = PurePosixPath(path)
        if not path or key.is_absolute() or ".." in key.parts:
            raise UploadError(f"invalid storage path: {path!r}")
        return self._root.joinpath(*key.parts)

    def upload(self, path: str, data: bytes) -> str:
        target = self._resolve(path)
        if target.exists():
            raise UploadError(f"object already exists: {path}")
        tmp = target.with_name(target.name + ".tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(data)
            os.replace(tmp, target)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise UploadError(f"upload failed for {path}: {e}") from e
        logger.debug("Stored object %s (%d bytes)", path, len(data))
        return path

    def remove(self, path: str) -> None:
        target = self._resolve(path)
        with contextlib.suppress(FileNotFoundError):
            target.unlink()
        logger.debug("Removed object %s", path)
