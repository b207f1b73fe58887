"""Persistent storage targets for flushed buffers."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Dict, List, Protocol


class FileStorage(Protocol):
    """Accepts rendered file content keyed by normalized relative path."""

    def write_file(self, path: str, content: str) -> None:
        """Persist ``content`` at ``path``."""


class FileManifest:
    """Writes generated files beneath a base directory."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)
        self._files: List[str] = []

    @property
    def files(self) -> List[str]:
        """Relative paths written so far, in write order."""
        return list(self._files)

    def resolve(self, path: str) -> Path:
        return self.base_dir / path

    def write_file(self, path: str, content: str) -> None:
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write(target, content)
        if path not in self._files:
            self._files.append(path)


class InMemoryStorage:
    """Collects flushed files in a dict; used for dry runs."""

    def __init__(self) -> None:
        self.files: Dict[str, str] = {}
        self.writes: List[str] = []

    def write_file(self, path: str, content: str) -> None:
        self.files[path] = content
        self.writes.append(path)


def _atomic_write(path: Path, content: str) -> None:
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


__all__ = ["FileManifest", "FileStorage", "InMemoryStorage"]
