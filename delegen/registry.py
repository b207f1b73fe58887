"""Registry mapping normalized output paths to their buffers."""

from __future__ import annotations

import posixpath
import re
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import PathNormalizationError
from .logging import get_logger, target_logger
from .models import Symbol
from .writer import OutputBuffer

DEFAULT_SOURCE_ROOT = "src"

_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:/")


def normalize_path(path: object) -> str:
    """Canonicalize an output path relative to the output root."""
    if not isinstance(path, str):
        raise PathNormalizationError(path, "expected a string path")
    if not path.strip():
        raise PathNormalizationError(path, "path is empty")
    if "\x00" in path:
        raise PathNormalizationError(path, "path contains a NUL byte")

    candidate = path.replace("\\", "/")
    if candidate.startswith("/") or _DRIVE_PATTERN.match(candidate):
        raise PathNormalizationError(path, "absolute paths are not allowed")

    normalized = posixpath.normpath(candidate)
    if normalized == ".":
        raise PathNormalizationError(path, "path does not name a file")
    if normalized == ".." or normalized.startswith("../"):
        raise PathNormalizationError(path, "path escapes the output root")
    return normalized


class WriterRegistry:
    """Owns one :class:`OutputBuffer` per normalized path for a generation run."""

    def __init__(self, *, source_root: str = DEFAULT_SOURCE_ROOT) -> None:
        self.source_root = normalize_path(source_root) if source_root else ""
        self._buffers: Dict[str, OutputBuffer] = {}
        self.logger = get_logger("registry")

    def __contains__(self, path: object) -> bool:
        try:
            return normalize_path(path) in self._buffers
        except PathNormalizationError:
            return False

    def __len__(self) -> int:
        return len(self._buffers)

    def __iter__(self) -> Iterator[OutputBuffer]:
        return iter(list(self._buffers.values()))

    def items(self) -> List[Tuple[str, OutputBuffer]]:
        return list(self._buffers.items())

    def get(self, path: str) -> Optional[OutputBuffer]:
        """Return the existing buffer for ``path`` without creating or separating."""
        return self._buffers.get(normalize_path(path))

    def resolve(self, path: str) -> OutputBuffer:
        """Return the buffer for ``path``, creating it on first use.

        A buffer that already holds content receives one blank-line separator
        before it is handed out again.
        """
        key = normalize_path(path)
        buffer = self._buffers.get(key)
        if buffer is None:
            buffer = OutputBuffer(key, source_root=self.source_root)
            self._buffers[key] = buffer
            target_logger("registry", key).debug("Created buffer for %s", key)
        elif buffer.has_content:
            buffer.blank_line()
        return buffer

    def symbol_path(self, symbol: Symbol) -> str:
        """Return the normalized path a symbol's definition is written to."""
        if not symbol.definition_file:
            raise PathNormalizationError(
                symbol.definition_file, f"symbol '{symbol.name}' has no definition file"
            )
        normalized = normalize_path(symbol.definition_file)
        root = self.source_root
        if not root or normalized == root or normalized.startswith(f"{root}/"):
            return normalized
        return f"{root}/{normalized}"

    def resolve_for_symbol(self, symbol: Symbol) -> OutputBuffer:
        return self.resolve(self.symbol_path(symbol))

    def reset(self) -> None:
        """Discard every buffer without writing it."""
        if self._buffers:
            self.logger.debug("Discarding %d buffer(s)", len(self._buffers))
        self._buffers.clear()


__all__ = ["DEFAULT_SOURCE_ROOT", "WriterRegistry", "normalize_path"]
