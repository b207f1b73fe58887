"""Materialization of every live buffer to persistent storage."""

from __future__ import annotations

from .errors import FlushError
from .logging import get_logger, target_logger
from .registry import WriterRegistry
from .stores import FileStorage


class FlushCoordinator:
    """Writes each buffer once and empties the registry.

    The first storage failure aborts the remaining writes (fail-fast). The
    registry is emptied either way so a half-flushed run cannot be flushed
    again.
    """

    def __init__(self, registry: WriterRegistry, storage: FileStorage) -> None:
        self.registry = registry
        self.storage = storage
        self.logger = get_logger("flush")

    def flush(self) -> int:
        """Write every buffer and return how many files were written."""
        pending = self.registry.items()
        if not pending:
            return 0

        written = 0
        try:
            for path, buffer in pending:
                try:
                    self.storage.write_file(path, buffer.to_string())
                except Exception as exc:
                    target_logger("flush", path).error(
                        "Flush aborted at %s after %d of %d file(s): %s",
                        path,
                        written,
                        len(pending),
                        exc,
                    )
                    raise FlushError(path, exc) from exc
                written += 1
                target_logger("flush", path).debug("Wrote %s", path)
        finally:
            self.registry.reset()

        self.logger.info("Flushed %d file(s)", written)
        return written


__all__ = ["FlushCoordinator"]
