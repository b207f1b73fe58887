"""Storage backends that receive flushed output files."""

from .file_manifest import FileManifest, FileStorage, InMemoryStorage

__all__ = ["FileManifest", "FileStorage", "InMemoryStorage"]
