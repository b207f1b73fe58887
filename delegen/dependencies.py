"""Aggregation of dependency records across every live buffer."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from .logging import get_logger
from .models import DependencyRecord
from .registry import WriterRegistry

# Every generated package needs these, whatever was emitted.
BASELINE_DEPENDENCIES: tuple[DependencyRecord, ...] = (
    DependencyRecord(package="tslib", version="^2.6.2", dependency_type="dependencies"),
)

_LOGGER = get_logger("dependencies")


class DependencyAggregator:
    """Flattens baseline records and per-buffer records into one sequence."""

    def __init__(
        self,
        registry: WriterRegistry,
        baseline: Optional[Sequence[DependencyRecord]] = None,
    ) -> None:
        self.registry = registry
        self.baseline = tuple(BASELINE_DEPENDENCIES if baseline is None else baseline)

    def collect_all(self) -> List[DependencyRecord]:
        """Return baseline records followed by each buffer's records.

        Duplicates are kept; callers that need a unique set should use
        :func:`group_dependencies`.
        """
        resolved = list(self.baseline)
        for buffer in self.registry:
            resolved.extend(buffer.dependencies)
        return resolved


def record_from_dict(payload: object) -> Optional[DependencyRecord]:
    """Build a record from ``{package, version, type?, properties?}`` or return None."""
    if not isinstance(payload, dict):
        return None
    package = payload.get("package")
    version = payload.get("version")
    dependency_type = payload.get("type", "dependencies")
    properties = payload.get("properties") or {}
    if not isinstance(package, str) or not package:
        return None
    if not isinstance(version, (str, int, float)) or isinstance(version, bool):
        return None
    if not isinstance(dependency_type, str) or not isinstance(properties, dict):
        return None
    return DependencyRecord(
        package=package,
        version=str(version),
        dependency_type=dependency_type,
        properties=tuple(sorted((str(k), str(v)) for k, v in properties.items())),
    )


def group_dependencies(records: Iterable[DependencyRecord]) -> Dict[str, Dict[str, str]]:
    """Collapse records into ``{dependency_type: {package: version}}``.

    The first version registered for a package wins; later conflicting
    versions are reported and ignored.
    """
    grouped: Dict[str, Dict[str, str]] = {}
    for record in records:
        packages = grouped.setdefault(record.dependency_type, {})
        existing = packages.get(record.package)
        if existing is None:
            packages[record.package] = record.version
        elif existing != record.version:
            _LOGGER.warning(
                "Conflicting versions for %s (%s): keeping %s, ignoring %s",
                record.package,
                record.dependency_type,
                existing,
                record.version,
            )
    return grouped


__all__ = [
    "BASELINE_DEPENDENCIES",
    "DependencyAggregator",
    "group_dependencies",
    "record_from_dict",
]
