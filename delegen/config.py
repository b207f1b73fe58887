"""Configuration loading for delegen (.delegen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .dependencies import record_from_dict
from .errors import DelegatorError, PathNormalizationError
from .models import DependencyRecord
from .registry import DEFAULT_SOURCE_ROOT, normalize_path

CONFIG_FILENAME = ".delegen.yml"


class ConfigError(DelegatorError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class OutputConfig:
    """Where generated files land."""

    source_root: str = DEFAULT_SOURCE_ROOT
    directory: Optional[Path] = None


@dataclass
class ExtensionConfig:
    """Extension selection; ``None`` enables every entry-point extension."""

    enabled: Optional[List[str]] = None


@dataclass
class DelegatorConfig:
    """Represents the settings defined in .delegen.yml."""

    root: Path
    output: OutputConfig = field(default_factory=OutputConfig)
    extensions: ExtensionConfig = field(default_factory=ExtensionConfig)
    baseline_dependencies: Optional[List[DependencyRecord]] = None

    @property
    def output_dir(self) -> Path:
        return self.output.directory or (self.root / "build" / "codegen")


def load_config(config_path: Path) -> DelegatorConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DelegatorConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    output = OutputConfig()
    output_data = _as_dict(data.get("output"))
    if "source_root" in output_data:
        raw_root = output_data.get("source_root")
        source_root = _as_str(raw_root) if raw_root is not None else ""
        if source_root is None:
            raise ConfigError("output.source_root must be a string")
        if source_root:
            try:
                source_root = normalize_path(source_root)
            except PathNormalizationError as exc:
                raise ConfigError(f"Invalid output.source_root: {exc}") from exc
        output.source_root = source_root
    directory = _as_str(output_data.get("directory"))
    if directory:
        output.directory = (root / directory).resolve()

    extensions = ExtensionConfig()
    extension_data = _as_dict(data.get("extensions"))
    if "enabled" in extension_data:
        extensions.enabled = _as_str_list(extension_data.get("enabled"))

    baseline = None
    dependency_data = _as_dict(data.get("dependencies"))
    if "baseline" in dependency_data:
        baseline = _parse_records(dependency_data.get("baseline"), "dependencies.baseline")

    return DelegatorConfig(
        root=root,
        output=output,
        extensions=extensions,
        baseline_dependencies=baseline,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _parse_records(value: Any, where: str) -> List[DependencyRecord]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{where} must be a list")
    records: List[DependencyRecord] = []
    for index, item in enumerate(value):
        record = record_from_dict(item)
        if record is None:
            raise ConfigError(f"{where}[{index}] needs a package and a version")
        records.append(record)
    return records


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DelegatorConfig",
    "ExtensionConfig",
    "OutputConfig",
    "load_config",
]
