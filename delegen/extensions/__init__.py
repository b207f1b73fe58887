"""Emission extensions and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Iterable, List, Sequence, Set

from .base import Extension, SymbolProvider, extension_name
from .dispatcher import ExtensionHookDispatcher, WriterConsumer
from .trace import SectionTraceExtension

_ENTRY_POINT_GROUP = "delegen.extensions"

# Builtins only run when named explicitly; they alter output.
_BUILTIN_FACTORIES: dict[str, Callable[[], Extension]] = {
    "trace": SectionTraceExtension,
}


def discover_extensions(enabled: Sequence[str] | None = None) -> List[Extension]:
    """Return instantiated extensions in registration order.

    Builtins are included when named in ``enabled``. Entry-point extensions
    are included when named, or all of them when ``enabled`` is ``None``.
    """

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    extensions: List[Extension] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], Extension]) -> None:
        key = name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        if key in seen:
            return
        instance = factory()
        if not isinstance(instance, Extension):
            raise TypeError(f"Extension factory for '{name}' did not return an Extension instance")
        extensions.append(instance)
        seen.add(key)
        if enabled_set is not None:
            enabled_set.discard(key)

    if enabled is not None:
        for name in enabled:
            factory = _BUILTIN_FACTORIES.get(name.lower())
            if factory is not None:
                _add(name, factory)

    for entry in _iter_entry_points():
        name = entry.name
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - defensive guard
            raise RuntimeError(f"Failed to load extension entry point '{name}': {exc}") from exc

        def _factory(obj: object = loaded) -> Extension:
            return _coerce_extension(obj)

        _add(name, _factory)

    if enabled_set:
        missing = ", ".join(sorted(enabled_set))
        raise ValueError(f"Unknown extensions requested: {missing}")

    return extensions


def _coerce_extension(obj: object) -> Extension:
    if isinstance(obj, Extension):
        return obj
    if isinstance(obj, type) and issubclass(obj, Extension):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Extension):
            return instance
    raise TypeError("Extension entry point must be an Extension subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points(group=_ENTRY_POINT_GROUP)


__all__ = [
    "Extension",
    "ExtensionHookDispatcher",
    "SectionTraceExtension",
    "SymbolProvider",
    "WriterConsumer",
    "discover_extensions",
    "extension_name",
]
