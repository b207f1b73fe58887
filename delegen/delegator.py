"""Routing of generation requests to per-file output buffers."""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from .config import DelegatorConfig
from .dependencies import DependencyAggregator
from .extensions import Extension, ExtensionHookDispatcher, SymbolProvider, WriterConsumer
from .flush import FlushCoordinator
from .logging import get_logger
from .models import ContextOption, DependencyRecord, EmissionTarget
from .registry import DEFAULT_SOURCE_ROOT, WriterRegistry
from .stores import FileStorage
from .writer import OutputBuffer


class Delegator:
    """Hands out buffers for shapes and files and writes them all at the end.

    Buffers are created lazily, reused for every later request that targets
    the same normalized path, and kept in memory until :meth:`flush_writers`.
    """

    def __init__(
        self,
        settings: Optional[DelegatorConfig],
        model: Any,
        storage: FileStorage,
        symbol_provider: Optional[SymbolProvider] = None,
        extensions: Iterable[Extension] = (),
    ) -> None:
        self.settings = settings
        self.model = model
        self.symbol_provider = symbol_provider
        source_root = settings.output.source_root if settings is not None else DEFAULT_SOURCE_ROOT
        baseline = settings.baseline_dependencies if settings is not None else None
        self.registry = WriterRegistry(source_root=source_root)
        self.aggregator = DependencyAggregator(self.registry, baseline)
        self.dispatcher = ExtensionHookDispatcher(extensions, settings=settings, model=model)
        self.flusher = FlushCoordinator(self.registry, storage)
        self.logger = get_logger("delegator")

    def use_shape_writer(
        self,
        shape: Any,
        writer_consumer: WriterConsumer,
        provider: Optional[SymbolProvider] = None,
    ) -> None:
        """Emit into the buffer that owns ``shape``'s symbol.

        The symbol's declare-time imports and dependencies are registered on
        the buffer before extensions and ``writer_consumer`` run.
        """
        provider = provider or self.symbol_provider
        if provider is None:
            raise ValueError("A symbol provider is required to emit shapes")
        symbol = provider.to_symbol(shape)
        buffer = self.registry.resolve_for_symbol(symbol)

        buffer.add_import_references(symbol, ContextOption.DECLARE)
        for record in symbol.dependencies:
            buffer.add_dependency(record)

        target = EmissionTarget(path=buffer.path, symbol=symbol, shape=shape)
        self.logger.debug("Emitting %s", target.describe())
        self.dispatcher.dispatch(buffer, target, writer_consumer, symbol_provider=provider)

    def use_file_writer(self, filename: str, writer_consumer: WriterConsumer) -> None:
        """Emit into the buffer for a raw file path."""
        buffer = self.registry.resolve(filename)
        target = EmissionTarget(path=buffer.path)
        self.logger.debug("Emitting %s", target.describe())
        self.dispatcher.dispatch(
            buffer, target, writer_consumer, symbol_provider=self.symbol_provider
        )

    def checkout_file_writer(self, filename: str) -> OutputBuffer:
        """Return the buffer for ``filename`` without running extensions."""
        return self.registry.resolve(filename)

    def get_dependencies(self) -> List[DependencyRecord]:
        """Return baseline dependencies plus every dependency registered so far."""
        return self.aggregator.collect_all()

    def flush_writers(self) -> int:
        """Write all pending buffers and clear the registry."""
        return self.flusher.flush()

    def reset(self) -> None:
        """Drop all pending buffers without writing them."""
        self.registry.reset()


__all__ = ["Delegator"]
