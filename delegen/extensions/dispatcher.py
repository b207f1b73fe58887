"""Scoped dispatch of extension hooks around caller emission logic."""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional

from ..errors import ExtensionFailure
from ..logging import target_logger
from ..models import EmissionTarget
from ..writer import OutputBuffer
from .base import Extension, SymbolProvider, extension_name

WriterConsumer = Callable[[OutputBuffer], None]


class ExtensionHookDispatcher:
    """Runs registered extensions, then caller logic, inside one buffer scope.

    A scope marker is pushed before the first hook runs and popped after the
    caller returns, so section interceptors, context values and indentation
    attached for one emission never leak into the next one.
    """

    def __init__(
        self,
        extensions: Iterable[Extension] = (),
        *,
        settings: Any = None,
        model: Any = None,
    ) -> None:
        self.extensions: List[Extension] = list(extensions)
        self.settings = settings
        self.model = model

    def dispatch(
        self,
        buffer: OutputBuffer,
        target: EmissionTarget,
        writer_consumer: WriterConsumer,
        *,
        symbol_provider: Optional[SymbolProvider] = None,
    ) -> None:
        depth = buffer.depth
        buffer.push_state()
        try:
            self._run_hooks(buffer, target, symbol_provider)
            try:
                writer_consumer(buffer)
            except ExtensionFailure as exc:
                # Raised by an interceptor an extension attached to this scope.
                target_logger("extensions", target.path).error("%s", exc)
                raise
        finally:
            while buffer.depth > depth:
                buffer.pop_state()

    def _run_hooks(
        self,
        buffer: OutputBuffer,
        target: EmissionTarget,
        symbol_provider: Optional[SymbolProvider],
    ) -> None:
        logger = target_logger("extensions", target.path)
        for extension in self.extensions:
            name = extension_name(extension)
            logger.debug("Running extension %s for %s", name, target.describe())
            try:
                with buffer.attributed_to(name):
                    extension.on_emission(self.settings, self.model, symbol_provider, buffer, target)
            except Exception as exc:
                logger.error(
                    "Extension %s failed while emitting %s: %s", name, target.describe(), exc
                )
                raise ExtensionFailure(name, target.describe(), exc) from exc


__all__ = ["ExtensionHookDispatcher", "WriterConsumer"]
