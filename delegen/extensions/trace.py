"""Builtin extension that stamps closed sections with their emission target."""

from __future__ import annotations

from typing import Any

from ..models import EmissionTarget
from ..writer import OutputBuffer
from .base import Extension, SymbolProvider


class SectionTraceExtension(Extension):
    """Prefixes every section closed during an emission with a trace comment."""

    name = "trace"

    def __init__(self, comment_prefix: str = "//") -> None:
        self.comment_prefix = comment_prefix

    def on_emission(
        self,
        settings: Any,
        model: Any,
        symbol_provider: SymbolProvider | None,
        buffer: OutputBuffer,
        target: EmissionTarget,
    ) -> None:
        label = target.symbol.name if target.symbol is not None else target.path
        buffer.put_context("trace.target", label)
        buffer.on_section("*", lambda text: self._stamp(label, text))

    def _stamp(self, label: str, text: str) -> str:
        banner = f"{self.comment_prefix} generated for {label}"
        return f"{banner}\n{text}" if text else banner
