"""Base classes for emission extensions."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Protocol

from ..models import EmissionTarget, Symbol

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..writer import OutputBuffer


class SymbolProvider(Protocol):
    """Maps shapes from the model being generated to resolved symbols."""

    def to_symbol(self, shape: Any) -> Symbol:
        """Return the symbol that names ``shape``."""


class Extension(ABC):
    """Contract for extensions that observe or decorate every emission."""

    name: str = ""

    @abstractmethod
    def on_emission(
        self,
        settings: Any,
        model: Any,
        symbol_provider: SymbolProvider | None,
        buffer: "OutputBuffer",
        target: EmissionTarget,
    ) -> None:
        """Attach transient behavior to ``buffer`` before caller logic writes to it."""


def extension_name(extension: object) -> str:
    """Return the identity used for an extension in diagnostics."""
    name = getattr(extension, "name", "")
    return name or type(extension).__name__
