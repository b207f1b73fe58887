"""Core data models shared across delegen components."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class DependencyRecord:
    """External package a generated file needs."""

    package: str
    version: str
    dependency_type: str = "dependencies"
    properties: Tuple[Tuple[str, str], ...] = ()

    def to_dict(self) -> dict:
        data = {
            "package": self.package,
            "version": self.version,
            "type": self.dependency_type,
        }
        if self.properties:
            data["properties"] = dict(self.properties)
        return data


class ContextOption(Enum):
    """Contexts in which a symbol reference requires an import."""

    DECLARE = "declare"
    USE = "use"


@dataclass(frozen=True)
class SymbolReference:
    """Reference from one symbol to another it needs at declaration or use time."""

    symbol: "Symbol"
    alias: Optional[str] = None
    options: FrozenSet[ContextOption] = frozenset({ContextOption.USE})

    def applies_to(self, option: ContextOption) -> bool:
        return option in self.options


@dataclass(frozen=True)
class Symbol:
    """Resolved name of a generated construct and where it is defined."""

    name: str
    namespace: str = ""
    definition_file: str = ""
    references: Tuple[SymbolReference, ...] = ()
    dependencies: Tuple[DependencyRecord, ...] = ()


@dataclass
class EmissionTarget:
    """Identity an emission request is routed by."""

    path: str
    symbol: Optional[Symbol] = None
    shape: Any = field(default=None, compare=False)

    def describe(self) -> str:
        if self.symbol is not None:
            return f"symbol '{self.symbol.name}' ({self.path})"
        return self.path
