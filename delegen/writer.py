"""In-memory output buffer for a single generated file."""

from __future__ import annotations

import posixpath
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import ExtensionFailure, ScopeError
from .models import ContextOption, DependencyRecord, Symbol

SectionInterceptor = Callable[[str], str]

_INDENT = "  "
_ANY_SECTION = "*"


@dataclass
class ScopeMarker:
    """Transient state owned by one push/pop scope of a buffer."""

    interceptors: List[Tuple[str, SectionInterceptor, Optional[str]]] = field(default_factory=list)
    context: Dict[str, object] = field(default_factory=dict)
    indent: int = 0
    open_sections: int = 0


class OutputBuffer:
    """Append-only log of writes destined for one output file.

    Text, imports and dependency records are durable for the lifetime of the
    buffer. Section interceptors, context values and indentation live on the
    innermost :class:`ScopeMarker` and disappear when that scope is popped.
    """

    def __init__(self, path: str, *, source_root: str = "") -> None:
        self.path = path
        self.module_name = _strip_extension(path)
        prefix = f"{source_root}/" if source_root else ""
        if prefix and self.module_name.startswith(prefix):
            self._import_module = self.module_name[len(prefix):]
        else:
            self._import_module = self.module_name
        self._writes: List[str] = []
        self._dependencies: List[DependencyRecord] = []
        self._imports: Dict[str, Dict[str, str]] = {}
        self._scopes: List[ScopeMarker] = [ScopeMarker()]
        self._owner: Optional[str] = None

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"OutputBuffer(path={self.path!r}, writes={len(self._writes)})"

    # ------------------------------------------------------------------
    # Durable content

    @property
    def writes(self) -> Tuple[str, ...]:
        return tuple(self._writes)

    @property
    def has_content(self) -> bool:
        return bool(self._writes)

    @property
    def dependencies(self) -> Tuple[DependencyRecord, ...]:
        return tuple(self._dependencies)

    @property
    def imports(self) -> Dict[str, Dict[str, str]]:
        return {module: dict(names) for module, names in self._imports.items()}

    def write(self, text: str) -> "OutputBuffer":
        """Append one fragment, indented to the current scope level."""
        level = self._current.indent
        if level and text:
            pad = _INDENT * level
            text = "\n".join(pad + line if line else line for line in text.split("\n"))
        self._writes.append(text)
        return self

    def write_lines(self, lines: Iterable[str]) -> "OutputBuffer":
        for line in lines:
            self.write(line)
        return self

    def blank_line(self) -> "OutputBuffer":
        self._writes.append("")
        return self

    def add_dependency(self, record: DependencyRecord) -> "OutputBuffer":
        self._dependencies.append(record)
        return self

    def add_import(self, name: str, module: str, alias: Optional[str] = None) -> "OutputBuffer":
        """Record that ``name`` must be imported from ``module``.

        Relative modules (``./`` or ``../``) are anchored at the source root and
        rewritten relative to this buffer's own module. Imports from the
        buffer's own module are dropped.
        """
        if module.startswith("./") or module.startswith("../"):
            relative = self._relativize(module)
            if relative is None:
                return self
            module = relative
        self._imports.setdefault(module, {})[alias or name] = name
        return self

    def add_import_references(self, symbol: Symbol, option: ContextOption) -> "OutputBuffer":
        """Import every reference of ``symbol`` that applies in ``option``."""
        for reference in symbol.references:
            if not reference.applies_to(option):
                continue
            target = reference.symbol
            if target.namespace:
                self.add_import(target.name, target.namespace, reference.alias)
            for record in target.dependencies:
                self.add_dependency(record)
        return self

    def to_string(self) -> str:
        body = "\n".join(self._writes)
        header = self._render_imports()
        if header and body:
            return f"{header}\n\n{body}"
        return header or body

    # ------------------------------------------------------------------
    # Scoped state

    @property
    def depth(self) -> int:
        """Number of scopes pushed above the baseline."""
        return len(self._scopes) - 1

    def push_state(self) -> "OutputBuffer":
        self._scopes.append(ScopeMarker(indent=self._current.indent))
        return self

    def pop_state(self) -> "OutputBuffer":
        if len(self._scopes) == 1:
            raise ScopeError(f"Cannot pop the baseline scope of {self.path}")
        if self._current.open_sections:
            raise ScopeError(f"Cannot pop a scope of {self.path} while a section is open")
        self._scopes.pop()
        return self

    def on_section(self, name: str, interceptor: SectionInterceptor) -> "OutputBuffer":
        """Transform the text of section ``name`` when it closes, for this scope only.

        ``"*"`` matches every section. Interceptors attached while an
        extension hook runs are attributed to that extension, and their
        failures surface as :class:`ExtensionFailure`.
        """
        self._current.interceptors.append((name, interceptor, self._owner))
        return self

    @contextmanager
    def attributed_to(self, extension: str) -> Iterator["OutputBuffer"]:
        """Attribute interceptors attached inside the block to ``extension``."""
        previous = self._owner
        self._owner = extension
        try:
            yield self
        finally:
            self._owner = previous

    def put_context(self, key: str, value: object) -> "OutputBuffer":
        self._current.context[key] = value
        return self

    def get_context(self, key: str, default: object = None) -> object:
        for marker in reversed(self._scopes):
            if key in marker.context:
                return marker.context[key]
        return default

    def indent(self, levels: int = 1) -> "OutputBuffer":
        self._current.indent += levels
        return self

    def dedent(self, levels: int = 1) -> "OutputBuffer":
        if levels > self._current.indent:
            raise ScopeError(f"Cannot dedent {self.path} below column zero")
        self._current.indent -= levels
        return self

    @contextmanager
    def block(self, opening: str, closing: str) -> Iterator["OutputBuffer"]:
        self.write(opening)
        self.indent()
        try:
            yield self
        finally:
            self.dedent()
        self.write(closing)

    @contextmanager
    def section(self, name: str) -> Iterator["OutputBuffer"]:
        """Collect the writes made inside the block and run interceptors on them."""
        marker = self._current
        start = len(self._writes)
        marker.open_sections += 1
        try:
            yield self
        finally:
            marker.open_sections -= 1

        interceptors = self._interceptors_for(name)
        if not interceptors:
            return
        # The captured writes stay in place until every interceptor succeeded.
        text = "\n".join(self._writes[start:])
        for interceptor, owner in interceptors:
            try:
                text = interceptor(text)
            except Exception as exc:
                if owner is None:
                    raise
                raise ExtensionFailure(owner, f"section '{name}' of {self.path}", exc) from exc
        del self._writes[start:]
        if text:
            self._writes.append(text)

    def inject_section(self, name: str) -> "OutputBuffer":
        """Open and close an empty section so interceptors can contribute text."""
        with self.section(name):
            pass
        return self

    # ------------------------------------------------------------------
    # Internal helpers

    @property
    def _current(self) -> ScopeMarker:
        return self._scopes[-1]

    def _interceptors_for(self, name: str) -> List[Tuple[SectionInterceptor, Optional[str]]]:
        found: List[Tuple[SectionInterceptor, Optional[str]]] = []
        for marker in self._scopes:
            found.extend(
                (interceptor, owner)
                for key, interceptor, owner in marker.interceptors
                if key == name or key == _ANY_SECTION
            )
        return found

    def _relativize(self, module: str) -> Optional[str]:
        target = posixpath.normpath(module)
        if target == self._import_module:
            return None
        base = posixpath.dirname(self._import_module) or "."
        relative = posixpath.relpath(target, base)
        if not relative.startswith("."):
            relative = f"./{relative}"
        return relative

    def _render_imports(self) -> str:
        lines: List[str] = []
        for module, names in self._imports.items():
            rendered = [
                name if alias == name else f"{name} as {alias}"
                for alias, name in sorted(names.items())
            ]
            lines.append(f'import {{ {", ".join(rendered)} }} from "{module}";')
        return "\n".join(lines)


def _strip_extension(path: str) -> str:
    root, _ = posixpath.splitext(path)
    return root


__all__ = ["OutputBuffer", "ScopeMarker", "SectionInterceptor"]
