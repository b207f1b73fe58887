"""Declarative generation plans rendered through the delegator."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from .delegator import Delegator
from .dependencies import record_from_dict
from .errors import PlanError
from .logging import get_logger
from .models import ContextOption, DependencyRecord, Symbol, SymbolReference
from .writer import OutputBuffer

_LOGGER = get_logger("plan")
_PLAN_KEYS = ("vars", "shapes", "emit")


@dataclass
class ReferenceEntry:
    """Reference from a shape to another shape or to an external symbol."""

    shape: Optional[str] = None
    name: Optional[str] = None
    namespace: str = ""
    alias: Optional[str] = None
    options: frozenset = frozenset({ContextOption.USE})


@dataclass
class ShapeEntry:
    """Shape definition in the plan's model."""

    id: str
    name: str
    file: str
    namespace: str = ""
    dependencies: List[DependencyRecord] = field(default_factory=list)
    references: List[ReferenceEntry] = field(default_factory=list)


@dataclass
class EmitEntry:
    """One generation request: a shape id or a raw file path plus a template."""

    shape: Optional[str] = None
    file: Optional[str] = None
    template: Optional[str] = None
    template_file: Optional[str] = None
    section: Optional[str] = None


@dataclass
class GenerationPlan:
    root: Path
    shapes: Dict[str, ShapeEntry] = field(default_factory=dict)
    emit: List[EmitEntry] = field(default_factory=list)
    variables: Dict[str, Any] = field(default_factory=dict)


class PlanSymbolProvider:
    """Resolves plan shape ids to symbols."""

    def __init__(self, plan: GenerationPlan) -> None:
        self.plan = plan
        self._cache: Dict[str, Symbol] = {}

    def to_symbol(self, shape: str) -> Symbol:
        return self._resolve(shape, ())

    def _resolve(self, shape_id: str, trail: tuple) -> Symbol:
        cached = self._cache.get(shape_id)
        if cached is not None:
            return cached
        entry = self.plan.shapes.get(shape_id)
        if entry is None:
            raise PlanError(f"Unknown shape '{shape_id}'")
        if shape_id in trail:
            # Cycles are cut: the inner reference carries no further references.
            return Symbol(name=entry.name, namespace=entry.namespace, definition_file=entry.file)

        references = []
        for ref in entry.references:
            if ref.shape is not None:
                target = self._resolve(ref.shape, trail + (shape_id,))
            else:
                target = Symbol(name=ref.name or "", namespace=ref.namespace)
            references.append(SymbolReference(symbol=target, alias=ref.alias, options=ref.options))

        symbol = Symbol(
            name=entry.name,
            namespace=entry.namespace,
            definition_file=entry.file,
            references=tuple(references),
            dependencies=tuple(entry.dependencies),
        )
        if not trail:
            self._cache[shape_id] = symbol
        return symbol


def load_plan(path: Path) -> GenerationPlan:
    """Parse a YAML generation plan."""
    plan_path = Path(path).expanduser().resolve()
    try:
        text = plan_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PlanError(f"Cannot read plan {plan_path}: {exc}") from exc
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise PlanError(f"Failed to parse {plan_path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise PlanError("A generation plan must contain a mapping at the root")
    unknown = sorted(str(key) for key in data if key not in _PLAN_KEYS)
    if unknown:
        raise PlanError(
            f"Unknown plan key(s): {', '.join(unknown)} (expected {', '.join(_PLAN_KEYS)})"
        )

    plan = GenerationPlan(root=plan_path.parent)

    variables = data.get("vars") or {}
    if not isinstance(variables, dict):
        raise PlanError("'vars' must be a mapping")
    plan.variables = dict(variables)

    shapes = data.get("shapes") or {}
    if not isinstance(shapes, dict):
        raise PlanError("'shapes' must be a mapping of shape id to definition")
    for shape_id, raw in shapes.items():
        plan.shapes[str(shape_id)] = _parse_shape(str(shape_id), raw)

    emit = data.get("emit") or []
    if not isinstance(emit, list):
        raise PlanError("'emit' must be a list")
    for index, raw in enumerate(emit):
        plan.emit.append(_parse_emit(index, raw, plan))

    return plan


def execute_plan(plan: GenerationPlan, delegator: Delegator) -> int:
    """Run every emit entry through the delegator and return how many ran."""
    env = _create_env(plan.root)
    provider = PlanSymbolProvider(plan)
    for entry in plan.emit:
        template = _load_template(env, entry)
        if entry.shape is not None:
            shape = plan.shapes[entry.shape]

            def _emit_shape(buffer: OutputBuffer, entry=entry, template=template, shape=shape) -> None:
                symbol = provider.to_symbol(shape.id)
                _write(buffer, entry, template, symbol=symbol, shape=shape, variables=plan.variables)

            delegator.use_shape_writer(shape.id, _emit_shape, provider)
        else:

            def _emit_file(buffer: OutputBuffer, entry=entry, template=template) -> None:
                _write(buffer, entry, template, symbol=None, shape=None, variables=plan.variables)

            delegator.use_file_writer(entry.file or "", _emit_file)
    _LOGGER.debug("Executed %d plan entries", len(plan.emit))
    return len(plan.emit)


def _write(
    buffer: OutputBuffer,
    entry: EmitEntry,
    template: Any,
    *,
    symbol: Optional[Symbol],
    shape: Optional[ShapeEntry],
    variables: Mapping[str, Any],
) -> None:
    try:
        text = template.render(
            symbol=symbol,
            shape=shape,
            path=buffer.path,
            module=buffer.module_name,
            vars=variables,
        )
    except TemplateError as exc:
        raise PlanError(f"Template for {buffer.path} failed to render: {exc}") from exc
    text = text.rstrip("\n")
    if entry.section:
        with buffer.section(entry.section):
            buffer.write(text)
    else:
        buffer.write(text)


def _create_env(root: Path) -> Environment:
    loader = FileSystemLoader([str(root)])
    return Environment(
        loader=loader,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=False,
        undefined=StrictUndefined,
    )


def _load_template(env: Environment, entry: EmitEntry) -> Any:
    try:
        if entry.template_file:
            return env.get_template(entry.template_file)
        return env.from_string(entry.template or "")
    except TemplateError as exc:
        raise PlanError(f"Cannot load template for {entry.shape or entry.file}: {exc}") from exc


def _parse_shape(shape_id: str, raw: Any) -> ShapeEntry:
    if not isinstance(raw, dict):
        raise PlanError(f"Shape '{shape_id}' must be a mapping")
    file = raw.get("file")
    if not isinstance(file, str) or not file:
        raise PlanError(f"Shape '{shape_id}' needs a 'file'")
    dependencies = []
    for index, item in enumerate(raw.get("dependencies") or []):
        record = record_from_dict(item)
        if record is None:
            raise PlanError(f"Shape '{shape_id}' dependency {index} needs a package and a version")
        dependencies.append(record)
    references = [_parse_reference(shape_id, item) for item in raw.get("references") or []]
    return ShapeEntry(
        id=shape_id,
        name=str(raw.get("name") or shape_id),
        file=file,
        namespace=str(raw.get("namespace") or ""),
        dependencies=dependencies,
        references=references,
    )


def _parse_reference(shape_id: str, raw: Any) -> ReferenceEntry:
    if not isinstance(raw, dict):
        raise PlanError(f"Shape '{shape_id}' has a malformed reference")
    options_raw = raw.get("options") or ["use"]
    if isinstance(options_raw, str):
        options_raw = [options_raw]
    try:
        options = frozenset(ContextOption(str(option).lower()) for option in options_raw)
    except ValueError as exc:
        raise PlanError(f"Shape '{shape_id}' has an unknown reference option: {exc}") from exc
    shape = raw.get("shape")
    name = raw.get("name")
    if shape is None and not name:
        raise PlanError(f"Shape '{shape_id}' reference needs 'shape' or 'name'")
    return ReferenceEntry(
        shape=str(shape) if shape is not None else None,
        name=str(name) if name else None,
        namespace=str(raw.get("namespace") or ""),
        alias=str(raw["alias"]) if raw.get("alias") else None,
        options=options,
    )


def _parse_emit(index: int, raw: Any, plan: GenerationPlan) -> EmitEntry:
    if not isinstance(raw, dict):
        raise PlanError(f"emit[{index}] must be a mapping")
    shape = raw.get("shape")
    file = raw.get("file")
    if (shape is None) == (file is None):
        raise PlanError(f"emit[{index}] needs exactly one of 'shape' or 'file'")
    if shape is not None and str(shape) not in plan.shapes:
        raise PlanError(f"emit[{index}] references unknown shape '{shape}'")
    template = raw.get("template")
    template_file = raw.get("template_file")
    if template is None and template_file is None:
        raise PlanError(f"emit[{index}] needs a 'template' or 'template_file'")
    return EmitEntry(
        shape=str(shape) if shape is not None else None,
        file=str(file) if file is not None else None,
        template=str(template) if template is not None else None,
        template_file=str(template_file) if template_file is not None else None,
        section=str(raw["section"]) if raw.get("section") else None,
    )


__all__ = [
    "EmitEntry",
    "GenerationPlan",
    "PlanSymbolProvider",
    "ReferenceEntry",
    "ShapeEntry",
    "execute_plan",
    "load_plan",
]
