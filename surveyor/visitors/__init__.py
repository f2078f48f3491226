"""Visitor plugins and lookup by name."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Iterable, List, Sequence, Set

from .base import (
    AstContext,
    Directive,
    ErrorReporter,
    PostAnalysisCallback,
    PreAnalysisCallback,
    RunFinishedCallback,
    SurveyorContext,
    VisitorCapabilities,
)
from .errors import ErrorSurveyor
from .occurrences import SoftKeywordCollector

_ENTRY_POINT_GROUP = "surveyor.visitors"

_BUILTIN_FACTORIES: dict[str, Callable[[], object]] = {
    "errors": ErrorSurveyor,
    "occurrences": SoftKeywordCollector,
}


def available_visitors() -> List[str]:
    """Names accepted by ``load_visitors``: built-ins first, then entry points."""
    names = list(_BUILTIN_FACTORIES)
    for entry in _iter_entry_points():
        if entry.name.lower() not in names:
            names.append(entry.name.lower())
    return names


def load_visitors(names: Sequence[str]) -> List[object]:
    """Instantiate visitors by name, in the order requested."""
    factories: dict[str, Callable[[], object]] = dict(_BUILTIN_FACTORIES)
    for entry in _iter_entry_points():
        key = entry.name.lower()
        if key in factories:
            continue
        factories[key] = _entry_point_factory(entry)

    missing = [name for name in names if name.lower() not in factories]
    if missing:
        raise ValueError(f"Unknown visitors requested: {', '.join(sorted(set(missing)))}")

    visitors: List[object] = []
    seen: Set[str] = set()
    for name in names:
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)
        visitors.append(factories[key]())
    return visitors


def _entry_point_factory(entry: metadata.EntryPoint) -> Callable[[], object]:
    def _factory() -> object:
        try:
            loaded = entry.load()
        except Exception as exc:
            raise RuntimeError(f"Failed to load visitor entry point '{entry.name}': {exc}") from exc
        return _coerce_visitor(loaded)

    return _factory


def _coerce_visitor(obj: object) -> object:
    if isinstance(obj, type):
        return obj()
    if any(VisitorCapabilities.probe(obj).hooks().values()):
        return obj
    if callable(obj):
        return obj()
    raise TypeError("Visitor entry point must be a class, a factory or a visitor instance")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "AstContext",
    "Directive",
    "ErrorReporter",
    "ErrorSurveyor",
    "PostAnalysisCallback",
    "PreAnalysisCallback",
    "RunFinishedCallback",
    "SoftKeywordCollector",
    "SurveyorContext",
    "VisitorCapabilities",
    "available_visitors",
    "load_visitors",
]
