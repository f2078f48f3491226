"""Optional lifecycle hooks a visitor may implement, and how they are detected.

Visitors are plain objects. The driver probes each one once, when it is
registered, and only calls the hooks it finds. None of the hooks is required;
a visitor with no hooks at all is accepted and simply never called.

Hook order per run::

    pre_analysis -> (set_file_path, set_line_info, visit_<node type>*, report_errors)*
    -> post_analysis, repeated per root, then on_run_finished once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

from ..config import RunConfiguration
from ..engine.base import AnalysisContext
from ..models import AnalysisRoot, FileResult, LineInfo
from ..stats import AnalysisStats

NODE_CALLBACK_PREFIX = "visit_"


class Directive(Enum):
    """Decision returned by ``post_analysis``."""

    CONTINUE = "continue"
    STOP = "stop"


@dataclass
class SurveyorContext:
    """What a visitor sees of the root being analysed."""

    root: AnalysisRoot
    handle: AnalysisContext
    index: int
    total: int
    stats: AnalysisStats
    config: RunConfiguration

    @property
    def progress(self) -> str:
        return f"[{self.index}/{self.total}]"


@runtime_checkable
class PreAnalysisCallback(Protocol):
    def pre_analysis(self, context: SurveyorContext, *, sub_root: bool) -> None: ...


@runtime_checkable
class PostAnalysisCallback(Protocol):
    def post_analysis(self, context: SurveyorContext) -> Optional[Directive]: ...


@runtime_checkable
class AstContext(Protocol):
    def set_file_path(self, path: str) -> None: ...

    def set_line_info(self, line_info: LineInfo) -> None: ...


@runtime_checkable
class ErrorReporter(Protocol):
    def report_errors(self, result: FileResult) -> None: ...


@runtime_checkable
class RunFinishedCallback(Protocol):
    def on_run_finished(self) -> None: ...


def _hook(visitor: object, name: str) -> Optional[Callable[..., Any]]:
    candidate = getattr(visitor, name, None)
    return candidate if callable(candidate) else None


@dataclass(frozen=True)
class VisitorCapabilities:
    """Bound hooks found on one visitor; ``None`` marks an absent hook."""

    visitor: object
    pre_analysis: Optional[Callable[..., Any]] = None
    set_file_path: Optional[Callable[..., Any]] = None
    set_line_info: Optional[Callable[..., Any]] = None
    report_errors: Optional[Callable[..., Any]] = None
    post_analysis: Optional[Callable[..., Any]] = None
    on_run_finished: Optional[Callable[..., Any]] = None
    node_callbacks: Dict[str, Callable[..., Any]] = field(default_factory=dict)

    @classmethod
    def probe(cls, visitor: object) -> "VisitorCapabilities":
        node_callbacks: Dict[str, Callable[..., Any]] = {}
        for attribute in dir(visitor):
            if not attribute.startswith(NODE_CALLBACK_PREFIX):
                continue
            node_type = attribute[len(NODE_CALLBACK_PREFIX):]
            callback = _hook(visitor, attribute)
            if node_type and callback is not None:
                node_callbacks[node_type] = callback
        return cls(
            visitor=visitor,
            pre_analysis=_hook(visitor, "pre_analysis"),
            set_file_path=_hook(visitor, "set_file_path"),
            set_line_info=_hook(visitor, "set_line_info"),
            report_errors=_hook(visitor, "report_errors"),
            post_analysis=_hook(visitor, "post_analysis"),
            on_run_finished=_hook(visitor, "on_run_finished"),
            node_callbacks=node_callbacks,
        )

    @property
    def name(self) -> str:
        return type(self.visitor).__name__

    @property
    def wants_diagnostics(self) -> bool:
        return self.report_errors is not None

    @property
    def visits_nodes(self) -> bool:
        return bool(self.node_callbacks)

    def hooks(self) -> Dict[str, bool]:
        """Presence map of every hook, for logging."""
        return {
            "pre_analysis": self.pre_analysis is not None,
            "set_file_path": self.set_file_path is not None,
            "set_line_info": self.set_line_info is not None,
            "report_errors": self.report_errors is not None,
            "post_analysis": self.post_analysis is not None,
            "on_run_finished": self.on_run_finished is not None,
            "nodes": self.visits_nodes,
        }


__all__ = [
    "AstContext",
    "Directive",
    "ErrorReporter",
    "NODE_CALLBACK_PREFIX",
    "PostAnalysisCallback",
    "PreAnalysisCallback",
    "RunFinishedCallback",
    "SurveyorContext",
    "VisitorCapabilities",
]
