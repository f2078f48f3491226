"""Finds soft keywords used as identifiers.

``match``, ``case`` and ``type`` are only keywords in some positions, so code
may still use them as ordinary names. This visitor counts where that happens,
split into declarations and references, and which projects do it.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, TextIO

from ..engine.nodes import node_text
from ..models import LineInfo
from .base import Directive, SurveyorContext

DEFAULT_IDENTIFIERS = ("match", "case", "type")

_TARGET_PARENTS = {"assignment", "augmented_assignment", "for_statement", "for_in_clause"}
_PARAMETER_PARENTS = {
    "parameters",
    "lambda_parameters",
    "list_splat_pattern",
    "dictionary_splat_pattern",
}


@dataclass
class Occurrences:
    decls: int = 0
    refs: int = 0
    projects: Set[str] = field(default_factory=set)


def _same(node: Any, other: Any) -> bool:
    return (
        other is not None
        and node.start_byte == other.start_byte
        and node.end_byte == other.end_byte
    )


def in_declaration_context(node: Any) -> bool:
    """Return True when the identifier ``node`` introduces a name rather than reading one."""
    parent = node.parent
    if parent is None:
        return False
    kind = parent.type
    if kind in {"function_definition", "class_definition"}:
        return _same(node, parent.child_by_field_name("name"))
    if kind in _PARAMETER_PARENTS:
        return True
    if kind in {"default_parameter", "typed_default_parameter"}:
        return _same(node, parent.child_by_field_name("name"))
    if kind == "typed_parameter":
        return bool(parent.children) and _same(node, parent.children[0])
    if kind in _TARGET_PARENTS:
        return _same(node, parent.child_by_field_name("left"))
    if kind in {"pattern_list", "tuple_pattern"}:
        grandparent = parent.parent
        return grandparent is not None and grandparent.type in _TARGET_PARENTS
    if kind == "aliased_import":
        return _same(node, parent.child_by_field_name("alias"))
    return False


def project_name(directory_name: str) -> str:
    # cache/requests-2.31.0 => requests
    return directory_name.split("-")[0]


class SoftKeywordCollector:
    """Counts identifiers named like soft keywords across every analysed root."""

    def __init__(
        self,
        identifiers: Sequence[str] = DEFAULT_IDENTIFIERS,
        out: Optional[TextIO] = None,
        *,
        stop_after: Optional[int] = None,
    ) -> None:
        self._out = out
        self.stop_after = stop_after
        self.occurrences: Dict[str, Occurrences] = {name: Occurrences() for name in identifiers}
        self.reports: List[str] = []
        self.roots: Set[str] = set()
        self.file_path: Optional[str] = None
        self.line_info: Optional[LineInfo] = None
        self.context: Optional[SurveyorContext] = None

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    def pre_analysis(self, context: SurveyorContext, *, sub_root: bool) -> None:
        self.context = context
        name = context.root.display_name if sub_root else context.root.name
        self.out.write(f"Analyzing '{name}' • {context.progress}...\n")

    def set_file_path(self, path: str) -> None:
        self.file_path = path

    def set_line_info(self, line_info: LineInfo) -> None:
        self.line_info = line_info

    def visit_identifier(self, node: Any) -> None:
        if node.parent is not None and node.parent.type == "identifier":
            # Keyword identifiers can nest an aliased token; count the outer node only.
            return
        name = node_text(node)
        occurrence = self.occurrences.get(name)
        if occurrence is None or self.context is None or self.line_info is None:
            return

        declaration = in_declaration_context(node)
        if declaration:
            occurrence.decls += 1
        else:
            occurrence.refs += 1

        root = self.context.root
        occurrence.projects.add(project_name(root.name))
        self.roots.add(root.display_name)

        location = self.line_info.get_location(node.start_byte)
        report = f"{root.display_name}/{self.file_path}:{location.line}:{location.column}"
        self.reports.append(report)
        self.context.stats.record_finding("occurrence")

        detail = "(decl) " if declaration else ""
        self.out.write(f"found '{name}' {detail}• {report}\n")

    def post_analysis(self, context: SurveyorContext) -> Directive:
        self.context = None
        self.file_path = None
        self.line_info = None
        if self.stop_after is not None and len(self.reports) >= self.stop_after:
            return Directive.STOP
        return Directive.CONTINUE

    def on_run_finished(self) -> None:
        self.out.write(f"Found {len(self.reports)} occurrences in {len(self.roots)} roots:\n")
        for report in self.reports:
            self.out.write(report + "\n")
        for name, data in self.occurrences.items():
            self.out.write(f"{name}: [{data.decls} decl, {data.refs} ref]\n")
            for project in sorted(data.projects):
                self.out.write(f"  {project}\n")
        self.out.flush()


__all__ = [
    "DEFAULT_IDENTIFIERS",
    "Occurrences",
    "SoftKeywordCollector",
    "in_declaration_context",
    "project_name",
]
