"""Visitor that reports analysis diagnostics, hiding low-signal categories."""

from __future__ import annotations

import sys
from typing import Collection, List, Optional, TextIO

from ..models import DiagnosticRecord, FileResult, Severity
from ..reporting import HumanErrorFormatter
from .base import Directive, SurveyorContext

DEFAULT_HIDDEN_SEVERITIES = frozenset({Severity.HINT, Severity.LINT, Severity.TODO})


class ErrorSurveyor:
    """Prints diagnostics per file and counts them in the run statistics.

    Hints, lints and TODO markers are hidden unless ``hidden`` says otherwise;
    ``codes`` narrows the report further to specific diagnostic codes.
    """

    def __init__(
        self,
        out: Optional[TextIO] = None,
        *,
        hidden: Collection[Severity] = DEFAULT_HIDDEN_SEVERITIES,
        codes: Optional[Collection[str]] = None,
    ) -> None:
        self._out = out
        self.hidden = frozenset(hidden)
        self.codes = frozenset(codes) if codes else None
        self.formatter = HumanErrorFormatter(self.out)
        self.roots_seen = 0
        self.reported = 0

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    def pre_analysis(self, context: SurveyorContext, *, sub_root: bool) -> None:
        self.roots_seen += 1
        self.formatter.out = self.out
        self.formatter.stats = context.stats
        name = context.root.display_name if sub_root else context.root.name
        self.out.write(f"Analyzing '{name}' • {context.progress}...\n")

    def report_errors(self, result: FileResult) -> None:
        errors = self.filter(result.diagnostics)
        if not errors:
            return
        self.reported += self.formatter.format_errors(errors)
        self.formatter.flush()

    def filter(self, diagnostics: List[DiagnosticRecord]) -> List[DiagnosticRecord]:
        return [record for record in diagnostics if self.show_error(record)]

    def show_error(self, record: DiagnosticRecord) -> bool:
        if record.severity in self.hidden:
            return False
        if self.codes is not None and record.code not in self.codes:
            return False
        return True

    def post_analysis(self, context: SurveyorContext) -> Directive:
        return Directive.CONTINUE

    def on_run_finished(self) -> None:
        self.out.write(
            f"Reported {self.reported} diagnostics across {self.roots_seen} roots.\n"
        )
        self.out.flush()


__all__ = ["DEFAULT_HIDDEN_SEVERITIES", "ErrorSurveyor"]
