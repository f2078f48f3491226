"""Plain-text rendering of diagnostics and run summaries."""

from __future__ import annotations

from typing import Iterable, List, Optional, TextIO

from .models import DiagnosticRecord
from .stats import AnalysisStats


def format_diagnostic(record: DiagnosticRecord) -> str:
    """Render ``path:line:column: SEVERITY message``."""
    return f"{record.path}:{record.line}:{record.column}: {record.severity} {record.message}"


class HumanErrorFormatter:
    """Writes diagnostics one per line, flushed per file so partial output survives a stop."""

    def __init__(self, out: TextIO, stats: Optional[AnalysisStats] = None) -> None:
        self.out = out
        self.stats = stats

    def format_errors(self, records: Iterable[DiagnosticRecord]) -> int:
        written = 0
        for record in records:
            self.out.write(format_diagnostic(record) + "\n")
            if self.stats is not None:
                self.stats.record_finding(str(record.severity))
            written += 1
        return written

    def flush(self) -> None:
        self.out.flush()


def _pluralize(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def summary_lines(stats: AnalysisStats) -> List[str]:
    lines = [
        f"Roots processed: {stats.roots_processed}",
        f"Roots skipped: {stats.roots_skipped}",
        f"Findings: {stats.total_findings}",
    ]
    breakdown = stats.findings_by_category()
    if breakdown:
        parts = [_pluralize(count, category.lower()) for category, count in breakdown.items()]
        lines.append(f"  ({', '.join(parts)})")
    if stats.files_failed:
        lines.append(f"Files that could not be analysed: {stats.files_failed}")
    return lines


def print_summary(stats: AnalysisStats, out: TextIO) -> None:
    """Write the end-of-run summary; printed even when every counter is zero."""
    for line in summary_lines(stats):
        out.write(line + "\n")
    out.flush()


__all__ = ["HumanErrorFormatter", "format_diagnostic", "print_summary", "summary_lines"]
