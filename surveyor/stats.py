"""Run-level statistics collected while surveying."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable


@dataclass
class AnalysisStats:
    """Counters for one run: roots processed, roots skipped, findings by category.

    Only the methods below mutate the counters; reporting reads them once the
    run has finished.
    """

    roots_processed: int = 0
    roots_skipped: int = 0
    files_analyzed: int = 0
    files_failed: int = 0
    _findings: Counter = field(default_factory=Counter, repr=False)

    def record_root(self) -> None:
        self.roots_processed += 1

    def record_skipped(self, count: int = 1) -> None:
        if count < 0:
            raise ValueError("Skipped count cannot be negative")
        self.roots_skipped += count

    def record_file(self, *, failed: bool = False) -> None:
        if failed:
            self.files_failed += 1
        else:
            self.files_analyzed += 1

    def record_finding(self, category: str) -> None:
        self._findings[str(category)] += 1

    def record_findings(self, categories: Iterable[str]) -> None:
        for category in categories:
            self.record_finding(category)

    @property
    def total_findings(self) -> int:
        return sum(self._findings.values())

    def findings_by_category(self) -> Dict[str, int]:
        return dict(sorted(self._findings.items()))


__all__ = ["AnalysisStats"]
