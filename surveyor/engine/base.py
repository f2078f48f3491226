"""Contract between the driver and an analysis engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Optional

from ..config import RunConfiguration
from ..models import AnalysisRoot, FileOutcome


class AnalysisContext(ABC):
    """Handle bound to one analysis root for the duration of a pass."""

    def __init__(self, root: AnalysisRoot, config: RunConfiguration) -> None:
        self.root = root
        self.config = config
        self.closed = False

    @abstractmethod
    def iter_files(self) -> Iterator[FileOutcome]:
        """Yield one result or failure per file, in a stable order."""

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "AnalysisContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:  # type: ignore[no-untyped-def]
        self.close()
        return None


class AnalysisEngine(ABC):
    """Produces analysis contexts for roots."""

    @abstractmethod
    def open(self, root: AnalysisRoot, config: RunConfiguration) -> AnalysisContext:
        """Return a context for ``root``; raise EngineError when that is impossible."""


__all__ = ["AnalysisContext", "AnalysisEngine"]
