"""Core data models shared across surveyor components."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union


class Severity(str, Enum):
    """Category of a diagnostic reported by the analysis engine."""

    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    HINT = "HINT"
    LINT = "LINT"
    TODO = "TODO"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Location:
    """1-based line/column pair."""

    line: int
    column: int


class LineInfo:
    """Line-start offset table used to map byte offsets to line/column.

    Offsets are UTF-8 byte offsets, as tree-sitter reports them. Columns are
    counted in characters when the source is known, in bytes otherwise.
    """

    def __init__(self, line_starts: Sequence[int], source: Optional[bytes] = None) -> None:
        if not line_starts or line_starts[0] != 0:
            raise ValueError("line_starts must begin with offset 0")
        self._starts: Tuple[int, ...] = tuple(line_starts)
        self._source = source

    @classmethod
    def from_source(cls, source: bytes) -> "LineInfo":
        starts = [0]
        index = source.find(b"\n")
        while index != -1:
            starts.append(index + 1)
            index = source.find(b"\n", index + 1)
        return cls(starts, source)

    @property
    def line_count(self) -> int:
        return len(self._starts)

    @property
    def line_starts(self) -> Tuple[int, ...]:
        return self._starts

    def get_location(self, offset: int) -> Location:
        if offset < 0:
            raise ValueError(f"Negative offset: {offset}")
        line_index = bisect_right(self._starts, offset) - 1
        start = self._starts[line_index]
        if self._source is None:
            return Location(line=line_index + 1, column=offset - start + 1)
        prefix = self._source[start:offset].decode("utf-8", errors="replace")
        return Location(line=line_index + 1, column=len(prefix) + 1)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LineInfo) and other._starts == self._starts

    def __repr__(self) -> str:
        return f"LineInfo(lines={len(self._starts)})"


@dataclass(frozen=True)
class AnalysisRoot:
    """A self-contained project directory analysed as one unit."""

    path: Path
    index: int
    parent_name: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_sub_root(self) -> bool:
        return self.parent_name is not None

    @property
    def display_name(self) -> str:
        if self.parent_name:
            return f"{self.parent_name}/{self.name}"
        return self.name


@dataclass(frozen=True)
class DiagnosticRecord:
    """One finding reported by the analysis engine for a file."""

    path: str
    offset: int
    length: int
    line: int
    column: int
    severity: Severity
    code: str
    message: str


@dataclass
class CompilationUnit:
    """Parse tree for one file, optionally enriched with a resolved module scope."""

    path: str
    tree: Any
    source: bytes
    resolved: bool = False
    scope: Optional[Any] = None

    @property
    def root_node(self) -> Any:
        return self.tree.root_node


@dataclass
class FileResult:
    """Successful per-file outcome: a unit paired with its diagnostics."""

    path: str
    full_path: Path
    unit: CompilationUnit
    line_info: LineInfo
    diagnostics: List[DiagnosticRecord] = field(default_factory=list)


@dataclass
class FileFailure:
    """Per-file outcome when the engine could not produce a unit."""

    path: str
    full_path: Path
    error: BaseException

    @property
    def reason(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


FileOutcome = Union[FileResult, FileFailure]


__all__ = [
    "AnalysisRoot",
    "CompilationUnit",
    "DiagnosticRecord",
    "FileFailure",
    "FileOutcome",
    "FileResult",
    "LineInfo",
    "Location",
    "Severity",
]
