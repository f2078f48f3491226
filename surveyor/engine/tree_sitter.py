"""Tree-sitter powered analysis engine for Python projects."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

import tree_sitter_python
from tree_sitter import Language, Parser

from ..config import RunConfiguration
from ..discovery import EXCLUDED_DIRS, is_hidden
from ..errors import EngineError
from ..logging import get_logger
from ..models import (
    AnalysisRoot,
    CompilationUnit,
    DiagnosticRecord,
    FileFailure,
    FileOutcome,
    FileResult,
    LineInfo,
    Severity,
)
from .base import AnalysisContext, AnalysisEngine
from .install import Installer
from .nodes import iter_preorder, node_text
from .resolver import ModuleResolver

PYTHON_LANGUAGE = Language(tree_sitter_python.language())

_SOURCE_SUFFIXES = (".py", ".pyi")
_TODO_PATTERN = re.compile(r"#\s*(TODO|FIXME)\b[:\s]*(?P<text>.*)", re.IGNORECASE)


class TreeSitterContext(AnalysisContext):
    """Iterates the Python sources of one root, parsing each with tree-sitter."""

    def __init__(
        self,
        root: AnalysisRoot,
        config: RunConfiguration,
        parser: Parser,
        manifest_files: Sequence[str],
    ) -> None:
        super().__init__(root, config)
        self._parser = parser
        self._manifest_files = tuple(manifest_files)

    def source_files(self) -> List[Path]:
        """Return the files this context analyses, in iteration order."""
        return list(self._walk())

    def iter_files(self) -> Iterator[FileOutcome]:
        if self.closed:
            raise EngineError(f"Analysis context for {self.root.path} is closed")
        for path in self._walk():
            yield self._analyze_file(path)

    def _walk(self) -> Iterator[Path]:
        base = self.root.path
        for dirpath, dirnames, filenames in os.walk(base):
            current = Path(dirpath)
            rel_dir = current.relative_to(base).as_posix() if current != base else ""

            kept = []
            for name in sorted(dirnames):
                if is_hidden(name) or name in EXCLUDED_DIRS:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if self.config.is_excluded(rel_path):
                    continue
                if self.config.nested_roots and self._is_project(current / name):
                    # Nested projects are analysed as their own roots.
                    continue
                kept.append(name)
            dirnames[:] = kept

            for filename in sorted(filenames):
                if not filename.endswith(_SOURCE_SUFFIXES) or is_hidden(filename):
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if self.config.is_excluded(rel_path):
                    continue
                yield current / filename

    def _is_project(self, directory: Path) -> bool:
        return any((directory / name).is_file() for name in self._manifest_files)

    def _analyze_file(self, path: Path) -> FileOutcome:
        rel_path = path.relative_to(self.root.path).as_posix()
        try:
            source = path.read_bytes()
            source.decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return FileFailure(path=rel_path, full_path=path, error=exc)

        try:
            tree = self._parser.parse(source)
        except ValueError as exc:
            return FileFailure(path=rel_path, full_path=path, error=exc)

        line_info = LineInfo.from_source(source)
        diagnostics = list(_syntax_diagnostics(rel_path, tree.root_node, line_info))
        unit = CompilationUnit(path=rel_path, tree=tree, source=source)

        if self.config.resolve_units:
            resolver = ModuleResolver(rel_path, line_info)
            unit.scope = resolver.resolve(tree.root_node)
            unit.resolved = True
            diagnostics.extend(resolver.diagnostics)

        diagnostics.sort(key=lambda record: (record.offset, record.code))
        return FileResult(
            path=rel_path,
            full_path=path,
            unit=unit,
            line_info=line_info,
            diagnostics=diagnostics,
        )


def _syntax_diagnostics(path: str, root_node, line_info: LineInfo) -> Iterator[DiagnosticRecord]:  # type: ignore[no-untyped-def]
    error_end = -1
    for node in iter_preorder(root_node):
        if node.type == "ERROR" or node.is_missing:
            if node.start_byte < error_end:
                # Already covered by an enclosing error node.
                continue
            error_end = max(error_end, node.end_byte)
            if node.is_missing:
                code = "missing_token"
                message = f"Expected '{node.type}'"
            else:
                code = "syntax_error"
                snippet = node_text(node).strip().splitlines()
                message = f"Unexpected '{snippet[0]}'" if snippet else "Invalid syntax"
            yield _record(path, node, line_info, Severity.ERROR, code, message)
        elif node.type == "comment":
            match = _TODO_PATTERN.match(node_text(node))
            if match:
                tag = match.group(1).upper()
                text = match.group("text").strip() or tag
                yield _record(path, node, line_info, Severity.TODO, tag.lower(), text)


def _record(path: str, node, line_info: LineInfo, severity: Severity, code: str, message: str) -> DiagnosticRecord:  # type: ignore[no-untyped-def]
    location = line_info.get_location(node.start_byte)
    return DiagnosticRecord(
        path=path,
        offset=node.start_byte,
        length=node.end_byte - node.start_byte,
        line=location.line,
        column=location.column,
        severity=severity,
        code=code,
        message=message,
    )


class TreeSitterEngine(AnalysisEngine):
    """Opens tree-sitter analysis contexts, running the install step when asked."""

    def __init__(self, installer: Optional[Installer] = None) -> None:
        self._parser: Optional[Parser] = None
        self._installer = installer
        self.logger = get_logger("engine")

    def _get_parser(self) -> Parser:
        if self._parser is None:
            self._parser = Parser(PYTHON_LANGUAGE)
        return self._parser

    def open(self, root: AnalysisRoot, config: RunConfiguration) -> AnalysisContext:
        if not root.path.is_dir():
            raise EngineError(f"Analysis root is not a directory: {root.path}")
        if not config.skip_install:
            installer = self._installer or Installer(config.install_command)
            installer.install(root.path)
        self.logger.debug(
            "Opening %s context for %s",
            "resolved" if config.resolve_units else "parsed",
            root.path,
        )
        return TreeSitterContext(root, config, self._get_parser(), config.manifest_files)


__all__ = ["PYTHON_LANGUAGE", "TreeSitterContext", "TreeSitterEngine"]
