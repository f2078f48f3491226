"""Discovery of analysis roots under the paths given on the command line."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Collection, Iterator, List, Sequence, Tuple

from .config import DEFAULT_MANIFEST_FILES
from .errors import DiscoveryError
from .logging import get_logger
from .models import AnalysisRoot

# Directories never searched for nested projects or source files.
EXCLUDED_DIRS = frozenset(
    {
        "node_modules",
        "__pycache__",
        "site-packages",
        "venv",
    }
)


def is_hidden(name: str) -> bool:
    return name.startswith(".")


@dataclass
class DiscoveryResult:
    """Ordered roots for a run plus the non-fatal errors met on the way."""

    roots: List[AnalysisRoot] = field(default_factory=list)
    errors: List[DiscoveryError] = field(default_factory=list)
    expanded: bool = False

    @property
    def total(self) -> int:
        return len(self.roots)


class ContextDiscoverer:
    """Decides which directories are analysable projects.

    A single path without a manifest is treated as a container of projects and
    expanded into its visible subdirectories. Several paths, or one that is
    already a project, are used as given.
    """

    def __init__(
        self,
        manifest_files: Sequence[str] = DEFAULT_MANIFEST_FILES,
        *,
        nested_roots: bool = True,
        excluded_paths: Collection[str] = (),
    ) -> None:
        self.manifest_files: Tuple[str, ...] = tuple(manifest_files)
        self.nested_roots = nested_roots
        self.excluded_paths = frozenset(excluded_paths)
        self.logger = get_logger("discovery")

    def has_manifest(self, directory: Path) -> bool:
        return any((directory / name).is_file() for name in self.manifest_files)

    def discover(self, paths: Sequence[str | Path]) -> DiscoveryResult:
        result = DiscoveryResult()
        candidates = [Path(path).expanduser() for path in paths]

        if len(candidates) == 1 and candidates[0].is_dir() and not self.has_manifest(candidates[0]):
            container = candidates[0]
            self.logger.info("Recursing into '%s'...", container)
            candidates = self._list_subdirectories(container)
            result.expanded = True
            self.logger.info("(Found %d subdirectories.)", len(candidates))

        directories: List[Path] = []
        for candidate in candidates:
            error = self._validate(candidate)
            if error is not None:
                self.logger.warning("Skipping %s", error)
                result.errors.append(error)
                continue
            directories.append(candidate.resolve())

        for directory in directories:
            result.roots.append(AnalysisRoot(path=directory, index=len(result.roots)))
            if not self.nested_roots:
                continue
            for nested in self.find_nested_roots(directory):
                result.roots.append(
                    AnalysisRoot(path=nested, index=len(result.roots), parent_name=directory.name)
                )

        self.logger.debug("Discovered %d analysis roots", result.total)
        return result

    def find_nested_roots(self, directory: Path) -> List[Path]:
        """Return project directories nested below ``directory``, in sorted walk order."""
        return list(self._walk_nested(directory))

    def _walk_nested(self, directory: Path) -> Iterator[Path]:
        for dirpath, dirnames, _ in os.walk(directory):
            current = Path(dirpath)
            rel_dir = current.relative_to(directory).as_posix() if current != directory else ""
            dirnames[:] = sorted(
                name
                for name in dirnames
                if not is_hidden(name)
                and name not in EXCLUDED_DIRS
                and not self._is_excluded(f"{rel_dir}/{name}" if rel_dir else name)
            )
            if current == directory:
                continue
            if self.has_manifest(current):
                yield current
                # Projects inside a nested project belong to that project.
                dirnames[:] = []

    def _is_excluded(self, relative_path: str) -> bool:
        return any(part in self.excluded_paths for part in relative_path.split("/"))

    @staticmethod
    def _list_subdirectories(container: Path) -> List[Path]:
        entries = [
            entry
            for entry in container.iterdir()
            if not is_hidden(entry.name) and entry.is_dir()
        ]
        return sorted(entries, key=lambda entry: entry.name)

    @staticmethod
    def _validate(path: Path) -> DiscoveryError | None:
        if not path.exists():
            return DiscoveryError(path, "Analysis path not found")
        if not path.is_dir():
            return DiscoveryError(path, "Analysis path is not a directory")
        return None


__all__ = ["ContextDiscoverer", "DiscoveryResult", "EXCLUDED_DIRS", "is_hidden"]
