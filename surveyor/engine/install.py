"""Dependency install step run in a root before it is analysed."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable, Sequence

from ..logging import get_logger


class Installer:
    """Runs the configured install command inside a project directory.

    Install failures are reported and swallowed: a project whose dependencies
    cannot be installed is still parsed, it only loses whatever the install
    would have provided.
    """

    def __init__(
        self,
        command: Sequence[str],
        runner: Callable[..., int] | None = None,
    ) -> None:
        self.command = tuple(command)
        self._runner = runner or self._default_runner
        self.logger = get_logger("install")

    def install(self, directory: Path) -> bool:
        if not self.command:
            self.logger.debug("No install command configured; skipping install for %s", directory)
            return False
        self.logger.info("Installing dependencies in %s", directory)
        try:
            returncode = self._runner(self.command, cwd=directory)
        except (OSError, subprocess.SubprocessError) as exc:
            self.logger.warning("Install command failed to start in %s: %s", directory, exc)
            return False
        if returncode != 0:
            self.logger.warning(
                "Install command exited with status %d in %s", returncode, directory
            )
            return False
        return True

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path) -> int:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=False,
            text=True,
            capture_output=True,
        )
        return completed.returncode


__all__ = ["Installer"]
