"""Tests for the per-root install step."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Tuple

from surveyor.engine.install import Installer


def test_install_without_command_is_a_no_op(tmp_path: Path) -> None:
    calls: List[Tuple[str, ...]] = []

    def runner(args, *, cwd):
        calls.append(tuple(args))
        return 0

    assert Installer((), runner=runner).install(tmp_path) is False
    assert calls == []


def test_install_runs_command_in_directory(tmp_path: Path) -> None:
    calls: List[Tuple[Tuple[str, ...], Path]] = []

    def runner(args, *, cwd):
        calls.append((tuple(args), cwd))
        return 0

    installer = Installer(["pip", "install", "-e", "."], runner=runner)

    assert installer.install(tmp_path) is True
    assert calls == [(("pip", "install", "-e", "."), tmp_path)]


def test_install_failures_are_not_fatal(tmp_path: Path) -> None:
    def failing(args, *, cwd):
        return 2

    def crashing(args, *, cwd):
        raise subprocess.SubprocessError("boom")

    def missing(args, *, cwd):
        raise FileNotFoundError(args[0])

    assert Installer(["make"], runner=failing).install(tmp_path) is False
    assert Installer(["make"], runner=crashing).install(tmp_path) is False
    assert Installer(["make"], runner=missing).install(tmp_path) is False
