"""Tests for the tree-sitter analysis engine."""

from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from surveyor.config import RunConfiguration
from surveyor.engine import TreeSitterEngine
from surveyor.errors import EngineError
from surveyor.models import AnalysisRoot, FileFailure, FileResult, Severity


def _open(project: Path, **overrides):
    config = RunConfiguration(paths=(project,), **overrides)
    return TreeSitterEngine().open(AnalysisRoot(project.resolve(), 0), config)


def _paths(context) -> List[str]:
    return [outcome.path for outcome in context.iter_files()]


def test_files_are_iterated_in_sorted_order(project_builder) -> None:
    project = project_builder.project(
        "app",
        {
            "zeta.py": "z = 1\n",
            "pkg/b.py": "b = 1\n",
            "pkg/a.py": "a = 1\n",
            "alpha.pyi": "def alpha() -> int: ...\n",
            "README.md": "# not python\n",
        },
    )

    with _open(project) as context:
        # Files of a directory come before its subdirectories.
        assert _paths(context) == ["alpha.pyi", "zeta.py", "pkg/a.py", "pkg/b.py"]


def test_hidden_excluded_and_nested_directories_are_skipped(project_builder) -> None:
    project = project_builder.project(
        "app",
        {
            "main.py": "print('hi')\n",
            ".venv/lib.py": "x = 1\n",
            "__pycache__/cached.py": "x = 1\n",
            "tests/test_main.py": "x = 1\n",
            "docs/conf.py": "x = 1\n",
        },
    )
    project_builder.project("app/plugins/extra", {"extra.py": "x = 1\n"})

    with _open(project, excluded_paths=frozenset({"docs"})) as context:
        listed = [path.relative_to(project.resolve()).as_posix() for path in context.source_files()]
        assert listed == ["main.py", "tests/test_main.py"]
        assert _paths(context) == listed

    with _open(project, nested_roots=False) as context:
        assert "plugins/extra/extra.py" in _paths(context)


def test_build_and_env_packages_are_walked(project_builder) -> None:
    project = project_builder.project(
        "app",
        {
            "build/steps.py": "x = 1\n",
            "env/settings.py": "x = 1\n",
            "venv/lib.py": "x = 1\n",
        },
    )

    with _open(project) as context:
        assert _paths(context) == ["build/steps.py", "env/settings.py"]


def test_syntax_errors_become_error_diagnostics(project_builder) -> None:
    project = project_builder.project("app", {"broken.py": "x = 1\ndef broken(:\n    pass\n"})

    with _open(project) as context:
        [result] = list(context.iter_files())

    assert isinstance(result, FileResult)
    errors = [record for record in result.diagnostics if record.severity is Severity.ERROR]
    assert errors
    assert errors[0].path == "broken.py"
    assert errors[0].line == 2
    assert errors[0].code in {"syntax_error", "missing_token"}


def test_clean_file_has_no_errors(project_builder) -> None:
    project = project_builder.project("app", {"ok.py": "def ok(a, b=1):\n    return a + b\n"})

    with _open(project) as context:
        [result] = list(context.iter_files())

    assert result.diagnostics == []
    assert result.unit.resolved is False
    assert result.unit.root_node.type == "module"
    assert result.line_info.line_count == 3


def test_todo_comments_are_reported(project_builder) -> None:
    project = project_builder.project("app", {"todo.py": "x = 1  # TODO: tidy this\n"})

    with _open(project) as context:
        [result] = list(context.iter_files())

    [record] = result.diagnostics
    assert record.severity is Severity.TODO
    assert record.code == "todo"
    assert record.message == "tidy this"
    assert (record.line, record.column) == (1, 8)


def test_resolve_units_adds_scope_findings(project_builder) -> None:
    project = project_builder.project("app", {"mod.py": "import os\nimport sys\n\nprint(sys.argv)\n"})

    with _open(project, resolve_units=True) as context:
        [result] = list(context.iter_files())

    assert result.unit.resolved is True
    assert result.unit.scope is not None
    assert "sys" in result.unit.scope.references
    assert [(record.code, record.line) for record in result.diagnostics] == [("unused_import", 1)]


def test_undecodable_file_is_a_failure(project_builder) -> None:
    project = project_builder.project("app", {"good.py": "x = 1\n"})
    (project / "bad.py").write_bytes(b"x = '\xff\xfe'\n")

    with _open(project) as context:
        outcomes = list(context.iter_files())

    assert [outcome.path for outcome in outcomes] == ["bad.py", "good.py"]
    assert isinstance(outcomes[0], FileFailure)
    assert isinstance(outcomes[1], FileResult)


def test_closed_context_cannot_be_iterated(project_builder) -> None:
    project = project_builder.project("app", {"a.py": "a = 1\n"})
    context = _open(project)
    context.close()

    assert context.closed is True
    with pytest.raises(EngineError):
        list(context.iter_files())


def test_open_rejects_missing_root(tmp_path: Path) -> None:
    missing = tmp_path / "gone"
    with pytest.raises(EngineError):
        TreeSitterEngine().open(AnalysisRoot(missing, 0), RunConfiguration(paths=(missing,)))


def test_install_runs_only_when_not_skipped(project_builder) -> None:
    project = project_builder.project("app")
    calls: List[Path] = []

    class RecordingInstaller:
        def install(self, directory: Path) -> bool:
            calls.append(directory)
            return True

    engine = TreeSitterEngine(installer=RecordingInstaller())  # type: ignore[arg-type]
    root = AnalysisRoot(project.resolve(), 0)

    engine.open(root, RunConfiguration(paths=(project,))).close()
    assert calls == []

    engine.open(root, RunConfiguration(paths=(project,), skip_install=False)).close()
    assert calls == [project.resolve()]
