"""CLI behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from surveyor.cli import _build_parser, main


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep a developer's own .surveyor.yml out of these runs.
    monkeypatch.chdir(tmp_path)


def test_cli_accepts_verbose_before_and_after_paths() -> None:
    parser = _build_parser()
    assert parser.parse_args(["--verbose", "proj"]).verbose is True
    assert parser.parse_args(["proj", "-v"]).verbose is True


def test_cli_boolean_flags_default_to_unset() -> None:
    args = _build_parser().parse_args(["proj"])
    assert args.show_errors is None
    assert args.resolve_units is None
    assert args.skip_install is None
    assert args.limit is None
    assert args.visitors is None


def test_cli_boolean_flags_have_negative_forms() -> None:
    args = _build_parser().parse_args(
        ["proj", "--no-show-errors", "--resolve-units", "--no-skip-install"]
    )
    assert args.show_errors is False
    assert args.resolve_units is True
    assert args.skip_install is False


def test_cli_collects_repeated_options() -> None:
    args = _build_parser().parse_args(
        ["a", "b", "--visitor", "errors", "--visitor", "occurrences", "--exclude", "tests"]
    )
    assert args.paths == ["a", "b"]
    assert args.visitors == ["errors", "occurrences"]
    assert args.exclude == ["tests"]


def test_cli_rejects_negative_limit() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["proj", "--limit", "-1"])


def test_main_reports_syntax_errors(project_builder, capsys: pytest.CaptureFixture[str]) -> None:
    project = project_builder.project(
        "app",
        {
            "app/__init__.py": "",
            "app/core.py": "def broken(:\n    pass\n",
        },
    )

    main([str(project)])

    output = capsys.readouterr().out
    assert "Analyzing 'app' • [1/1]..." in output
    assert "app/core.py:1:" in output
    assert "ERROR" in output
    assert "Roots processed: 1" in output
    assert "(Elapsed time:" in output


def test_main_exits_with_error_when_no_roots(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / "missing")])

    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert "Roots processed: 0" in captured.out


def test_main_rejects_unknown_visitor(project_builder, capsys: pytest.CaptureFixture[str]) -> None:
    project = project_builder.project("app")

    with pytest.raises(SystemExit) as excinfo:
        main([str(project), "--visitor", "nope"])

    assert excinfo.value.code == 1
    assert "Unknown visitors requested: nope" in capsys.readouterr().err


def test_main_rejects_missing_config_file(project_builder, tmp_path: Path) -> None:
    project = project_builder.project("app")

    with pytest.raises(SystemExit) as excinfo:
        main([str(project), "--config", str(tmp_path / "absent.yml")])

    assert excinfo.value.code == 1


def test_main_reads_visitors_from_config(project_builder, tmp_path: Path, capsys) -> None:
    project = project_builder.project("app", {"app/cli.py": "match = 1\nprint(match)\n"})
    config_file = tmp_path / "surveyor.yml"
    config_file.write_text("visitors: [occurrences]\n", encoding="utf-8")

    main([str(project), "--config", str(config_file)])

    output = capsys.readouterr().out
    assert "found 'match' (decl) • app/app/cli.py:1:1" in output
    assert "found 'match' • app/app/cli.py:2:7" in output
    assert "Findings: 2" in output
