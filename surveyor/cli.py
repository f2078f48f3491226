"""CLI entrypoint for surveyor runs."""

from __future__ import annotations

import argparse
import sys
import time
from datetime import timedelta
from pathlib import Path

from .config import build_run_configuration, load_config
from .driver import Driver
from .errors import ConfigError, NoAnalysisRootsError, VisitorError
from .logging import configure_logging, get_logger
from .visitors import available_visitors, load_visitors

_DEFAULT_VISITORS = ["errors"]


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number < 0:
        raise argparse.ArgumentTypeError("must be zero or greater")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="surveyor",
        description=(
            "Analyse a set of Python projects and report on them with pluggable visitors. "
            "A single directory without a project manifest is expanded into its subdirectories."
        ),
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help="Project directories, or one directory containing projects.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=False,
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a .surveyor.yml file (defaults to the one in the working directory).",
    )
    parser.add_argument(
        "--visitor",
        dest="visitors",
        action="append",
        default=None,
        metavar="NAME",
        help=f"Visitor to run; repeat for several. Built-in: {', '.join(available_visitors())}.",
    )
    parser.add_argument(
        "--show-errors",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Pass diagnostics to visitors that report them.",
    )
    parser.add_argument(
        "--resolve-units",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Build resolved units (module scopes) instead of parse trees only.",
    )
    parser.add_argument(
        "--skip-install",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Skip the configured install command before analysing each project.",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="SEGMENT",
        help=(
            "Skip files and nested projects with this path segment (for example 'tests'); "
            "repeatable. Hidden, venv, cache and node_modules directories are always skipped."
        ),
    )
    parser.add_argument(
        "--limit",
        type=_non_negative_int,
        default=None,
        help="Stop after analysing this many projects (for debugging).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for surveyor."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file)

    if args.config is not None and not Path(args.config).expanduser().is_file():
        parser.exit(1, f"Config file not found: {args.config}\n")
    config_path = Path(args.config) if args.config is not None else Path.cwd()

    try:
        file_config = load_config(config_path)
        run_config = build_run_configuration(
            args.paths,
            file_config,
            show_errors=args.show_errors,
            resolve_units=args.resolve_units,
            skip_install=args.skip_install,
            excluded_paths=args.exclude or (),
            debug_limit=args.limit,
        )
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    names = args.visitors or file_config.visitors or _DEFAULT_VISITORS
    try:
        visitors = load_visitors(names)
    except (ValueError, TypeError, RuntimeError) as exc:
        parser.exit(1, f"{exc}\n")

    driver = Driver(run_config, visitors=visitors)
    started = time.perf_counter()
    try:
        driver.analyze()
    except NoAnalysisRootsError as exc:
        parser.exit(1, f"{exc}\n")
    except VisitorError as exc:
        get_logger("cli").debug("Visitor failure", exc_info=exc)
        parser.exit(1, f"surveyor aborted: {exc}\nRun with --verbose for more details.\n")

    elapsed = timedelta(seconds=round(time.perf_counter() - started, 3))
    print(f"(Elapsed time: {elapsed})")


if __name__ == "__main__":
    main(sys.argv[1:])
