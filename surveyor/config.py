"""Configuration loading for surveyor (.surveyor.yml) and run configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".surveyor.yml"

DEFAULT_MANIFEST_FILES: Tuple[str, ...] = ("pyproject.toml", "setup.py", "setup.cfg")


@dataclass
class SurveyorConfig:
    """Settings read from .surveyor.yml; unset values defer to CLI flags or defaults."""

    root: Path
    manifest_files: List[str] = field(default_factory=list)
    exclude_paths: List[str] = field(default_factory=list)
    visitors: List[str] = field(default_factory=list)
    show_errors: Optional[bool] = None
    resolve_units: Optional[bool] = None
    skip_install: Optional[bool] = None
    nested_roots: Optional[bool] = None
    install_command: List[str] = field(default_factory=list)
    debug_limit: Optional[int] = None


@dataclass(frozen=True)
class RunConfiguration:
    """Immutable settings resolved once at start-up for a whole run."""

    paths: Tuple[Path, ...]
    show_errors: bool = True
    resolve_units: bool = False
    skip_install: bool = True
    excluded_paths: FrozenSet[str] = frozenset()
    debug_limit: Optional[int] = None
    manifest_files: Tuple[str, ...] = DEFAULT_MANIFEST_FILES
    nested_roots: bool = True
    install_command: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.debug_limit is not None and self.debug_limit < 0:
            raise ConfigError("debug_limit must be zero or a positive integer")
        if not self.manifest_files:
            raise ConfigError("At least one manifest file name is required")

    def is_excluded(self, relative_path: str) -> bool:
        """Return True when any segment of ``relative_path`` is an excluded segment."""
        if not self.excluded_paths:
            return False
        return any(part in self.excluded_paths for part in relative_path.split("/"))


def load_config(config_path: Path) -> SurveyorConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return SurveyorConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    debug_limit = _as_int(data.get("debug_limit"))
    if debug_limit is not None and debug_limit < 0:
        raise ConfigError("debug_limit must be zero or a positive integer")

    install_command = data.get("install_command")
    if isinstance(install_command, str):
        install_list = install_command.split()
    else:
        install_list = _as_str_list(install_command)

    return SurveyorConfig(
        root=root,
        manifest_files=_as_str_list(data.get("manifest_files")),
        exclude_paths=[_normalise_segment(item) for item in _as_str_list(data.get("exclude_paths"))],
        visitors=_as_str_list(data.get("visitors")),
        show_errors=_as_bool(data.get("show_errors")),
        resolve_units=_as_bool(data.get("resolve_units")),
        skip_install=_as_bool(data.get("skip_install")),
        nested_roots=_as_bool(data.get("nested_roots")),
        install_command=install_list,
        debug_limit=debug_limit,
    )


def build_run_configuration(
    paths: Sequence[str | Path],
    config: SurveyorConfig | None = None,
    *,
    show_errors: Optional[bool] = None,
    resolve_units: Optional[bool] = None,
    skip_install: Optional[bool] = None,
    excluded_paths: Sequence[str] = (),
    debug_limit: Optional[int] = None,
) -> RunConfiguration:
    """Merge CLI overrides over file settings over defaults."""
    config = config or SurveyorConfig(root=Path.cwd())
    excluded = {_normalise_segment(item) for item in config.exclude_paths}
    excluded.update(_normalise_segment(item) for item in excluded_paths)
    excluded.discard("")

    return RunConfiguration(
        paths=tuple(Path(path).expanduser() for path in paths),
        show_errors=_first_set(show_errors, config.show_errors, True),
        resolve_units=_first_set(resolve_units, config.resolve_units, False),
        skip_install=_first_set(skip_install, config.skip_install, True),
        excluded_paths=frozenset(excluded),
        debug_limit=debug_limit if debug_limit is not None else config.debug_limit,
        manifest_files=tuple(config.manifest_files) or DEFAULT_MANIFEST_FILES,
        nested_roots=_first_set(None, config.nested_roots, True),
        install_command=tuple(config.install_command),
    )


def _first_set(*values: Optional[bool]) -> bool:
    for value in values:
        if value is not None:
            return bool(value)
    return False


def _normalise_segment(value: str) -> str:
    return value.strip().strip("/")


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_MANIFEST_FILES",
    "RunConfiguration",
    "SurveyorConfig",
    "build_run_configuration",
    "load_config",
]
