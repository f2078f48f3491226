"""Exception hierarchy for surveyor runs."""

from __future__ import annotations

from pathlib import Path


class SurveyorError(RuntimeError):
    """Base class for errors raised by the surveyor engine."""


class ConfigError(SurveyorError):
    """Raised when the configuration file cannot be parsed."""


class DiscoveryError(SurveyorError):
    """A requested analysis path could not be used; the run continues without it."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{reason}: {path}")
        self.path = path
        self.reason = reason


class NoAnalysisRootsError(SurveyorError):
    """Discovery produced no analysable roots."""


class EngineError(SurveyorError):
    """The analysis engine could not open a context for a root."""


class VisitorError(SurveyorError):
    """A visitor hook failed; the run is aborted."""

    def __init__(self, visitor: object, hook: str, cause: BaseException) -> None:
        name = type(visitor).__name__
        super().__init__(f"{name}.{hook} failed: {cause}")
        self.visitor = visitor
        self.hook = hook


__all__ = [
    "ConfigError",
    "DiscoveryError",
    "EngineError",
    "NoAnalysisRootsError",
    "SurveyorError",
    "VisitorError",
]
