"""Survey trees of Python projects with pluggable visitors."""

from .config import RunConfiguration, build_run_configuration, load_config
from .discovery import ContextDiscoverer, DiscoveryResult
from .driver import Driver
from .errors import (
    ConfigError,
    DiscoveryError,
    EngineError,
    NoAnalysisRootsError,
    SurveyorError,
    VisitorError,
)
from .models import AnalysisRoot, DiagnosticRecord, FileFailure, FileResult, LineInfo, Severity
from .stats import AnalysisStats
from .visitors import Directive, SurveyorContext, VisitorCapabilities

__all__ = [
    "AnalysisRoot",
    "AnalysisStats",
    "ConfigError",
    "ContextDiscoverer",
    "DiagnosticRecord",
    "Directive",
    "DiscoveryError",
    "DiscoveryResult",
    "Driver",
    "EngineError",
    "FileFailure",
    "FileResult",
    "LineInfo",
    "NoAnalysisRootsError",
    "RunConfiguration",
    "Severity",
    "SurveyorContext",
    "SurveyorError",
    "VisitorCapabilities",
    "VisitorError",
    "build_run_configuration",
    "load_config",
]
