"""Analysis engine adapters."""

from .base import AnalysisContext, AnalysisEngine
from .install import Installer
from .tree_sitter import TreeSitterContext, TreeSitterEngine

__all__ = [
    "AnalysisContext",
    "AnalysisEngine",
    "Installer",
    "TreeSitterContext",
    "TreeSitterEngine",
]
