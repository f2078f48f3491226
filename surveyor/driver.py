"""Run loop that discovers roots, analyses them and dispatches results to visitors."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, TextIO

from .config import RunConfiguration
from .discovery import ContextDiscoverer
from .engine.base import AnalysisContext, AnalysisEngine
from .engine.nodes import iter_preorder
from .engine.tree_sitter import TreeSitterEngine
from .errors import EngineError, NoAnalysisRootsError, VisitorError
from .logging import get_logger
from .models import AnalysisRoot, FileFailure, FileResult
from .reporting import print_summary
from .stats import AnalysisStats
from .visitors.base import Directive, SurveyorContext, VisitorCapabilities


@dataclass
class RunState:
    """Driver-owned counters; only PreRoot and PostRoot touch them."""

    processed: int = 0
    stopped: bool = False


@dataclass
class AnalysisPass:
    """Transient state for the root currently being analysed."""

    root: AnalysisRoot
    handle: AnalysisContext
    file_index: int = 0
    failures: int = 0


class Driver:
    """Coordinates a survey run.

    States: discovering, then per root PreRoot -> Analyzing -> PostRoot, then
    finished. Visitors are called in registration order at every hook point,
    and a visitor hook that raises aborts the run with a ``VisitorError``.
    """

    def __init__(
        self,
        config: RunConfiguration,
        *,
        engine: AnalysisEngine | None = None,
        discoverer: ContextDiscoverer | None = None,
        visitors: Iterable[object] = (),
        out: TextIO | None = None,
    ) -> None:
        self.config = config
        self.engine = engine or TreeSitterEngine()
        self.discoverer = discoverer or ContextDiscoverer(
            config.manifest_files,
            nested_roots=config.nested_roots,
            excluded_paths=config.excluded_paths,
        )
        self._out = out
        self._visitors: List[VisitorCapabilities] = []
        self.stats = AnalysisStats()
        self.logger = get_logger("driver")
        for visitor in visitors:
            self.register(visitor)

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    @property
    def visitors(self) -> List[object]:
        return [capabilities.visitor for capabilities in self._visitors]

    def register(self, visitor: object) -> VisitorCapabilities:
        """Probe ``visitor`` for hooks and add it after the visitors already registered."""
        capabilities = VisitorCapabilities.probe(visitor)
        present = [name for name, found in capabilities.hooks().items() if found]
        self.logger.debug(
            "Registered visitor %s (hooks: %s)", capabilities.name, ", ".join(present) or "none"
        )
        self._visitors.append(capabilities)
        return capabilities

    def analyze(self) -> AnalysisStats:
        """Run the survey; returns the statistics that were printed."""
        self.stats = AnalysisStats()
        state = RunState()
        roots: List[AnalysisRoot] = []

        if self.config.debug_limit is not None:
            self.logger.info("Limiting analysis to %d roots.", self.config.debug_limit)

        try:
            discovery = self.discoverer.discover(self.config.paths)
            self.stats.record_skipped(len(discovery.errors))
            roots = discovery.roots
            if roots:
                self._run_roots(roots, state)
            else:
                self.logger.error("No analysis roots found.")
            self._finish()
        finally:
            print_summary(self.stats, self.out)

        if not roots:
            paths = ", ".join(str(path) for path in self.config.paths) or "(none)"
            raise NoAnalysisRootsError(f"No analysis roots found in {paths}")
        return self.stats

    # ------------------------------------------------------------------
    # Lifecycle

    def _run_roots(self, roots: List[AnalysisRoot], state: RunState) -> None:
        total = len(roots)
        limit = self.config.debug_limit
        for position, root in enumerate(roots):
            if limit is not None and state.processed >= limit:
                self.logger.info("Debug limit of %d roots reached.", limit)
                self.stats.record_skipped(total - position)
                return
            directive = self._process_root(root, position + 1, total, state)
            if directive is Directive.STOP:
                state.stopped = True
                remaining = total - position - 1
                self.stats.record_skipped(remaining)
                if remaining:
                    self.logger.info(
                        "Analysis stopped after '%s'; %d roots not analysed.",
                        root.display_name,
                        remaining,
                    )
                return

    def _process_root(
        self, root: AnalysisRoot, index: int, total: int, state: RunState
    ) -> Directive:
        self.logger.debug("Opening '%s' [%d/%d]", root.display_name, index, total)
        try:
            handle = self.engine.open(root, self.config)
        except EngineError as exc:
            self.logger.error("Skipping '%s': %s", root.display_name, exc)
            self.stats.record_skipped()
            return Directive.CONTINUE

        context = SurveyorContext(
            root=root,
            handle=handle,
            index=index,
            total=total,
            stats=self.stats,
            config=self.config,
        )
        with handle:
            for capabilities in self._visitors:
                if capabilities.pre_analysis is not None:
                    self._invoke(
                        capabilities,
                        "pre_analysis",
                        capabilities.pre_analysis,
                        context,
                        sub_root=root.is_sub_root,
                    )

            analysis_pass = AnalysisPass(root=root, handle=handle)
            self._analyze(analysis_pass)

            directive = Directive.CONTINUE
            for capabilities in self._visitors:
                if capabilities.post_analysis is None:
                    continue
                returned = self._invoke(
                    capabilities, "post_analysis", capabilities.post_analysis, context
                )
                if self._as_directive(capabilities, returned) is Directive.STOP:
                    directive = Directive.STOP

        self.stats.record_root()
        if directive is Directive.CONTINUE:
            state.processed += 1
        return directive

    def _analyze(self, analysis_pass: AnalysisPass) -> None:
        for outcome in analysis_pass.handle.iter_files():
            analysis_pass.file_index += 1
            if isinstance(outcome, FileFailure):
                analysis_pass.failures += 1
                self.stats.record_file(failed=True)
                self.logger.warning(
                    "Skipping %s in '%s': %s",
                    outcome.path,
                    analysis_pass.root.display_name,
                    outcome.reason,
                )
                continue
            self.stats.record_file()
            self._visit_file(outcome)

        if analysis_pass.failures:
            self.logger.info(
                "%d of %d files in '%s' could not be analysed.",
                analysis_pass.failures,
                analysis_pass.file_index,
                analysis_pass.root.display_name,
            )

    def _visit_file(self, result: FileResult) -> None:
        for capabilities in self._visitors:
            if capabilities.set_file_path is not None:
                self._invoke(capabilities, "set_file_path", capabilities.set_file_path, result.path)
            if capabilities.set_line_info is not None:
                self._invoke(
                    capabilities, "set_line_info", capabilities.set_line_info, result.line_info
                )

        walkers = [capabilities for capabilities in self._visitors if capabilities.visits_nodes]
        if walkers:
            for node in iter_preorder(result.unit.root_node):
                for capabilities in walkers:
                    callback = capabilities.node_callbacks.get(node.type)
                    if callback is not None:
                        self._invoke(capabilities, f"visit_{node.type}", callback, node)

        if not self.config.show_errors:
            return
        for capabilities in self._visitors:
            if capabilities.wants_diagnostics:
                self._invoke(capabilities, "report_errors", capabilities.report_errors, result)

    def _finish(self) -> None:
        for capabilities in self._visitors:
            if capabilities.on_run_finished is not None:
                self._invoke(capabilities, "on_run_finished", capabilities.on_run_finished)

    # ------------------------------------------------------------------
    # Helpers

    @staticmethod
    def _invoke(
        capabilities: VisitorCapabilities,
        hook: str,
        callback: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        try:
            return callback(*args, **kwargs)
        except Exception as exc:
            raise VisitorError(capabilities.visitor, hook, exc) from exc

    @staticmethod
    def _as_directive(capabilities: VisitorCapabilities, value: Optional[object]) -> Directive:
        if value is None or value is True:
            return Directive.CONTINUE
        if value is False:
            return Directive.STOP
        if isinstance(value, Directive):
            return value
        raise VisitorError(
            capabilities.visitor,
            "post_analysis",
            TypeError(f"expected a Directive, got {type(value).__name__}"),
        )


__all__ = ["AnalysisPass", "Driver", "RunState"]
