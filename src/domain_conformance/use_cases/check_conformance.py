"""Use Case: Check Conformance - load the workspace, run the rule grid, hand the result to the sinks."""

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from domain_conformance.domain.entities import RunResult
from domain_conformance.domain.protocols import (
    SymbolSourceProtocol,
    TelemetryPort,
    ViolationSinkProtocol,
)
from domain_conformance.use_cases.run_rules import RuleRunner

if TYPE_CHECKING:
    from domain_conformance.domain.config import ConfigurationLoader

logger = logging.getLogger(__name__)


class CheckConformanceUseCase:
    """Orchestrate one conformance run and return its three result buckets."""

    def __init__(
        self,
        symbol_source: SymbolSourceProtocol,
        runner: RuleRunner,
        telemetry: TelemetryPort,
        config_loader: "ConfigurationLoader",
        sinks: Iterable[ViolationSinkProtocol] = (),
    ) -> None:
        self.symbol_source = symbol_source
        self.runner = runner
        self.telemetry = telemetry
        self.config_loader = config_loader
        self.sinks = tuple(sinks)

    def execute(self, target_path: str) -> RunResult:
        """
        Run every registered rule against every type declared under target_path.

        Args:
            target_path: Workspace root (a directory or a single .py file).

        Returns:
            RunResult with sorted violations, rule execution errors and
            resolution warnings. Every sink has consumed it before it is returned.
        """
        self.telemetry.step(f"Loading workspace: {target_path}")
        snapshot = self.symbol_source.load_workspace(
            target_path, exclude_paths=tuple(self.config_loader.exclude_paths)
        )
        self.telemetry.step(
            f"Indexed {len(snapshot.types)} types; running {len(self.runner.rules)} rules..."
        )
        for warning in snapshot.warnings:
            self.telemetry.warning(f"{warning.file}:{warning.line} {warning.subject}: {warning.reason}")

        result = self.runner.run(snapshot)
        if result.cancelled:
            self.telemetry.warning("Run cancelled; remaining rule evaluations were skipped.")
        if result.errors:
            self.telemetry.error(f"{len(result.errors)} rule execution errors; the checker itself faulted.")

        for sink in self.sinks:
            sink.accept(result)
        logger.debug("Conformance run finished with %d violations", len(result.violations))
        return result
