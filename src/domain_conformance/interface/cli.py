"""CLI entry points for domain-conformance - Thin Controller using Typer."""

import signal
import sys
import threading
from dataclasses import dataclass
from pathlib import Path

import typer

from domain_conformance.domain.config import ConfigurationError, ConfigurationLoader
from domain_conformance.domain.constants import CONFORMANCE_BANNER
from domain_conformance.domain.entities import RunResult, Severity
from domain_conformance.domain.protocols import (
    FileSystemProtocol,
    SymbolSourceProtocol,
    TelemetryPort,
    ViolationSinkProtocol,
)
from domain_conformance.domain.rules.catalog import RuleCatalog
from domain_conformance.infrastructure.reporters import JsonReportWriter, PendingViolationWriter
from domain_conformance.interface.reporters import ConformanceReporter
from domain_conformance.use_cases.check_conformance import CheckConformanceUseCase
from domain_conformance.use_cases.run_rules import RuleRunner

EXIT_CLEAN = 0
EXIT_VIOLATIONS = 1
EXIT_RULE_ERRORS = 2


@dataclass(frozen=True)
class CLIDependencies:
    """Explicit dependencies for the CLI. All dependencies injected at composition root."""

    config_loader: ConfigurationLoader
    telemetry: TelemetryPort
    symbol_source: SymbolSourceProtocol
    filesystem: FileSystemProtocol
    reporter: ConformanceReporter


class CLIAppFactory:
    """Creates the Typer app. No top-level functions."""

    @staticmethod
    def exit_code(result: RunResult, min_severity: Severity) -> int:
        """Rule execution errors outrank violations: a broken checker proves nothing."""
        if result.has_rule_errors():
            return EXIT_RULE_ERRORS
        if result.gating_violations(min_severity):
            return EXIT_VIOLATIONS
        return EXIT_CLEAN

    @staticmethod
    def create_app(deps: CLIDependencies) -> typer.Typer:
        """Create the Typer app with explicitly injected dependencies. No Service Locator."""
        app = typer.Typer(
            name="domain-conformance",
            help="Domain entity conformance: enforce the entity conventions over a Python workspace.",
            add_completion=False,
        )

        def _session_start() -> None:
            print(CONFORMANCE_BANNER, file=sys.stderr)
            deps.telemetry.handshake()

        @app.command()
        def check(
            path: Path = typer.Argument(Path("."), help="Workspace root or a single Python file"),  # noqa: B008
            min_severity: str | None = typer.Option(
                None, "--min-severity", help="Lowest severity that fails the run: info, warning or error"
            ),
            workers: int | None = typer.Option(
                None, "--workers", min=0, help="Thread pool size (0 = automatic, 1 = sequential)"
            ),
            report: Path | None = typer.Option(None, "--report", help="Where to write the JSON report"),  # noqa: B008
            pending_dir: Path | None = typer.Option(  # noqa: B008
                None, "--pending-dir", help="Directory for one-file-per-violation output"
            ),
            rule: list[str] | None = typer.Option(  # noqa: B008
                None, "--rule", help="Run only this rule (name or code); repeatable"
            ),
        ) -> None:
            """Run every conformance rule over the workspace."""
            config = deps.config_loader
            try:
                threshold = (
                    ConfigurationLoader.parse_severity(min_severity)
                    if min_severity is not None
                    else config.min_severity
                )
            except ConfigurationError as exc:
                raise typer.BadParameter(str(exc), param_hint="--min-severity") from exc

            _session_start()
            rules = RuleCatalog.default(
                conventions=config.conventions,
                severity_overrides=config.severity_overrides,
                disabled=config.disabled_rules,
                only=rule or (),
            )
            cancel_event = threading.Event()
            runner = RuleRunner(
                rules,
                max_workers=workers if workers is not None else config.workers,
                cancel_event=cancel_event,
            )
            sinks: list[ViolationSinkProtocol] = [
                JsonReportWriter(deps.filesystem, str(report or config.report_path), rules=rules),
                PendingViolationWriter(deps.filesystem, str(pending_dir or config.pending_dir)),
            ]
            use_case = CheckConformanceUseCase(
                symbol_source=deps.symbol_source,
                runner=runner,
                telemetry=deps.telemetry,
                config_loader=config,
                sinks=sinks,
            )

            previous_handler = CLIAppFactory._install_cancel_handler(cancel_event)
            try:
                result = use_case.execute(str(path))
            finally:
                if previous_handler is not None:
                    signal.signal(signal.SIGINT, previous_handler)

            deps.reporter.report_run(result, threshold)
            sys.exit(CLIAppFactory.exit_code(result, threshold))

        @app.command("rules")
        def list_rules() -> None:
            """List the rule catalog with effective severities."""
            config = deps.config_loader
            rules = RuleCatalog.default(
                conventions=config.conventions,
                severity_overrides=config.severity_overrides,
                disabled=config.disabled_rules,
            )
            deps.reporter.report_catalog(
                [(r.name, r.severity.value, r.description, r.adr) for r in rules]
            )

        return app

    @staticmethod
    def _install_cancel_handler(cancel_event: threading.Event):
        """Ctrl-C stops scheduling new rule evaluations; in-flight ones finish."""
        if threading.current_thread() is not threading.main_thread():
            return None
        return signal.signal(signal.SIGINT, lambda _signum, _frame: cancel_event.set())
