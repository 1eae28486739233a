"""Violation sinks: terminal tables, the JSON report and pending-violation files."""

import json
import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import TYPE_CHECKING, TypedDict

from rich.console import Console
from rich.table import Table

from domain_conformance.domain.entities import EvaluationStatus, RunResult, Severity, Violation

if TYPE_CHECKING:
    from domain_conformance.domain.protocols import FileSystemProtocol
    from domain_conformance.domain.rules import Rule

logger = logging.getLogger(__name__)

PENDING_PATTERN = "architecture_*.txt"


class RuleResultDict(TypedDict):
    """Per (project, rule) entry of the JSON report."""

    project: str
    ruleName: str
    severity: str
    adr: str
    typesAnalyzed: int
    passed: int
    failed: int
    notApplicable: int
    errored: int
    violations: list[dict[str, object]]


class TerminalConformanceReporter:
    """Rich tables for the three result buckets. Implements ConformanceReporter."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(highlight=False)

    def report_run(self, result: RunResult, min_severity: Severity = Severity.ERROR) -> None:
        self._report_violations(result)
        self._report_errors(result)
        self._report_warnings(result)
        gating = len(result.gating_violations(min_severity))
        summary = (
            f"{result.types_analyzed} types analysed, {len(result.violations)} violations "
            f"({gating} at or above {min_severity.value}), {len(result.errors)} rule errors, "
            f"{len(result.warnings)} resolution warnings"
        )
        if result.cancelled:
            summary += " (run cancelled)"
        style = "bold red" if gating or result.errors else "bold green"
        self.console.print(f"[{style}]{summary}[/]")

    def report_catalog(self, rules: list[tuple[str, str, str, str]]) -> None:
        table = Table(title="Conformance Rules")
        table.add_column("Rule", style="cyan", no_wrap=True)
        table.add_column("Severity")
        table.add_column("Description")
        table.add_column("ADR", style="dim")
        for name, severity, description, adr in rules:
            table.add_row(name, severity, description, adr)
        self.console.print(table)

    def _report_violations(self, result: RunResult) -> None:
        if not result.violations:
            self.console.print("[green]No violations.[/]")
            return
        table = Table(title="Violations")
        table.add_column("Rule", style="cyan", no_wrap=True)
        table.add_column("Severity")
        table.add_column("Location", no_wrap=True)
        table.add_column("Message")
        for violation in result.violations:
            table.add_row(
                violation.rule,
                self._severity_label(violation.severity),
                f"{violation.project}/{violation.location}",
                violation.message,
            )
        self.console.print(table)

    def _report_errors(self, result: RunResult) -> None:
        if not result.errors:
            return
        table = Table(title="Rule Execution Errors", style="red")
        table.add_column("Rule", no_wrap=True)
        table.add_column("Type")
        table.add_column("Location", no_wrap=True)
        table.add_column("Error")
        for error in result.errors:
            table.add_row(
                error.rule,
                error.type_name,
                f"{error.project}/{error.file}:{error.line}",
                f"{error.exception_type}: {error.detail}",
            )
        self.console.print(table)

    def _report_warnings(self, result: RunResult) -> None:
        if not result.warnings:
            return
        table = Table(title="Resolution Warnings", style="yellow")
        table.add_column("Subject")
        table.add_column("Location", no_wrap=True)
        table.add_column("Reason")
        for warning in result.warnings:
            table.add_row(warning.subject, f"{warning.project}/{warning.file}:{warning.line}", warning.reason)
        self.console.print(table)

    @staticmethod
    def _severity_label(severity: Severity) -> str:
        colors = {Severity.ERROR: "red", Severity.WARNING: "yellow", Severity.INFO: "blue"}
        return f"[{colors[severity]}]{severity.value}[/]"


class JsonReportWriter:
    """Writes architecture-report.json. Implements ViolationSinkProtocol."""

    def __init__(
        self,
        filesystem: "FileSystemProtocol",
        path: str,
        rules: Iterable["Rule"] = (),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.filesystem = filesystem
        self.path = path
        self.rules = {rule.name: rule for rule in rules}
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def accept(self, result: RunResult) -> None:
        self.filesystem.write_text(self.path, json.dumps(self.build(result), indent=2) + "\n")
        logger.info("Wrote conformance report to %s", self.path)

    def build(self, result: RunResult) -> dict[str, object]:
        failing_types = {v.type_name for v in result.violations} | {e.type_name for e in result.errors}
        analysed_types = {e.full_name for e in result.evaluations}
        return {
            "timestamp": self.timestamp(),
            "totalTypesAnalyzed": result.types_analyzed,
            "totalPassed": len(analysed_types - failing_types),
            "totalViolations": len(result.violations),
            "errors": result.count_by_severity(Severity.ERROR),
            "warnings": result.count_by_severity(Severity.WARNING),
            "infos": result.count_by_severity(Severity.INFO),
            "ruleExecutionErrors": [e.to_dict() for e in result.errors],
            "resolutionWarnings": [w.to_dict() for w in result.warnings],
            "cancelled": result.cancelled,
            "ruleResults": self._rule_results(result),
        }

    def timestamp(self) -> str:
        moment = self.clock().astimezone(timezone.utc).replace(tzinfo=None)
        return moment.isoformat(timespec="seconds") + "Z"

    def _rule_results(self, result: RunResult) -> list[RuleResultDict]:
        by_key: dict[tuple[str, str], list[Violation]] = defaultdict(list)
        for violation in result.violations:
            by_key[(violation.project, violation.rule)].append(violation)
        counts: dict[tuple[str, str], dict[EvaluationStatus, int]] = defaultdict(lambda: defaultdict(int))
        for evaluation in result.evaluations:
            counts[(evaluation.project, evaluation.rule)][evaluation.status] += 1

        entries: list[RuleResultDict] = []
        for key in sorted(set(counts) | set(by_key)):
            project, rule = key
            violations = by_key.get(key, [])
            status = counts.get(key, {})
            severity, adr = self._identity(rule, violations)
            entries.append(
                {
                    "project": project,
                    "ruleName": rule,
                    "severity": severity,
                    "adr": adr,
                    "typesAnalyzed": sum(status.values()),
                    "passed": status.get(EvaluationStatus.PASSED, 0),
                    "failed": status.get(EvaluationStatus.FAILED, 0),
                    "notApplicable": status.get(EvaluationStatus.NOT_APPLICABLE, 0),
                    "errored": status.get(EvaluationStatus.ERRORED, 0),
                    "violations": [dict(v.to_dict()) for v in violations],
                }
            )
        return entries

    def _identity(self, rule_name: str, violations: list[Violation]) -> tuple[str, str]:
        """Severity and ADR from the rule itself; violations stand in for rules this writer does not know."""
        rule = self.rules.get(rule_name)
        if rule is not None:
            return rule.severity.value, rule.adr
        if violations:
            return violations[0].severity.value, violations[0].adr
        return "", ""


class PendingViolationWriter:
    """
    One text file per violation for automated-fix tooling. Implements ViolationSinkProtocol.

    Files are named architecture_<rule lowercased>_<NNN>.txt, numbered per rule
    in the sorted order of the run. Stale files from a previous run are removed
    first.
    """

    def __init__(self, filesystem: "FileSystemProtocol", directory: str) -> None:
        self.filesystem = filesystem
        self.directory = directory

    def accept(self, result: RunResult) -> None:
        removed = self.filesystem.remove_files(self.directory, PENDING_PATTERN)
        if removed:
            logger.info("Removed %d stale pending files from %s", removed, self.directory)
        if not result.violations:
            return
        self.filesystem.make_dirs(self.directory)
        numbers: dict[str, int] = defaultdict(int)
        for violation in result.violations:
            numbers[violation.rule] += 1
            name = self.file_name(violation.rule, numbers[violation.rule])
            self.filesystem.write_text(f"{self.directory}/{name}", self.render(violation))

    @staticmethod
    def file_name(rule: str, number: int) -> str:
        return f"architecture_{rule.lower()}_{number:03d}.txt"

    @staticmethod
    def render(violation: Violation) -> str:
        return "\n".join(
            [
                f"RULE: {violation.rule}",
                f"SEVERITY: {violation.severity.value}",
                f"ADR: {violation.adr}",
                f"PROJECT: {violation.project}",
                f"FILE: {violation.file}",
                f"LINE: {violation.line}",
                f"MESSAGE: {violation.message}",
                f"LLM_HINT: {violation.llm_hint}",
                "",
            ]
        )
