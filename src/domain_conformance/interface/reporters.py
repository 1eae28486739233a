"""Protocol for conformance reporting - no infrastructure imports."""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from domain_conformance.domain.entities import RunResult, Severity


class ConformanceReporter(Protocol):
    """Protocol for reporting a run to the user."""

    def report_run(self, result: "RunResult", min_severity: "Severity") -> None:
        """Report violations, rule execution errors and resolution warnings."""
        ...

    def report_catalog(self, rules: list[tuple[str, str, str, str]]) -> None:
        """List catalog rules as (name, severity, description, adr)."""
        ...
