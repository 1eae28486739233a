"""Assertion harness: fail a test (and therefore a build) on non-conformance."""

from domain_conformance.domain.entities import RunResult, Severity


class ConformanceViolationError(AssertionError):
    """Raised when violations at or above the minimum severity exist."""

    def __init__(self, message: str, violations: tuple = ()) -> None:
        super().__init__(message)
        self.violations = violations


class RuleExecutionFailure(AssertionError):
    """Raised when the checker itself faulted; the subject's conformance is unknown."""

    def __init__(self, message: str, errors: tuple = ()) -> None:
        super().__init__(message)
        self.errors = errors


class ConformanceAssertion:
    """
    Test-side consumer of a RunResult.

    Rule execution errors are checked first: a run in which the checker broke
    cannot vouch for the code, whatever its violation count. Resolution
    warnings never fail the assertion on their own.
    """

    def __init__(self, min_severity: Severity = Severity.ERROR) -> None:
        self.min_severity = min_severity

    def accept(self, result: RunResult) -> None:
        self.assert_conforms(result)

    def assert_conforms(self, result: RunResult) -> None:
        if result.errors:
            lines = [
                f"  {e.rule} on {e.type_name} ({e.project}/{e.file}:{e.line}): {e.exception_type}: {e.detail}"
                for e in result.errors
            ]
            raise RuleExecutionFailure(
                f"{len(result.errors)} rule execution errors:\n" + "\n".join(lines),
                errors=result.errors,
            )
        gating = result.gating_violations(self.min_severity)
        if gating:
            lines = [
                f"  [{v.severity.value.upper()}] {v.rule} {v.project}/{v.location}: {v.message}\n"
                f"      Fix: {v.llm_hint}"
                for v in gating
            ]
            raise ConformanceViolationError(
                f"{len(gating)} violations at or above {self.min_severity.value}:\n" + "\n".join(lines),
                violations=gating,
            )
