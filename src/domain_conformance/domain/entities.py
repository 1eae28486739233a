from dataclasses import dataclass, field
from enum import Enum
from typing import TypedDict


class Severity(Enum):
    """Violation severity. Ordered: INFO < WARNING < ERROR."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def at_least(self, minimum: "Severity") -> bool:
        return self.rank >= minimum.rank

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Case-insensitive lookup by value or member name."""
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown severity '{value}'. Use one of: info, warning, error.")


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.INFO: 0,
    Severity.WARNING: 1,
    Severity.ERROR: 2,
}


class EvaluationStatus(Enum):
    """Outcome of one (rule, type) cell of the evaluation grid."""

    PASSED = "passed"
    FAILED = "failed"
    NOT_APPLICABLE = "not_applicable"
    ERRORED = "errored"
    SKIPPED = "skipped"


class ViolationDict(TypedDict):
    """Serialized violation shape used by report writers."""

    rule: str
    severity: str
    adr: str
    project: str
    file: str
    line: int
    message: str
    llm_hint: str


@dataclass(frozen=True)
class Violation:
    """
    A reported non-conformance.

    `message` is for people; `llm_hint` is the machine-oriented remediation
    instruction meant for automated-fix tooling. Created fresh per detection.
    """

    rule: str
    severity: Severity
    adr: str
    project: str
    file: str
    line: int
    message: str
    llm_hint: str
    type_name: str = ""

    @property
    def sort_key(self) -> tuple[str, str, int, str]:
        return (self.project, self.file, self.line, self.rule)

    @property
    def location(self) -> str:
        return f"{self.file}:{self.line}"

    def to_dict(self) -> ViolationDict:
        return {
            "rule": self.rule,
            "severity": self.severity.value,
            "adr": self.adr,
            "project": self.project,
            "file": self.file,
            "line": self.line,
            "message": self.message,
            "llm_hint": self.llm_hint,
        }


@dataclass(frozen=True)
class RuleExecutionError:
    """A rule's own logic faulted on one type. The checker broke, not the subject."""

    rule: str
    type_name: str
    project: str
    file: str
    line: int
    exception_type: str
    detail: str

    @property
    def sort_key(self) -> tuple[str, str, int, str, str]:
        return (self.project, self.file, self.line, self.rule, self.type_name)

    def to_dict(self) -> dict[str, str | int]:
        return {
            "rule": self.rule,
            "type": self.type_name,
            "project": self.project,
            "file": self.file,
            "line": self.line,
            "exception": self.exception_type,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class ResolutionWarning:
    """The frontend could not fully build a Symbol Model (unparseable file, unknown base)."""

    project: str
    file: str
    line: int
    subject: str
    reason: str

    @property
    def sort_key(self) -> tuple[str, str, int, str]:
        return (self.project, self.file, self.line, self.subject)

    def to_dict(self) -> dict[str, str | int]:
        return {
            "project": self.project,
            "file": self.file,
            "line": self.line,
            "subject": self.subject,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class TypeEvaluation:
    """Status of one rule against one type; feeds per-rule report totals."""

    rule: str
    project: str
    type_name: str
    full_name: str
    file: str
    line: int
    status: EvaluationStatus


@dataclass(frozen=True)
class RunResult:
    """
    Result of one engine run: three disjoint buckets plus the evaluation grid.

    Violations and errors are sorted deterministically; they are never merged.
    """

    violations: tuple[Violation, ...] = ()
    errors: tuple[RuleExecutionError, ...] = ()
    warnings: tuple[ResolutionWarning, ...] = ()
    evaluations: tuple[TypeEvaluation, ...] = ()
    types_analyzed: int = 0
    cancelled: bool = False
    rule_names: tuple[str, ...] = field(default_factory=tuple)

    def has_errors(self) -> bool:
        """True only when an ERROR-severity violation exists."""
        return any(v.severity is Severity.ERROR for v in self.violations)

    def has_rule_errors(self) -> bool:
        return bool(self.errors)

    def gating_violations(self, minimum: Severity) -> tuple[Violation, ...]:
        return tuple(v for v in self.violations if v.severity.at_least(minimum))

    def count_by_severity(self, severity: Severity) -> int:
        return sum(1 for v in self.violations if v.severity is severity)
