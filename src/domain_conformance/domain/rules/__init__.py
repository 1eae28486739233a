"""Domain models for conformance rules: the Rule contract, eligibility filters and the rule base."""

from enum import Enum
from typing import ClassVar, Protocol

from domain_conformance.domain.constants import ADR_ROOT
from domain_conformance.domain.conventions import ConventionSet
from domain_conformance.domain.entities import Severity, Violation
from domain_conformance.domain.symbols import TypeKind, TypeSymbol

__all__ = [
    "ConformanceRule",
    "Eligibility",
    "Rule",
]


class Rule(Protocol):
    """One convention check: a pure function from a Symbol Model to zero-or-one Violation."""

    name: str
    description: str
    severity: Severity
    adr: str

    def applies_to(self, model: TypeSymbol) -> bool:
        """Eligibility filter. False means "not applicable", never a violation."""
        ...

    def evaluate(self, model: TypeSymbol) -> Violation | None:
        """Filter, then detect. Same model always yields the same result."""
        ...


class Eligibility(Enum):
    """
    Closed set of filter shapes rules compose with their detector.

    ENTITY_LINEAGE: concrete classes descending from a lineage root.
    ABSTRACT_TIER: abstract classes descending from a lineage root.
    ENUMERATION: enumeration types only.
    UNRESTRICTED: every type; the rule narrows further itself.
    """

    UNRESTRICTED = "unrestricted"
    ENTITY_LINEAGE = "entity_lineage"
    ABSTRACT_TIER = "abstract_tier"
    ENUMERATION = "enumeration"

    @staticmethod
    def in_lineage(model: TypeSymbol, conventions: ConventionSet) -> bool:
        """Ancestors include a lineage root and the type is not a root itself."""
        if model.name in conventions.lineage_roots:
            return False
        return model.descends_from(conventions.lineage_roots)

    def admits(self, model: TypeSymbol, conventions: ConventionSet) -> bool:
        if self is Eligibility.UNRESTRICTED:
            return True
        if self is Eligibility.ENUMERATION:
            return model.is_enumeration
        if not Eligibility.in_lineage(model, conventions):
            return False
        if self is Eligibility.ENTITY_LINEAGE:
            return model.is_concrete_class
        return model.kind is TypeKind.CLASS and model.is_abstract


class ConformanceRule:
    """
    Shared base for catalog rules.

    Subclasses declare identity as class attributes and implement `detect()`,
    which only runs on types the eligibility filter admits. Instances hold the
    immutable convention set and severity; no per-type or per-run state.
    """

    code: ClassVar[str] = ""
    title: ClassVar[str] = ""
    description: ClassVar[str] = ""
    adr_slug: ClassVar[str] = ""
    eligibility: ClassVar[Eligibility] = Eligibility.ENTITY_LINEAGE
    default_severity: ClassVar[Severity] = Severity.ERROR

    def __init__(
        self,
        conventions: ConventionSet | None = None,
        severity: Severity | None = None,
    ) -> None:
        self.conventions = conventions or ConventionSet()
        self.severity = severity or self.default_severity

    @property
    def name(self) -> str:
        return f"{self.code}_{self.title}"

    @property
    def adr(self) -> str:
        prefix, number = self.code[:2], self.code[2:]
        return f"{ADR_ROOT}/{prefix}-{number}-{self.adr_slug}.md"

    def applies_to(self, model: TypeSymbol) -> bool:
        return self.eligibility.admits(model, self.conventions)

    def evaluate(self, model: TypeSymbol) -> Violation | None:
        if not self.applies_to(model):
            return None
        return self.detect(model)

    def detect(self, model: TypeSymbol) -> Violation | None:
        """Detection logic on an already-qualified type."""
        raise NotImplementedError(f"{type(self).__name__} does not implement detect()")

    def violation(
        self,
        model: TypeSymbol,
        message: str,
        llm_hint: str,
        line: int | None = None,
    ) -> Violation:
        """Build a Violation located at `line` (default: the type declaration)."""
        return Violation(
            rule=self.name,
            severity=self.severity,
            adr=self.adr,
            project=model.project,
            file=model.file,
            line=model.line if line is None else line,
            message=message,
            llm_hint=llm_hint,
            type_name=model.full_name,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} {self.severity.value}>"
