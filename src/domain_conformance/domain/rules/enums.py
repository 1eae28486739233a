"""Enumeration conventions (DE046)."""

from domain_conformance.domain.entities import Violation
from domain_conformance.domain.rules import ConformanceRule, Eligibility
from domain_conformance.domain.symbols import MemberSymbol, TypeSymbol

MIN_VALUE = -32768
MAX_VALUE = 32767
ZERO_MEMBER_NAME = "NONE"


class EnumConventionsRule(ConformanceRule):
    """
    DE046: persisted enumerations.

    Values are stored as 16-bit integers, so each member carries an explicit
    int literal in range; `auto()` is rejected because reordering members
    would silently change stored values. Zero is reserved for `NONE`.
    """

    code = "DE046"
    title = "EnumConventions"
    description = "Enumerations: no Enum suffix, explicit int values in 16-bit range, zero member named NONE."
    adr_slug = "enum-conventions"
    eligibility = Eligibility.ENUMERATION

    def detect(self, model: TypeSymbol) -> Violation | None:
        if model.name.endswith("Enum"):
            return self.violation(
                model,
                f"Enumeration '{model.name}' ends with 'Enum'.",
                f"Rename '{model.name}' to '{model.name[: -len('Enum')]}'.",
            )
        for member in sorted(model.enum_members, key=lambda m: m.line):
            problem = self._problem(member)
            if problem is not None:
                message, hint = problem
                return self.violation(model, f"'{model.name}.{member.name}' {message}", hint, line=member.line)
        return None

    @staticmethod
    def _problem(member: MemberSymbol) -> tuple[str, str] | None:
        value = member.value
        if member.initializer_call == "auto":
            return (
                "uses auto(); values must be explicit.",
                f"Give '{member.name}' an explicit int value between {MIN_VALUE} and {MAX_VALUE}.",
            )
        if not isinstance(value, int) or isinstance(value, bool):
            return (
                f"has a non-int value {value!r}.",
                f"Give '{member.name}' an explicit int value between {MIN_VALUE} and {MAX_VALUE}.",
            )
        if not MIN_VALUE <= value <= MAX_VALUE:
            return (
                f"has value {value}, outside the 16-bit range.",
                f"Pick a value for '{member.name}' between {MIN_VALUE} and {MAX_VALUE}.",
            )
        if value == 0 and member.name != ZERO_MEMBER_NAME:
            return (
                f"has value 0; only '{ZERO_MEMBER_NAME}' may use 0.",
                f"Rename '{member.name}' to '{ZERO_MEMBER_NAME}' or give it a non-zero value.",
            )
        return None
