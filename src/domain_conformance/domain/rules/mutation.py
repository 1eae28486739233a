"""Controlled-mutation rules: clone-modify-return, internal delegation and registration."""

from collections.abc import Iterator

from domain_conformance.domain.entities import Violation
from domain_conformance.domain.rules import ConformanceRule
from domain_conformance.domain.rules.detectors import (
    BodyPatternSearch,
    EntityFacts,
    MemberConsistency,
    NamePatterns,
    StructuralPredicate,
)
from domain_conformance.domain.symbols import BodyNode, MemberKind, MemberSymbol, NodeKind, TypeSymbol

RESULT_WRAPPERS: frozenset[str] = frozenset({"Result", "Either", "ErrorOr", "OneOf", "Try", "Outcome"})

GUARD_EXCEPTIONS: frozenset[str] = frozenset({"TypeError", "ValueError"})

ALLOWED_RAISE_HELPERS: frozenset[str] = frozenset(
    {"raise_if_none", "raise_if_none_or_blank", "raise_if_none_or_empty"}
)

CLOCK_CALLS: frozenset[tuple[str, str]] = frozenset(
    {
        ("datetime", "now"),
        ("datetime", "utcnow"),
        ("datetime", "today"),
        ("date", "today"),
        ("time", "time"),
    }
)


def _is_clone_modify_candidate(member: MemberSymbol) -> bool:
    return (
        NamePatterns.is_business_method(member)
        and member.plain_name != "clone"
        and not member.is_abstract
    )


class CloneModifyReturnRule(ConformanceRule):
    """DE003: public mutations return a modified clone, or None when validation fails."""

    code = "DE003"
    title = "CloneModifyReturn"
    description = "Public instance methods return an optional of the declaring type (clone-modify-return)."
    adr_slug = "clone-modify-return"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.methods,
            selects=_is_clone_modify_candidate,
            conforms=lambda m: m.returns is not None and m.returns.is_optional_self,
        )
        if offender is None:
            return None
        returned = offender.returns.text if offender.returns else "nothing"
        return self.violation(
            model,
            f"Method '{offender.name}' of '{model.name}' returns {returned}; "
            f"expected '{model.name} | None'.",
            f"Change '{offender.name}' to clone self, apply the change to the clone through "
            f"'_{offender.plain_name}_internal' and return the clone, or None when validation fails. "
            f"Annotate the return as `-> \"{model.name} | None\"`.",
            line=offender.line,
        )


class BitwiseAndForValidationRule(ConformanceRule):
    """DE006: every validation in an internal method must run, so `&` replaces `and`."""

    code = "DE006"
    title = "BitwiseAndForValidation"
    description = "Internal methods combine validation results with `&`, never the short-circuit `and`."
    adr_slug = "bitwise-and-for-validation"

    def detect(self, model: TypeSymbol) -> Violation | None:
        found = BodyPatternSearch.first_in(
            (m for m in model.methods if NamePatterns.is_internal(m)),
            lambda node: node.kind is NodeKind.BOOL_AND,
        )
        if found is None:
            return None
        member, node = found
        return self.violation(
            model,
            f"Method '{member.name}' of '{model.name}' combines results with 'and' at line {node.line}.",
            f"Replace 'and' with '&' in '{member.name}' so every validation runs and all "
            "messages are collected (wrap comparisons in parentheses).",
            line=node.line,
        )


class NullableReturnOverResultPatternRule(ConformanceRule):
    """DE007"""

    code = "DE007"
    title = "NullableReturnOverResultPattern"
    description = "Public methods signal failure with None plus context messages, not Result wrappers."
    adr_slug = "nullable-return-over-result-pattern"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.methods,
            selects=lambda m: m.is_public and m.returns is not None,
            conforms=lambda m: m.returns.name not in RESULT_WRAPPERS,  # type: ignore[union-attr]
        )
        if offender is None:
            return None
        wrapper = offender.returns.name if offender.returns else ""
        return self.violation(
            model,
            f"Method '{offender.name}' of '{model.name}' returns the result wrapper '{wrapper}'.",
            f"Return '{model.name} | None' from '{offender.name}' and report failures through "
            "the execution context messages instead of a result type.",
            line=offender.line,
        )


class ExceptionsVsNullableReturnRule(ConformanceRule):
    """
    DE008: business rules never raise.

    The only tolerated raises are missing-dependency guards: a TypeError or
    ValueError raised directly inside `if x is None:`, or one of the
    `raise_if_none*` helpers. Abstract members and dunders other than
    `__init__` are skipped.
    """

    code = "DE008"
    title = "ExceptionsVsNullableReturn"
    description = "Raise only as a None guard; business validation failures return None with messages."
    adr_slug = "exceptions-vs-nullable-return"

    def detect(self, model: TypeSymbol) -> Violation | None:
        candidates = [
            m
            for m in model.members
            if m.kind in (MemberKind.METHOD, MemberKind.CONSTRUCTOR)
            and not m.is_abstract
            and (not m.is_special or m.name == "__init__")
        ]
        seen_lines: set[int] = set()
        for member in sorted(candidates, key=lambda m: m.line):
            root = member.body()
            if root is None or root.line in seen_lines:
                continue
            seen_lines.add(root.line)
            offence = next(self._offences(root, None), None)
            if offence is None:
                continue
            return self.violation(
                model,
                f"'{member.name}' of '{model.name}' raises for a business condition at line {offence.line}.",
                f"Remove the raise from '{member.name}' of '{model.name}'. Report the failure "
                f"through {self.conventions.validation_helper} or the execution context messages and "
                "return None. Only `if x is None: raise TypeError(...)` guards or "
                "raise_if_none / raise_if_none_or_blank / raise_if_none_or_empty are allowed.",
                line=offence.line,
            )
        return None

    def _offences(self, node: BodyNode, parent: BodyNode | None) -> Iterator[BodyNode]:
        if node.kind is NodeKind.RAISE and not self._is_guard(node, parent):
            yield node
        if node.kind is NodeKind.CALL:
            callee = node.name.lstrip("_")
            if callee.startswith(("raise_", "throw_")) and callee not in ALLOWED_RAISE_HELPERS:
                yield node
        for child in node.children():
            yield from self._offences(child, node)

    @staticmethod
    def _is_guard(node: BodyNode, parent: BodyNode | None) -> bool:
        if parent is None or parent.kind is not NodeKind.IF or node.role != "body":
            return False
        if node.name not in GUARD_EXCEPTIONS:
            return False
        return any(ExceptionsVsNullableReturnRule._is_none_test(test) for test in parent.children_in("test"))

    @staticmethod
    def _is_none_test(test: BodyNode) -> bool:
        """`x is None`, or several of them joined by `or` / `and`."""
        if test.kind in (NodeKind.BOOL_OR, NodeKind.BOOL_AND):
            operands = test.children_in("values")
            return bool(operands) and all(ExceptionsVsNullableReturnRule._is_none_test(o) for o in operands)
        return (
            test.kind is NodeKind.COMPARE
            and test.name == "is"
            and any(c.kind is NodeKind.CONST and c.name == "None" for c in test.children_in("ops"))
        )


class PublicMethodsDelegateToInternalRule(ConformanceRule):
    """DE021"""

    code = "DE021"
    title = "PublicMethodsDelegateToInternal"
    description = "Public change_* methods delegate to a matching _change_*_internal method."
    adr_slug = "public-methods-delegate-to-internal"

    def detect(self, model: TypeSymbol) -> Violation | None:
        found = MemberConsistency.missing_companion(
            model,
            selects=lambda m: m.is_public
            and m.is_instance
            and NamePatterns.is_change(m)
            and not NamePatterns.is_internal(m),
            companion_name=lambda m: f"{m.plain_name}_internal",
            alternative=lambda m: BodyPatternSearch.contains(
                m, lambda node: node.kind is NodeKind.CALL and node.name.endswith("_internal")
            ),
        )
        if found is None:
            return None
        member, expected = found
        return self.violation(
            model,
            f"Public method '{member.name}' of '{model.name}' has no '_{expected}' and calls no internal method.",
            f"Add `def _{expected}(self, execution_context, ...) -> bool` to '{model.name}' "
            f"holding the validation and assignment logic, and call it from '{member.name}' on the clone.",
            line=member.line,
        )


class SetMethodsPrivateRule(ConformanceRule):
    """DE022"""

    code = "DE022"
    title = "SetMethodsPrivate"
    description = "set_* methods are private; state changes go through internal methods."
    adr_slug = "set-methods-private"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.methods,
            selects=lambda m: NamePatterns.is_setter(m) and m.plain_name != "set_entity_info",
            conforms=lambda m: m.is_private,
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"Method '{offender.name}' of '{model.name}' is {offender.accessibility.value}; set_* methods must be private.",
            f"Rename '{offender.name}' to '__{offender.plain_name}' so only '{model.name}' can call it.",
            line=offender.line,
        )


class RegisterInternalCalledOnceRule(ConformanceRule):
    """DE023: one registration (clone, version bump, audit) per public operation."""

    code = "DE023"
    title = "RegisterInternalCalledOnce"
    description = "A public method calls register*_internal at most once."
    adr_slug = "register-internal-called-once"

    def detect(self, model: TypeSymbol) -> Violation | None:
        def is_registration(node: BodyNode) -> bool:
            callee = node.name.lstrip("_")
            return node.kind is NodeKind.CALL and callee.startswith("register") and callee.endswith("_internal")

        for member in sorted(model.methods, key=lambda m: m.line):
            if not member.is_public or NamePatterns.is_validator(member):
                continue
            extra = MemberConsistency.excess_occurrence(member, is_registration)
            if extra is not None:
                return self.violation(
                    model,
                    f"Method '{member.name}' of '{model.name}' calls '{extra.name}' more than once "
                    f"(again at line {extra.line}).",
                    f"Call '{extra.name}' exactly once in '{member.name}'. Group every change of "
                    "the operation inside the single registration callback.",
                    line=extra.line,
                )
        return None


class PublicMethodNeverCallsPublicRule(ConformanceRule):
    """DE024"""

    code = "DE024"
    title = "PublicMethodNeverCallsPublic"
    description = "Public instance methods never call other public instance methods of the same type."
    adr_slug = "public-method-never-calls-public"

    def detect(self, model: TypeSymbol) -> Violation | None:
        public = {
            m.name for m in model.methods if m.is_public and m.is_instance and not m.is_special
        }
        found = BodyPatternSearch.first_in(
            (m for m in model.methods if m.is_public and m.is_instance and not m.is_special),
            lambda node: node.kind is NodeKind.CALL and node.receiver == "self" and node.name in public,
        )
        if found is None:
            return None
        member, node = found
        return self.violation(
            model,
            f"Public method '{member.name}' of '{model.name}' calls public method '{node.name}'.",
            f"Call '_{node.name}_internal' (or the shared private helper) from '{member.name}' "
            f"instead of '{node.name}', so a single operation registers a single change.",
            line=node.line,
        )


class IntermediateVariablesInValidationRule(ConformanceRule):
    """DE025"""

    code = "DE025"
    title = "IntermediateVariablesInValidation"
    description = "Internal methods with several set_* calls accumulate outcomes in `is_success`."
    adr_slug = "intermediate-variables-in-validation"

    def detect(self, model: TypeSymbol) -> Violation | None:
        def is_setter_call(node: BodyNode) -> bool:
            return node.kind is NodeKind.CALL and node.name.lstrip("_").startswith("set_")

        for member in sorted(model.methods, key=lambda m: m.line):
            if not NamePatterns.is_internal(member):
                continue
            if member.returns is None or member.returns.name != "bool":
                continue
            if len(BodyPatternSearch.all(member, is_setter_call)) < 2:
                continue
            if BodyPatternSearch.contains(
                member, lambda node: node.kind is NodeKind.ASSIGN and node.name == "is_success"
            ):
                continue
            return self.violation(
                model,
                f"Method '{member.name}' of '{model.name}' chains several set_* calls without 'is_success'.",
                f"In '{member.name}' assign each set_* result to a variable, combine them with "
                "`is_success = a & b` and return `is_success`.",
                line=member.line,
            )
        return None


class DerivedPropertiesStoredRule(ConformanceRule):
    """DE026"""

    code = "DE026"
    title = "DerivedPropertiesStored"
    description = "Public properties expose stored values; derived values are computed once and stored."
    adr_slug = "derived-properties-stored"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.properties,
            selects=lambda m: m.is_public and m.is_instance,
            conforms=lambda m: not m.is_computed,
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"Property '{offender.name}' of '{model.name}' is computed on every read.",
            f"Store the value of '{offender.name}' in '_{offender.name}' when the inputs change and "
            f"make the getter `return self._{offender.name}`.",
            line=offender.line,
        )


class TimeProviderViaExecutionContextRule(ConformanceRule):
    """DE029: the clock comes from the execution context so tests control it."""

    code = "DE029"
    title = "TimeProviderViaExecutionContext"
    description = "Entities read the current time from the execution context, never the system clock."
    adr_slug = "time-provider-via-execution-context"

    def detect(self, model: TypeSymbol) -> Violation | None:
        def is_clock_call(node: BodyNode) -> bool:
            if node.kind is not NodeKind.CALL or not node.receiver:
                return False
            owner = node.receiver.rsplit(".", 1)[-1]
            return (owner, node.name) in CLOCK_CALLS

        found = BodyPatternSearch.first_in(
            (m for m in model.members if m.kind in (MemberKind.METHOD, MemberKind.CONSTRUCTOR, MemberKind.PROPERTY)),
            is_clock_call,
        )
        if found is None:
            return None
        member, node = found
        return self.violation(
            model,
            f"'{member.name}' of '{model.name}' reads the system clock via '{node.qualified_name}()'.",
            f"Use `{EntityFacts.pascal_to_snake(self.conventions.execution_context_type)}.timestamp` (the execution context "
            f"time provider) in '{member.name}' instead of '{node.qualified_name}()'.",
            line=node.line,
        )


class NoVoidMutationMethodsRule(ConformanceRule):
    """DE034"""

    code = "DE034"
    title = "NoVoidMutationMethods"
    description = "Public instance methods never return None unconditionally."
    adr_slug = "no-void-mutation-methods"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.methods,
            selects=lambda m: m.is_public and m.is_instance and not m.is_special,
            conforms=lambda m: m.returns is None or not m.returns.is_none,
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"Method '{offender.name}' of '{model.name}' is annotated '-> None' and mutates in place.",
            f"Make '{offender.name}' return a modified clone: `-> \"{model.name} | None\"`.",
            line=offender.line,
        )


class ConstructorDoesNotValidateRule(ConformanceRule):
    """DE035"""

    code = "DE035"
    title = "ConstructorDoesNotValidate"
    description = "Constructors only assign; validation belongs to the factories."
    adr_slug = "constructor-does-not-validate"

    def detect(self, model: TypeSymbol) -> Violation | None:
        found = BodyPatternSearch.first_in(model.constructors, NamePatterns.is_validation_call)
        if found is None:
            return None
        _, node = found
        return self.violation(
            model,
            f"Constructor of '{model.name}' calls '{node.name}'.",
            f"Move the '{node.name}' call out of '{model.name}.__init__' into register_new or "
            "the internal change methods; constructors only assign state.",
            line=node.line,
        )
