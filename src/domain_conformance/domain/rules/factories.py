"""Factory rules: register_new, create_from_existing_info and their inputs."""

from domain_conformance.domain.constants import PRIMITIVE_TYPES
from domain_conformance.domain.entities import Violation
from domain_conformance.domain.rules import ConformanceRule
from domain_conformance.domain.rules.detectors import BodyPatternSearch, EntityFacts, NamePatterns
from domain_conformance.domain.symbols import MemberKind, MemberSymbol, Parameter, TypeSymbol

REGISTER_NEW = "register_new"
CREATE_FROM_EXISTING_INFO = "create_from_existing_info"


def _is_public_static(member: MemberSymbol | None) -> bool:
    return member is not None and member.is_public and member.is_static


class InvalidStateNeverExistsRule(ConformanceRule):
    """DE004: the only way to obtain a new entity is a validating factory that may return None."""

    code = "DE004"
    title = "InvalidStateNeverExists"
    description = "Entities expose a public static register_new returning an optional of the type."
    adr_slug = "invalid-state-never-exists"

    def detect(self, model: TypeSymbol) -> Violation | None:
        factory = model.method(REGISTER_NEW)
        if (
            _is_public_static(factory)
            and factory is not None
            and factory.returns is not None
            and factory.returns.is_optional_self
        ):
            return None
        problem = "is missing" if factory is None else "has the wrong shape"
        return self.violation(
            model,
            f"Factory '{REGISTER_NEW}' of '{model.name}' {problem}.",
            f"Declare `@classmethod def {REGISTER_NEW}(cls, execution_context: "
            f"{self.conventions.execution_context_type}, input: ...) -> \"{model.name} | None\"` "
            "that validates the input and returns None when it is invalid.",
            line=factory.line if factory is not None else None,
        )


class RegisterNewAndCreateFromExistingInfoRule(ConformanceRule):
    """DE017"""

    code = "DE017"
    title = "RegisterNewAndCreateFromExistingInfo"
    description = "Entities expose a public static create_from_existing_info returning the type itself."
    adr_slug = "register-new-and-create-from-existing-info"

    def detect(self, model: TypeSymbol) -> Violation | None:
        factory = model.method(CREATE_FROM_EXISTING_INFO)
        if (
            _is_public_static(factory)
            and factory is not None
            and factory.returns is not None
            and factory.returns.is_self
            and not factory.returns.is_optional
        ):
            return None
        problem = "is missing" if factory is None else "has the wrong shape"
        return self.violation(
            model,
            f"Reconstitution factory '{CREATE_FROM_EXISTING_INFO}' of '{model.name}' {problem}.",
            f"Declare `@classmethod def {CREATE_FROM_EXISTING_INFO}(cls, input: ...) -> \"{model.name}\"` "
            "that rebuilds the entity from persisted state without validating it.",
            line=factory.line if factory is not None else None,
        )


class ReconstitutionDoesNotValidateRule(ConformanceRule):
    """DE018: persisted state was valid when written; re-validating it breaks old records."""

    code = "DE018"
    title = "ReconstitutionDoesNotValidate"
    description = "create_from_existing_info never calls validation methods."
    adr_slug = "reconstitution-does-not-validate"

    def detect(self, model: TypeSymbol) -> Violation | None:
        found = BodyPatternSearch.first_in(
            model.methods_named(CREATE_FROM_EXISTING_INFO), NamePatterns.is_validation_call
        )
        if found is None:
            return None
        member, node = found
        return self.violation(
            model,
            f"'{member.name}' of '{model.name}' calls '{node.name}'.",
            f"Remove the '{node.name}' call from '{member.name}'; reconstitution assigns persisted "
            "state as-is.",
            line=node.line,
        )


class InputObjectsPatternRule(ConformanceRule):
    """
    DE019: factory parameters are frozen input objects.

    Parameters typed with a primitive or with a non-frozen workspace type are
    violations. Annotations that resolve nowhere in the workspace are skipped.
    """

    code = "DE019"
    title = "InputObjectsPattern"
    description = "Factory parameters other than the execution context are frozen input value objects."
    adr_slug = "input-objects-pattern"

    def detect(self, model: TypeSymbol) -> Violation | None:
        factories = sorted(
            model.methods_named(REGISTER_NEW) + model.methods_named(CREATE_FROM_EXISTING_INFO),
            key=lambda m: m.line,
        )
        for factory in factories:
            for parameter in factory.parameters:
                if not self._is_offending(model, parameter):
                    continue
                annotation = parameter.annotation.text if parameter.annotation else ""
                return self.violation(
                    model,
                    f"Parameter '{parameter.name}: {annotation}' of '{factory.name}' in '{model.name}' "
                    "is not a frozen input object.",
                    f"Wrap the arguments of '{factory.name}' in a "
                    f"`@dataclass(frozen=True) class {EntityFacts.snake_to_pascal(factory.plain_name)}Input` "
                    "and take it as a single parameter.",
                    line=factory.line,
                )
        return None

    def _is_offending(self, model: TypeSymbol, parameter: Parameter) -> bool:
        ref = parameter.annotation
        if ref is None or EntityFacts.is_execution_context(ref, self.conventions):
            return False
        if ref.name in PRIMITIVE_TYPES:
            return True
        declared = model.workspace.lookup(ref.name)
        if declared is None:
            return False
        return not (declared.is_value_aggregate and declared.is_frozen)


class ExecutionContextFirstParameterRule(ConformanceRule):
    """DE028"""

    code = "DE028"
    title = "ExecutionContextFirstParameter"
    description = "When a member takes the execution context, it is the first parameter."
    adr_slug = "execution-context-first-parameter"

    def detect(self, model: TypeSymbol) -> Violation | None:
        members = sorted(
            (m for m in model.members if m.kind in (MemberKind.METHOD, MemberKind.CONSTRUCTOR)),
            key=lambda m: m.line,
        )
        for member in members:
            for position, parameter in enumerate(member.parameters):
                if position > 0 and EntityFacts.is_execution_context(parameter.annotation, self.conventions):
                    return self.violation(
                        model,
                        f"'{member.name}' of '{model.name}' takes '{parameter.name}' at position "
                        f"{position + 1}; the execution context must come first.",
                        f"Move `{parameter.name}: {self.conventions.execution_context_type}` to the "
                        f"first parameter of '{member.name}'.",
                        line=member.line,
                    )
        return None
