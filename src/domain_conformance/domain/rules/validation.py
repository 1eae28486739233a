"""Validation rules: public static validators driven by metadata and the validation helper."""

from domain_conformance.domain.entities import Violation
from domain_conformance.domain.rules import ConformanceRule
from domain_conformance.domain.rules.detectors import (
    BodyPatternSearch,
    EntityFacts,
    NamePatterns,
    StructuralPredicate,
)
from domain_conformance.domain.symbols import BodyNode, MemberSymbol, NodeKind, TypeSymbol

CREATE_MESSAGE_CODE = "create_message_code"


def _is_public_validate(member: MemberSymbol) -> bool:
    """Public `validate*` validators; the `is_valid` orchestrator is excluded."""
    return (
        member.is_public
        and NamePatterns.is_validator(member)
        and member.plain_name.startswith("validate")
    )


def _uses_helper(member: MemberSymbol, helper: str) -> bool:
    def matches(node: BodyNode) -> bool:
        return node.kind is NodeKind.CALL and helper in node.receiver.split(".")

    return BodyPatternSearch.contains(member, matches)


class ValidateMethodsPublicStaticRule(ConformanceRule):
    """DE009: validators are reusable without an instance."""

    code = "DE009"
    title = "ValidateMethodsPublicStatic"
    description = "validate* and is_valid methods are public and static."
    adr_slug = "validate-methods-public-static"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.methods,
            selects=NamePatterns.is_validator,
            conforms=lambda m: m.is_public and m.is_static,
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"Validator '{offender.name}' of '{model.name}' must be public and static.",
            f"Rename '{offender.name}' to '{offender.plain_name}' and decorate it with @staticmethod; "
            "pass everything it needs as parameters.",
            line=offender.line,
        )


class ValidationUtilsForStandardValidationsRule(ConformanceRule):
    """DE010"""

    code = "DE010"
    title = "ValidationUtilsForStandardValidations"
    description = "Public validate* methods delegate standard checks to the validation helper."
    adr_slug = "validation-utils-for-standard-validations"

    def detect(self, model: TypeSymbol) -> Violation | None:
        helper = self.conventions.validation_helper
        offender = StructuralPredicate.first(
            model.methods,
            selects=_is_public_validate,
            conforms=lambda m: _uses_helper(m, helper),
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"Validator '{offender.name}' of '{model.name}' does not use '{helper}'.",
            f"Implement '{offender.name}' with {helper}.validate_is_required / validate_min_length / "
            "validate_max_length and friends instead of hand-written checks.",
            line=offender.line,
        )


class ValidateParametersNullableRule(ConformanceRule):
    """DE011: validators accept missing values and report them instead of failing on them."""

    code = "DE011"
    title = "ValidateParametersNullable"
    description = "Public validate* parameters are optional, except the execution context."
    adr_slug = "validate-parameters-nullable"

    def detect(self, model: TypeSymbol) -> Violation | None:
        for member in sorted(model.methods, key=lambda m: m.line):
            if not _is_public_validate(member):
                continue
            for parameter in member.parameters:
                if parameter.annotation is None or parameter.is_optional:
                    continue
                if EntityFacts.is_execution_context(parameter.annotation, self.conventions):
                    continue
                return self.violation(
                    model,
                    f"Parameter '{parameter.name}' of validator '{member.name}' in '{model.name}' is not optional.",
                    f"Annotate '{parameter.name}' as `{parameter.annotation.text} | None` so "
                    f"'{member.name}' can report a missing value itself.",
                    line=member.line,
                )
        return None


class ValidateUsesMetadataRule(ConformanceRule):
    """DE016"""

    code = "DE016"
    title = "ValidateUsesMetadata"
    description = "Public validate* methods read their limits from the nested metadata class."
    adr_slug = "validate-uses-metadata"

    def detect(self, model: TypeSymbol) -> Violation | None:
        metadata = EntityFacts.metadata_class(model, self.conventions)
        if metadata is None:
            return None

        def references_metadata(member: MemberSymbol) -> bool:
            return BodyPatternSearch.contains(
                member,
                lambda node: node.kind in (NodeKind.NAME, NodeKind.ATTRIBUTE)
                and metadata.name in node.qualified_name.split("."),
            )

        offender = StructuralPredicate.first(
            model.methods, selects=_is_public_validate, conforms=references_metadata
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"Validator '{offender.name}' of '{model.name}' does not read '{metadata.name}'.",
            f"Pass the limits from '{metadata.name}' (for example "
            f"`{metadata.name}.<property>_max_length`) to the helper calls in '{offender.name}' "
            "instead of literals.",
            line=offender.line,
        )


class MessageCodesWithCreateMessageCodeRule(ConformanceRule):
    """DE030"""

    code = "DE030"
    title = "MessageCodesWithCreateMessageCode"
    description = "Validators that use the validation helper build their message codes with create_message_code."
    adr_slug = "message-codes-with-create-message-code"

    def detect(self, model: TypeSymbol) -> Violation | None:
        helper = self.conventions.validation_helper
        offender = StructuralPredicate.first(
            model.methods,
            selects=lambda m: NamePatterns.is_validator(m) and _uses_helper(m, helper),
            conforms=lambda m: BodyPatternSearch.contains(m, BodyPatternSearch.call_named(CREATE_MESSAGE_CODE)),
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"Validator '{offender.name}' of '{model.name}' calls '{helper}' without '{CREATE_MESSAGE_CODE}'.",
            f"Build the property code in '{offender.name}' with "
            f"`{CREATE_MESSAGE_CODE}(\"{model.name}\", \"<property>\")` and pass it to '{helper}'.",
            line=offender.line,
        )
