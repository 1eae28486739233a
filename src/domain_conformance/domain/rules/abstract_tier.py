"""Abstract-tier rules: the template-method shape abstract entities offer their concrete leaves."""

from domain_conformance.domain.entities import Violation
from domain_conformance.domain.rules import ConformanceRule, Eligibility
from domain_conformance.domain.rules.detectors import (
    EntityFacts,
    LineageShape,
    NamePatterns,
    StructuralPredicate,
)
from domain_conformance.domain.symbols import TypeSymbol

IS_VALID = "is_valid"
IS_VALID_CONCRETE = "is_valid_concrete_internal"
REGISTER_NEW_BASE = "register_new_base"


class AbstractTierRule(ConformanceRule):
    eligibility = Eligibility.ABSTRACT_TIER


class SetMethodPrivateInAbstractClassesRule(AbstractTierRule):
    """DE047"""

    code = "DE047"
    title = "SetMethodPrivateInAbstractClasses"
    description = "set_* methods of abstract entities are private."
    adr_slug = "set-method-private-in-abstract-classes"

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
            f"Method '{offender.name}' of abstract '{model.name}' must be private.",
            f"Rename '{offender.name}' to '__{offender.plain_name}'; subclasses change state through "
            "the protected *_internal methods.",
            line=offender.line,
        )


class ValidateMethodPublicInAbstractClassesRule(AbstractTierRule):
    """DE048"""

    code = "DE048"
    title = "ValidateMethodPublicInAbstractClasses"
    description = "Validators of abstract entities are public and static."
    adr_slug = "validate-method-public-in-abstract-classes"

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
            f"Validator '{offender.name}' of abstract '{model.name}' must be public and static.",
            f"Make '{offender.plain_name}' a public @staticmethod so concrete subclasses and callers "
            "can reuse it.",
            line=offender.line,
        )


class InternalMethodProtectedInAbstractClassesRule(AbstractTierRule):
    """DE049"""

    code = "DE049"
    title = "InternalMethodProtectedInAbstractClasses"
    description = "*_internal methods of abstract entities are protected."
    adr_slug = "internal-method-protected-in-abstract-classes"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.methods, selects=NamePatterns.is_internal, conforms=lambda m: m.is_protected
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"Internal method '{offender.name}' of abstract '{model.name}' must be protected.",
            f"Rename '{offender.name}' to '_{offender.plain_name}' (single underscore) so concrete "
            "subclasses can call it.",
            line=offender.line,
        )


class NoPublicBusinessMethodsInAbstractClassesRule(AbstractTierRule):
    """DE050: business operations belong to the concrete leaves."""

    code = "DE050"
    title = "NoPublicBusinessMethodsInAbstractClasses"
    description = "Abstract entities declare no public concrete instance methods."
    adr_slug = "no-public-business-methods-in-abstract-classes"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.methods,
            selects=lambda m: NamePatterns.is_business_method(m) and not m.is_abstract,
            conforms=lambda m: False,
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"Abstract '{model.name}' declares public business method '{offender.name}'.",
            f"Move '{offender.name}' to the concrete subclasses and keep only protected "
            f"'_{offender.plain_name}_internal' logic in '{model.name}'.",
            line=offender.line,
        )


class IsValidHierarchyInAbstractClassesRule(AbstractTierRule):
    """
    DE051: validation is a template method.

    The abstract tier owns `is_valid` (public, static) which runs its own
    checks and then `_is_valid_concrete_internal` (protected, abstract) which
    each leaf implements.
    """

    code = "DE051"
    title = "IsValidHierarchyInAbstractClasses"
    description = "Abstract entities declare public static is_valid and protected abstract _is_valid_concrete_internal."
    adr_slug = "is-valid-hierarchy-in-abstract-classes"

    def detect(self, model: TypeSymbol) -> Violation | None:
        problems: list[str] = []
        is_valid = model.method(IS_VALID)
        if is_valid is None:
            problems.append(f"'{IS_VALID}' is missing")
        elif not (is_valid.is_public and is_valid.is_static):
            problems.append(f"'{IS_VALID}' must be public and static")
        concrete = model.method(IS_VALID_CONCRETE)
        if concrete is None:
            problems.append(f"'_{IS_VALID_CONCRETE}' is missing")
        else:
            if not concrete.is_protected:
                problems.append(f"'{concrete.name}' must be protected")
            if not concrete.is_abstract:
                problems.append(f"'{concrete.name}' must be abstract")
        if not problems:
            return None
        context = self.conventions.execution_context_type
        return self.violation(
            model,
            f"Abstract '{model.name}' does not expose the is_valid hierarchy: {'; '.join(problems)}.",
            f"Declare in '{model.name}': `@staticmethod def {IS_VALID}(execution_context: {context}, ...) -> bool` "
            f"and `@abstractmethod def _{IS_VALID_CONCRETE}(self, execution_context: {context}) -> bool`.",
            line=is_valid.line if is_valid is not None else None,
        )


class ProtectedConstructorsInAbstractClassesRule(AbstractTierRule):
    """DE052"""

    code = "DE052"
    title = "ProtectedConstructorsInAbstractClasses"
    description = "Constructors of abstract entities are protected."
    adr_slug = "protected-constructors-in-abstract-classes"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.constructors, selects=lambda m: True, conforms=lambda m: m.is_protected
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"Constructor of abstract '{model.name}' is {offender.accessibility.value}; it must be protected.",
            f"Decorate '{model.name}.__init__' with @protected from domain_conformance.markers.",
            line=offender.line,
        )


class MetadataInAbstractClassesRule(AbstractTierRule):
    """DE053"""

    code = "DE053"
    title = "MetadataInAbstractClasses"
    description = "Abstract entities with validators declare their own nested metadata class."
    adr_slug = "metadata-in-abstract-classes"

    def detect(self, model: TypeSymbol) -> Violation | None:
        validators = [m for m in model.methods if NamePatterns.is_validator(m)]
        if not validators or EntityFacts.metadata_class(model, self.conventions) is not None:
            return None
        metadata_name = self.conventions.metadata_class_name(model.name)
        return self.violation(
            model,
            f"Abstract '{model.name}' declares validators but no nested '{metadata_name}'.",
            f"Add `class {metadata_name}:` inside '{model.name}' holding the limits used by "
            f"'{validators[0].name}'.",
        )


class MaxInheritanceDepthRule(ConformanceRule):
    """DE054: prefer composition once one abstract tier is not enough."""

    code = "DE054"
    title = "MaxInheritanceDepth"
    description = "At most one intermediate abstract tier between a concrete entity and the lineage root."
    adr_slug = "max-inheritance-depth"

    def detect(self, model: TypeSymbol) -> Violation | None:
        tiers = LineageShape.intermediate_abstract_tiers(model, self.conventions.lineage_roots)
        limit = self.conventions.max_abstract_depth
        if len(tiers) <= limit:
            return None
        chain = " -> ".join(t.name for t in tiers)
        return self.violation(
            model,
            f"'{model.name}' has {len(tiers)} intermediate abstract tiers ({chain}); at most {limit} allowed.",
            f"Collapse the abstract tiers of '{model.name}' into {limit} or replace the extra tiers with "
            "composed value objects.",
        )


class RegisterNewBaseInAbstractClassesRule(AbstractTierRule):
    """DE055"""

    code = "DE055"
    title = "RegisterNewBaseInAbstractClasses"
    description = "Abstract entities expose a public static register_new_base for their leaves."
    adr_slug = "register-new-base-in-abstract-classes"

    def detect(self, model: TypeSymbol) -> Violation | None:
        factory = model.method(REGISTER_NEW_BASE)
        if factory is not None and factory.is_public and factory.is_static:
            return None
        return self.violation(
            model,
            f"Abstract '{model.name}' has no public static '{REGISTER_NEW_BASE}'.",
            f"Declare `@staticmethod def {REGISTER_NEW_BASE}(instance, execution_context, input, "
            "handler) -> ... | None` in "
            f"'{model.name}' that validates shared state before the leaf's register_new continues.",
            line=factory.line if factory is not None else None,
        )


class NoCreateFromExistingInfoInAbstractClassesRule(AbstractTierRule):
    """DE056"""

    code = "DE056"
    title = "NoCreateFromExistingInfoInAbstractClasses"
    description = "Only concrete entities are reconstituted; abstract tiers have no create_from_existing_info."
    adr_slug = "no-create-from-existing-info-in-abstract-classes"

    def detect(self, model: TypeSymbol) -> Violation | None:
        factory = model.method("create_from_existing_info")
        if factory is None:
            return None
        return self.violation(
            model,
            f"Abstract '{model.name}' declares '{factory.name}'.",
            f"Remove '{factory.name}' from '{model.name}' and implement it on each concrete subclass.",
            line=factory.line,
        )
