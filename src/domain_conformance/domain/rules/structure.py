"""Type-shape rules: sealing, constructors, capabilities and entity-info ownership."""

from domain_conformance.domain.rules import ConformanceRule, Eligibility
from domain_conformance.domain.rules.detectors import StructuralPredicate
from domain_conformance.domain.entities import Violation
from domain_conformance.domain.symbols import TypeSymbol

ENTITY_INFO_FIELDS: frozenset[str] = frozenset(
    {
        "id",
        "created_at",
        "created_by",
        "last_changed_at",
        "last_changed_by",
        "version",
        "tenant_code",
    }
)


class SealedClassRule(ConformanceRule):
    """DE001: a concrete class nobody extends must be marked `@final`."""

    code = "DE001"
    title = "SealedClass"
    description = "Concrete classes without subtypes in the workspace must be decorated with @final."
    adr_slug = "sealed-classes"
    eligibility = Eligibility.UNRESTRICTED

    def applies_to(self, model: TypeSymbol) -> bool:
        return model.is_concrete_class

    def detect(self, model: TypeSymbol) -> Violation | None:
        if model.is_final or model.workspace.has_subtypes(model.name):
            return None
        return self.violation(
            model,
            f"Class '{model.name}' is concrete and has no subtypes but is not marked @final.",
            f"Decorate '{model.name}' with @final (from typing). "
            "If the class is meant to be extended, make it abstract instead.",
        )


class PrivateConstructorRule(ConformanceRule):
    """DE002: every declared constructor is private; instances come from factories."""

    code = "DE002"
    title = "PrivateConstructor"
    description = "Declared constructors must be private (@private); use static factory methods."
    adr_slug = "private-constructors"
    eligibility = Eligibility.UNRESTRICTED

    def applies_to(self, model: TypeSymbol) -> bool:
        return model.is_concrete_class

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.constructors, selects=lambda m: True, conforms=lambda m: m.is_private
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"Constructor of '{model.name}' is {offender.accessibility.value}; constructors must be private.",
            f"Decorate '{model.name}.__init__' with @private from domain_conformance.markers "
            "and create instances through register_new / create_from_existing_info.",
            line=offender.line,
        )


class AggregateRootInterfaceRule(ConformanceRule):
    """DE005"""

    code = "DE005"
    title = "AggregateRootInterface"
    description = "Types named *AggregateRoot* must implement the aggregate root capability."
    adr_slug = "aggregate-root-interface"

    def detect(self, model: TypeSymbol) -> Violation | None:
        capability = self.conventions.aggregate_root_capability
        if capability not in model.name or capability in model.ancestors:
            return None
        return self.violation(
            model,
            f"'{model.name}' is named as an aggregate root but does not implement '{capability}'.",
            f"Add '{capability}' to the bases of '{model.name}' or rename the class.",
        )


class TwoPrivateConstructorsRule(ConformanceRule):
    """
    DE020: exactly two private constructors.

    One takes no parameters (used by the clone path) and one takes the full
    state (used by reconstitution). In Python both are `@overload` signatures
    of `__init__`.
    """

    code = "DE020"
    title = "TwoPrivateConstructors"
    description = "Entities declare exactly two private constructors: one parameterless, one with parameters."
    adr_slug = "two-private-constructors"

    def detect(self, model: TypeSymbol) -> Violation | None:
        private = [c for c in model.constructors if c.is_private]
        parameterless = [c for c in private if not c.parameters]
        with_parameters = [c for c in private if c.parameters]
        if len(private) == 2 and len(parameterless) == 1 and len(with_parameters) == 1:
            return None
        return self.violation(
            model,
            f"'{model.name}' declares {len(private)} private constructor(s) "
            f"({len(parameterless)} parameterless, {len(with_parameters)} with parameters); expected exactly two.",
            f"Declare two @private @overload signatures of '{model.name}.__init__': "
            "`def __init__(self) -> None` and one taking every stored property "
            f"(starting with `entity_info: {self.conventions.entity_info_type}`).",
        )


class NoExternalDependenciesRule(ConformanceRule):
    """DE027: entities hold state, not collaborators."""

    code = "DE027"
    title = "NoExternalDependencies"
    description = "Entities must not hold instance fields typed with capabilities (services, repositories)."
    adr_slug = "no-external-dependencies"

    def detect(self, model: TypeSymbol) -> Violation | None:
        def is_capability(ref_name: str) -> bool:
            declared = model.workspace.lookup(ref_name)
            return declared is not None and declared.is_capability

        offender = StructuralPredicate.first(
            model.state_members,
            selects=lambda m: m.annotation is not None,
            conforms=lambda m: not is_capability(m.annotation.name),  # type: ignore[union-attr]
        )
        if offender is None:
            return None
        dependency = offender.annotation.name if offender.annotation else ""
        return self.violation(
            model,
            f"'{model.name}.{offender.name}' holds a dependency on '{dependency}'.",
            f"Remove '{offender.name}' from '{model.name}'. Pass what the operation needs as a "
            "method parameter or move the orchestration into a domain service.",
            line=offender.line,
        )


class EntityInfoManagedByBaseRule(ConformanceRule):
    """DE031"""

    code = "DE031"
    title = "EntityInfoManagedByBase"
    description = "Identity, audit and version fields belong to the base class via EntityInfo."
    adr_slug = "entity-info-managed-by-base"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.state_members,
            selects=lambda m: True,
            conforms=lambda m: m.plain_name not in ENTITY_INFO_FIELDS,
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"'{model.name}' declares '{offender.name}', which is managed by the entity base.",
            f"Remove '{offender.name}' from '{model.name}' and read it from "
            f"'{self.conventions.entity_info_type}' on the base class.",
            line=offender.line,
        )


class OptimisticLockingViaEntityInfoRule(ConformanceRule):
    """DE032"""

    code = "DE032"
    title = "OptimisticLockingViaEntityInfo"
    description = "Constructors with parameters receive EntityInfo so the version travels with the state."
    adr_slug = "optimistic-locking-via-entity-info"

    def detect(self, model: TypeSymbol) -> Violation | None:
        entity_info = self.conventions.entity_info_type
        offender = StructuralPredicate.first(
            model.constructors,
            selects=lambda m: bool(m.parameters),
            conforms=lambda m: any(
                p.annotation is not None and p.annotation.mentions(entity_info) for p in m.parameters
            ),
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"Constructor of '{model.name}' with parameters does not take '{entity_info}'.",
            f"Add `entity_info: {entity_info}` as the first parameter of the full-state constructor "
            f"of '{model.name}' and forward it to the base.",
            line=offender.line,
        )


class NotReadonlyStructRule(ConformanceRule):
    """DE033: entities mutate by clone-and-replace, which a frozen aggregate cannot do."""

    code = "DE033"
    title = "NotReadonlyStruct"
    description = "Entity-lineage types must not be frozen value aggregates."
    adr_slug = "not-readonly-struct"
    eligibility = Eligibility.UNRESTRICTED

    def applies_to(self, model: TypeSymbol) -> bool:
        return Eligibility.in_lineage(model, self.conventions) and not model.is_abstract

    def detect(self, model: TypeSymbol) -> Violation | None:
        if not (model.is_value_aggregate and model.is_frozen):
            return None
        return self.violation(
            model,
            f"'{model.name}' is a frozen value aggregate but belongs to the entity lineage.",
            f"Turn '{model.name}' into a regular class; keep immutability through private "
            "setters and clone-modify-return methods.",
        )


class NestedMetadataClassRule(ConformanceRule):
    """DE059"""

    code = "DE059"
    title = "NestedMetadataClass"
    description = "The <Entity>Metadata class must be nested inside the entity, not declared beside it."
    adr_slug = "nested-metadata-class"

    def detect(self, model: TypeSymbol) -> Violation | None:
        metadata_name = self.conventions.metadata_class_name(model.name)
        sibling = next(
            (
                t
                for t in model.workspace.lookup_all(metadata_name)
                if not t.is_nested and t.project == model.project
            ),
            None,
        )
        if sibling is None:
            return None
        return self.violation(
            model,
            f"'{metadata_name}' is declared at module level in '{sibling.file}' instead of inside '{model.name}'.",
            f"Move class '{metadata_name}' into the body of '{model.name}'.",
            line=sibling.line if sibling.file == model.file else None,
        )


class DomainInterfaceMustDeclareAggregateRootRule(ConformanceRule):
    """DE060"""

    code = "DE060"
    title = "DomainInterfaceMustDeclareAggregateRoot"
    description = "An aggregate root's entity-derived capabilities must also derive the aggregate root capability."
    adr_slug = "domain-interface-must-declare-aggregate-root"

    def detect(self, model: TypeSymbol) -> Violation | None:
        aggregate_root = self.conventions.aggregate_root_capability
        entity = self.conventions.entity_capability
        if aggregate_root not in model.ancestors:
            return None
        for name in sorted(model.capabilities - {aggregate_root, entity}):
            capability = model.workspace.lookup(name)
            if capability is None:
                continue
            if entity in capability.ancestors and aggregate_root not in capability.ancestors:
                return self.violation(
                    model,
                    f"Capability '{name}' implemented by aggregate root '{model.name}' derives from "
                    f"'{entity}' but not from '{aggregate_root}'.",
                    f"Change the bases of '{name}' from '{entity}' to '{aggregate_root}'.",
                )
        return None
