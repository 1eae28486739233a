"""Associated aggregate roots: references to other entities held as single properties."""

from domain_conformance.domain.entities import Violation
from domain_conformance.domain.rules import ConformanceRule
from domain_conformance.domain.rules.detectors import EntityFacts, MetadataDecomposer
from domain_conformance.domain.symbols import MemberKind, TypeSymbol

ASSOCIATION_SUFFIXES: frozenset[str] = frozenset({"_is_required", "_property_name"})


class AssociatedAggregateRootMetadataOnlyIsRequiredRule(ConformanceRule):
    """
    DE057: an associated aggregate root is validated by its own type.

    The owner's metadata may only say whether the reference is required and
    how the property is named.
    """

    code = "DE057"
    title = "AssociatedAggregateRootMetadataOnlyIsRequired"
    description = "Metadata for entity-typed properties only declares _is_required and _property_name."
    adr_slug = "associated-aggregate-root-metadata-only-is-required"

    def detect(self, model: TypeSymbol) -> Violation | None:
        associated = {m.plain_name for m, _ in EntityFacts.associated_entities(model, self.conventions)}
        metadata = EntityFacts.metadata_class(model, self.conventions)
        if not associated or metadata is None:
            return None
        decomposer = MetadataDecomposer(self.conventions.metadata_suffixes)
        for member in sorted(metadata.members, key=lambda m: m.line):
            if member.kind is MemberKind.CONSTRUCTOR:
                continue
            parts = decomposer.decompose(member.name)
            if parts is None:
                continue
            prefix, suffix = parts
            if prefix in associated and suffix not in ASSOCIATION_SUFFIXES:
                return self.violation(
                    model,
                    f"'{metadata.name}.{member.name}' constrains associated entity '{prefix}' with '{suffix}'.",
                    f"Remove '{member.name}' from '{metadata.name}'; keep only '{prefix}_is_required' "
                    f"(and '{prefix}_property_name') and let the associated type validate itself.",
                    line=member.line,
                )
        return None


class ProcessValidateSetForAssociatedAggregateRootsRule(ConformanceRule):
    """DE058"""

    code = "DE058"
    title = "ProcessValidateSetForAssociatedAggregateRoots"
    description = "Entity-typed properties change through _process_<property>_for_<op>_internal."
    adr_slug = "process-validate-set-for-associated-aggregate-roots"

    def detect(self, model: TypeSymbol) -> Violation | None:
        for member, type_name in EntityFacts.associated_entities(model, self.conventions):
            prefix = f"process_{member.plain_name}_for_"
            if any(
                m.plain_name.startswith(prefix) and m.plain_name.endswith("_internal")
                for m in model.methods
            ):
                continue
            return self.violation(
                model,
                f"Associated '{type_name}' property '{member.plain_name}' of '{model.name}' has no "
                f"'_{prefix}<operation>_internal'.",
                f"Add `def _{prefix}change_internal(self, execution_context, {member.plain_name}: "
                f"\"{type_name} | None\") -> bool` that validates, processes and then sets the reference.",
                line=member.line,
            )
        return None
