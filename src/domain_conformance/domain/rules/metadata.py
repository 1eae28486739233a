"""Nested metadata rules: declarative constraints live in `<Entity>Metadata`, nowhere else."""

from domain_conformance.domain.entities import Violation
from domain_conformance.domain.rules import ConformanceRule
from domain_conformance.domain.rules.detectors import (
    BodyPatternSearch,
    EntityFacts,
    MetadataDecomposer,
    StructuralPredicate,
)
from domain_conformance.domain.symbols import BodyNode, MemberKind, MemberSymbol, NodeKind, TypeSymbol

CONSTRAINT_FACTORIES: frozenset[str] = frozenset({"Field", "PrivateAttr"})

ANNOTATED_CONSTRAINTS: frozenset[str] = frozenset(
    {
        "Gt",
        "Ge",
        "Lt",
        "Le",
        "Interval",
        "MultipleOf",
        "MinLen",
        "MaxLen",
        "Len",
        "Predicate",
        "Timezone",
        "Field",
        "StringConstraints",
        "constr",
        "conint",
        "confloat",
    }
)


def _is_change_metadata(member: MemberSymbol) -> bool:
    name = member.plain_name
    return name.startswith("change_") and name.endswith("_metadata")


def _is_declarative_constraint(member: MemberSymbol) -> bool:
    if member.decorators and member.kind is MemberKind.FIELD:
        return True
    if member.initializer_call in CONSTRAINT_FACTORIES:
        return True
    if member.initializer_call == "field" and "metadata" in member.initializer_keywords:
        return True
    return member.initializer_call in ANNOTATED_CONSTRAINTS


class StaticMetadataOverDataAnnotationsRule(ConformanceRule):
    """DE012"""

    code = "DE012"
    title = "StaticMetadataOverDataAnnotations"
    description = "Constraints are static metadata values, not declarative annotations on fields."
    adr_slug = "static-metadata-over-data-annotations"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.fields, selects=lambda m: True, conforms=lambda m: not _is_declarative_constraint(m)
        )
        if offender is None:
            return None
        metadata_name = self.conventions.metadata_class_name(model.name)
        return self.violation(
            model,
            f"Field '{offender.name}' of '{model.name}' declares constraints through annotations.",
            f"Drop the Annotated/Field constraints on '{offender.name}' and declare them as class "
            f"attributes of '{metadata_name}' (for example `{offender.plain_name}_max_length: int = 100`), "
            "then enforce them in the validate_* methods.",
            line=offender.line,
        )


class MetadataNamingConventionRule(ConformanceRule):
    """
    DE013: metadata member names are `{property}{suffix}`.

    The suffix is chosen longest first so `birth_date_min_age_in_years` splits
    into `birth_date` + `_min_age_in_years`. The property must exist on the
    entity, inherited properties included.
    """

    code = "DE013"
    title = "MetadataNamingConvention"
    description = "Nested metadata members are named {property}{suffix} from the known suffix vocabulary."
    adr_slug = "metadata-naming-convention"

    def detect(self, model: TypeSymbol) -> Violation | None:
        metadata = EntityFacts.metadata_class(model, self.conventions)
        if metadata is None:
            return None
        decomposer = MetadataDecomposer(self.conventions.metadata_suffixes)
        properties = EntityFacts.property_names(model)
        for member in sorted(metadata.members, key=lambda m: m.line):
            if member.kind not in (MemberKind.FIELD, MemberKind.PROPERTY):
                continue
            if not member.is_public or member.is_special:
                continue
            parts = decomposer.decompose(member.name)
            if parts is None:
                return self.violation(
                    model,
                    f"Member '{member.name}' of '{metadata.name}' does not follow the "
                    f"{{property}}{{suffix}} convention. Valid suffixes: {decomposer.vocabulary()}",
                    f"Rename '{member.name}' of '{metadata.name}' to {{property}}{{suffix}}, for example "
                    "first_name_max_length or birth_date_is_required.",
                    line=member.line,
                )
            prefix, suffix = parts
            if prefix not in properties:
                return self.violation(
                    model,
                    f"Member '{member.name}' of '{metadata.name}' uses suffix '{suffix}' but '{prefix}' "
                    f"is not a property of '{model.name}'.",
                    f"Check that '{prefix}' is the property name on '{model.name}'; if it does not exist "
                    f"'{member.name}' is misnamed.",
                    line=member.line,
                )
        return None


class InlineMetadataInitializationRule(ConformanceRule):
    """DE014"""

    code = "DE014"
    title = "InlineMetadataInitialization"
    description = "Metadata values are initialised inline, without class-body code or __init_subclass__."
    adr_slug = "inline-metadata-initialization"

    def detect(self, model: TypeSymbol) -> Violation | None:
        metadata = EntityFacts.metadata_class(model, self.conventions)
        if metadata is None or not metadata.has_static_initializer:
            return None
        return self.violation(
            model,
            f"'{metadata.name}' runs code when the class body executes.",
            f"Initialise every attribute of '{metadata.name}' inline (`name: int = 100`) and remove "
            "class-body statements and __init_subclass__.",
            line=metadata.line,
        )


class ChangeMetadataUsesLockRule(ConformanceRule):
    """DE015: metadata is process-wide; concurrent customisation must be serialised."""

    code = "DE015"
    title = "ChangeMetadataUsesLock"
    description = "change_*_metadata methods update metadata inside a lock block."
    adr_slug = "change-metadata-uses-lock"

    def detect(self, model: TypeSymbol) -> Violation | None:
        owners = [model]
        metadata = EntityFacts.metadata_class(model, self.conventions)
        if metadata is not None:
            owners.append(metadata)
        for owner in owners:
            offender = StructuralPredicate.first(
                owner.methods,
                selects=_is_change_metadata,
                conforms=lambda m: BodyPatternSearch.contains(m, self._is_lock_block),
            )
            if offender is not None:
                return self.violation(
                    model,
                    f"'{owner.name}.{offender.name}' changes metadata without holding a lock.",
                    f"Wrap the assignments in '{offender.name}' in `with cls._lock:` "
                    "(a class-level threading.Lock).",
                    line=offender.line,
                )
        return None

    @staticmethod
    def _is_lock_block(node: BodyNode) -> bool:
        if node.kind is not NodeKind.WITH:
            return False
        return any(
            "lock" in item.qualified_name.lower()
            for child in node.children_in("items")
            for item in child.walk()
        )
