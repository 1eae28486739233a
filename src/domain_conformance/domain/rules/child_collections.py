"""Composite aggregate rules: encapsulated child collections processed one child at a time."""

from domain_conformance.domain.entities import Violation
from domain_conformance.domain.rules import ConformanceRule
from domain_conformance.domain.rules.detectors import (
    BodyPatternSearch,
    EntityFacts,
    NamePatterns,
    StructuralPredicate,
)
from domain_conformance.domain.symbols import BodyNode, MemberKind, MemberSymbol, NodeKind, TypeSymbol

SEQUENCE_TYPES: frozenset[str] = frozenset({"Sequence", "tuple", "Tuple"})
COPY_CALLS: frozenset[str] = frozenset({"list", "tuple", "set", "frozenset", "dict", "deque", "copy", "deepcopy"})


class ChildCollectionRule(ConformanceRule):
    """Base for rules that only apply to aggregates holding collections of child entities."""

    def applies_to(self, model: TypeSymbol) -> bool:
        if not super().applies_to(model):
            return False
        return bool(EntityFacts.child_collections(model, self.conventions))

    def child_snake_names(self, model: TypeSymbol) -> list[str]:
        names = [EntityFacts.pascal_to_snake(child) for _, child in EntityFacts.child_collections(model, self.conventions)]
        return list(dict.fromkeys(names))

    @staticmethod
    def process_operations(model: TypeSymbol, child_snake: str) -> list[tuple[MemberSymbol, str]]:
        """(method, operation) for every `_process_<child>_for_<op>_internal`."""
        prefix = f"process_{child_snake}_for_"
        found: list[tuple[MemberSymbol, str]] = []
        for member in sorted(model.methods, key=lambda m: m.line):
            name = member.plain_name
            if name.startswith(prefix) and name.endswith("_internal"):
                operation = name[len(prefix) : -len("_internal")]
                if operation:
                    found.append((member, operation))
        return found


class ChildCollectionPrivateListFieldRule(ConformanceRule):
    """DE036"""

    code = "DE036"
    title = "ChildCollectionPrivateListField"
    description = "Mutable collections are held in non-public fields."
    adr_slug = "child-collection-private-list-field"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.state_members,
            selects=lambda m: EntityFacts.is_mutable_collection(m.annotation),
            conforms=lambda m: not m.is_public,
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"'{model.name}.{offender.name}' exposes a mutable collection publicly.",
            f"Rename '{offender.name}' to '_{offender.plain_name}' and expose it through a read-only "
            f"property returning `tuple(self._{offender.plain_name})`.",
            line=offender.line,
        )


class PublicPropertyReadOnlyListRule(ConformanceRule):
    """DE037"""

    code = "DE037"
    title = "PublicPropertyReadOnlyList"
    description = "Public collections are typed Sequence or tuple."
    adr_slug = "public-property-read-only-list"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.state_members,
            selects=lambda m: m.is_public and EntityFacts.is_collection(m.annotation),
            conforms=lambda m: m.annotation is not None and m.annotation.name in SEQUENCE_TYPES,
        )
        if offender is None:
            return None
        element = EntityFacts.element_type(offender.annotation)
        element_text = element.text if element is not None else "..."
        return self.violation(
            model,
            f"Public collection '{model.name}.{offender.name}' is not typed as a read-only sequence.",
            f"Annotate '{offender.name}' as `Sequence[{element_text}]` (or `tuple[{element_text}, ...]`) "
            "and return an immutable copy of the private list.",
            line=offender.line,
        )


class CollectionFieldAlwaysInitializedRule(ConformanceRule):
    """DE038: an empty collection, never None."""

    code = "DE038"
    title = "CollectionFieldAlwaysInitialized"
    description = "Instance collection fields are always initialised and never optional."
    adr_slug = "collection-field-always-initialized"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            (m for m in model.state_members if m.kind is MemberKind.FIELD),
            selects=lambda m: EntityFacts.is_collection(m.annotation),
            conforms=lambda m: m.has_initializer and not (m.annotation is not None and m.annotation.is_optional),
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"Collection field '{model.name}.{offender.name}' may be None or is never initialised.",
            f"Initialise '{offender.name}' to an empty collection in '{model.name}.__init__' and drop "
            "`| None` from its annotation.",
            line=offender.line,
        )


class DefensiveCopyCollectionInConstructorRule(ConformanceRule):
    """DE039"""

    code = "DE039"
    title = "DefensiveCopyCollectionInConstructor"
    description = "Constructors copy collection parameters instead of keeping the caller's instance."
    adr_slug = "defensive-copy-collection-in-constructor"

    def detect(self, model: TypeSymbol) -> Violation | None:
        for constructor in sorted(model.constructors, key=lambda m: m.line):
            for parameter in constructor.parameters:
                if not EntityFacts.is_collection(parameter.annotation):
                    continue
                if self._is_copied(constructor, parameter.name):
                    continue
                return self.violation(
                    model,
                    f"Constructor of '{model.name}' keeps collection parameter '{parameter.name}' without copying it.",
                    f"Assign `list({parameter.name})` in '{model.name}.__init__' so later changes by the "
                    "caller cannot reach the entity.",
                    line=constructor.line,
                )
        return None

    @staticmethod
    def _is_copied(constructor: MemberSymbol, parameter: str) -> bool:
        def is_copy(node: BodyNode) -> bool:
            if node.kind is not NodeKind.CALL:
                return False
            if node.name == "copy" and node.receiver == parameter:
                return True
            if node.name not in COPY_CALLS:
                return False
            return any(
                child.kind is NodeKind.NAME and child.name == parameter
                for argument in node.children_in("args")
                for child in argument.walk()
            )

        return BodyPatternSearch.contains(constructor, is_copy)


class ChildEntityProcessedOneByOneRule(ChildCollectionRule):
    """DE040"""

    code = "DE040"
    title = "ChildEntityProcessedOneByOne"
    description = "Each child collection has _process_<child>_for_<op>_internal methods."
    adr_slug = "child-entity-processed-one-by-one"

    def detect(self, model: TypeSymbol) -> Violation | None:
        for child in self.child_snake_names(model):
            if self.process_operations(model, child):
                continue
            return self.violation(
                model,
                f"'{model.name}' holds '{child}' children but has no '_process_{child}_for_<operation>_internal'.",
                f"Add `def _process_{child}_for_add_internal(self, execution_context, {child}) -> bool` "
                f"to '{model.name}' and call it once per child from the public operation.",
            )
        return None


class OperationSpecificChildValidationRule(ChildCollectionRule):
    """DE041"""

    code = "DE041"
    title = "OperationSpecificChildValidation"
    description = "Each child process operation has a matching _validate_<child>_for_<op>_internal."
    adr_slug = "operation-specific-child-validation"

    def detect(self, model: TypeSymbol) -> Violation | None:
        for child in self.child_snake_names(model):
            for member, operation in self.process_operations(model, child):
                expected = f"validate_{child}_for_{operation}_internal"
                if model.method(expected) is not None:
                    continue
                return self.violation(
                    model,
                    f"'{member.name}' of '{model.name}' has no matching '_{expected}'.",
                    f"Add `def _{expected}(self, execution_context, {child}) -> bool` to '{model.name}' "
                    f"and call it from '{member.name}' before changing the collection.",
                    line=member.line,
                )
        return None


class ChildEntityLookupByIdRule(ChildCollectionRule):
    """DE042"""

    code = "DE042"
    title = "ChildEntityLookupById"
    description = "Changing a child starts from its identifier."
    adr_slug = "child-entity-lookup-by-id"

    def detect(self, model: TypeSymbol) -> Violation | None:
        def takes_identifier(member: MemberSymbol) -> bool:
            return any(
                p.name.endswith("_id") or (p.annotation is not None and p.annotation.name == "UUID")
                for p in member.parameters
            )

        offender = StructuralPredicate.first(
            model.methods,
            selects=lambda m: m.plain_name.startswith("process_")
            and m.plain_name.endswith("_for_change_internal"),
            conforms=takes_identifier,
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"'{offender.name}' of '{model.name}' does not receive the child identifier.",
            f"Add a `<child>_id: UUID` parameter to '{offender.name}' and locate the child in the "
            "collection by that id.",
            line=offender.line,
        )


class ChildModificationViaBusinessMethodRule(ChildCollectionRule):
    """DE043: the parent changes a child by calling the child's own clone-modify-return method."""

    code = "DE043"
    title = "ChildModificationViaBusinessMethod"
    description = "Child entity types expose a public business method returning an optional of themselves."
    adr_slug = "child-modification-via-business-method"

    def detect(self, model: TypeSymbol) -> Violation | None:
        for _, child_name in EntityFacts.child_collections(model, self.conventions):
            child = model.workspace.lookup(child_name)
            if child is None:
                continue
            has_business_method = any(
                NamePatterns.is_business_method(m) and m.returns is not None and m.returns.is_optional_self
                for m in child.methods
            )
            if has_business_method:
                continue
            return self.violation(
                model,
                f"Child type '{child_name}' of '{model.name}' has no public business method returning "
                f"'{child_name} | None'.",
                f"Add a public method such as `def change_<property>(self, execution_context, ...) -> "
                f"\"{child_name} | None\"` to '{child_name}' and call it from '{model.name}'.",
            )
        return None


class NoSetMethodForCollectionsRule(ChildCollectionRule):
    """DE044"""

    code = "DE044"
    title = "NoSetMethodForCollections"
    description = "Collections change through process methods, never through set_* replacing the whole list."
    adr_slug = "no-set-method-for-collections"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.methods,
            selects=NamePatterns.is_setter,
            conforms=lambda m: not any(EntityFacts.is_collection(p.annotation) for p in m.parameters),
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"'{offender.name}' of '{model.name}' replaces a whole collection.",
            f"Remove '{offender.name}'; add and change children one at a time through "
            "_process_<child>_for_<operation>_internal.",
            line=offender.line,
        )


class DuplicateValidationIgnoresSelfRule(ChildCollectionRule):
    """DE045"""

    code = "DE045"
    title = "DuplicateValidationIgnoresSelf"
    description = "Change validation of a child skips the child's own position when checking duplicates."
    adr_slug = "duplicate-validation-ignores-self"

    def detect(self, model: TypeSymbol) -> Violation | None:
        offender = StructuralPredicate.first(
            model.methods,
            selects=lambda m: m.plain_name.startswith("validate_")
            and m.plain_name.endswith("_for_change_internal"),
            conforms=lambda m: any(p.annotation is not None and p.annotation.name == "int" for p in m.parameters),
        )
        if offender is None:
            return None
        return self.violation(
            model,
            f"'{offender.name}' of '{model.name}' cannot skip the child being changed.",
            f"Add a `current_index: int` parameter to '{offender.name}' and ignore that index when "
            "checking for duplicates.",
            line=offender.line,
        )
