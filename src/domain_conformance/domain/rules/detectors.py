"""
Detector strategies shared by catalog rules.

Five shapes cover nearly the whole catalog: structural predicates over member
descriptors, first-match body-pattern search, cross-member consistency,
nested-metadata decomposition and lineage-shape walks. Every strategy is a
pure function of the Symbol Model; none keeps state across types.
"""

from collections.abc import Callable, Iterable

from domain_conformance.domain.constants import (
    MUTABLE_COLLECTIONS,
    OTHER_COLLECTIONS,
    READ_ONLY_COLLECTIONS,
)
from domain_conformance.domain.conventions import ConventionSet
from domain_conformance.domain.symbols import (
    AncestorRef,
    BodyNode,
    MemberSymbol,
    NodeKind,
    TypeRef,
    TypeSymbol,
)

MemberPredicate = Callable[[MemberSymbol], bool]
NodePredicate = Callable[[BodyNode], bool]


class NamePatterns:
    """Name-shape predicates for the snake_case entity conventions."""

    @staticmethod
    def is_validator(member: MemberSymbol) -> bool:
        """`validate*` or `is_valid`, internal helpers excluded."""
        name = member.plain_name
        if NamePatterns.is_internal(member):
            return False
        return name.startswith("validate") or name == "is_valid"

    @staticmethod
    def is_validation_call(node: BodyNode) -> bool:
        name = node.name.lstrip("_")
        return node.kind is NodeKind.CALL and (
            name.startswith("validate") or name.startswith("is_valid")
        )

    @staticmethod
    def is_internal(member: MemberSymbol) -> bool:
        return member.plain_name.endswith("_internal")

    @staticmethod
    def is_change(member: MemberSymbol) -> bool:
        return member.plain_name.startswith("change_")

    @staticmethod
    def is_setter(member: MemberSymbol) -> bool:
        return member.plain_name.startswith("set_")

    @staticmethod
    def is_business_method(member: MemberSymbol) -> bool:
        """Public instance method that is neither special nor a validator."""
        return (
            member.is_public
            and member.is_instance
            and not member.is_special
            and not NamePatterns.is_validator(member)
        )


class StructuralPredicate:
    """Scan member descriptors and stop at the first non-conforming one."""

    @staticmethod
    def first(
        members: Iterable[MemberSymbol],
        selects: MemberPredicate,
        conforms: MemberPredicate,
    ) -> MemberSymbol | None:
        """First member chosen by `selects` that fails `conforms`, in declaration order."""
        for member in sorted(members, key=lambda m: m.line):
            if selects(member) and not conforms(member):
                return member
        return None


class BodyPatternSearch:
    """First-match predicate search over lazily built member bodies."""

    @staticmethod
    def first(member: MemberSymbol, matches: NodePredicate) -> BodyNode | None:
        for node in member.walk():
            if matches(node):
                return node
        return None

    @staticmethod
    def first_in(
        members: Iterable[MemberSymbol], matches: NodePredicate
    ) -> tuple[MemberSymbol, BodyNode] | None:
        """Earliest offending construct across members, members taken in declaration order."""
        for member in sorted(members, key=lambda m: m.line):
            node = BodyPatternSearch.first(member, matches)
            if node is not None:
                return member, node
        return None

    @staticmethod
    def contains(member: MemberSymbol, matches: NodePredicate) -> bool:
        return BodyPatternSearch.first(member, matches) is not None

    @staticmethod
    def all(member: MemberSymbol, matches: NodePredicate) -> list[BodyNode]:
        return [node for node in member.walk() if matches(node)]

    @staticmethod
    def call_named(*names: str) -> NodePredicate:
        """Predicate: a call whose callee (underscores stripped) is one of `names`."""
        wanted = frozenset(names)

        def matches(node: BodyNode) -> bool:
            return node.kind is NodeKind.CALL and node.name.lstrip("_") in wanted

        return matches


class MemberConsistency:
    """Cross-member checks: required companions and bounded call counts."""

    @staticmethod
    def missing_companion(
        model: TypeSymbol,
        selects: MemberPredicate,
        companion_name: Callable[[MemberSymbol], str],
        alternative: MemberPredicate | None = None,
    ) -> tuple[MemberSymbol, str] | None:
        """
        First selected member lacking its companion method.

        The companion is looked up by plain name (any accessibility). When
        `alternative` holds for the member, a missing companion is tolerated.
        """
        for member in sorted(model.methods, key=lambda m: m.line):
            if not selects(member):
                continue
            expected = companion_name(member)
            if model.method(expected) is not None:
                continue
            if alternative is not None and alternative(member):
                continue
            return member, expected
        return None

    @staticmethod
    def excess_occurrence(
        member: MemberSymbol, matches: NodePredicate, limit: int = 1
    ) -> BodyNode | None:
        """The first occurrence beyond `limit`, or None when within bounds."""
        seen = 0
        for node in member.walk():
            if matches(node):
                seen += 1
                if seen > limit:
                    return node
        return None


class MetadataDecomposer:
    """Split metadata member names into `{property}{suffix}`, longest suffix first."""

    def __init__(self, suffixes: Iterable[str]) -> None:
        self.suffixes: tuple[str, ...] = tuple(
            sorted(dict.fromkeys(suffixes), key=lambda s: (-len(s), s))
        )

    def decompose(self, member_name: str) -> tuple[str, str] | None:
        for suffix in self.suffixes:
            if member_name.endswith(suffix) and len(member_name) > len(suffix):
                return member_name[: -len(suffix)], suffix
        return None

    def vocabulary(self) -> str:
        return ", ".join(self.suffixes)


class LineageShape:
    """Walks along the primary ancestor chain."""

    @staticmethod
    def intermediate_abstract_tiers(
        model: TypeSymbol, roots: Iterable[str]
    ) -> list[AncestorRef]:
        """Abstract ancestors strictly between the type and the first lineage root."""
        root_names = frozenset(roots)
        tiers: list[AncestorRef] = []
        for ancestor in model.lineage:
            if ancestor.name in root_names:
                return tiers
            if ancestor.is_abstract:
                tiers.append(ancestor)
        return tiers


class EntityFacts:
    """Cross-type facts read through the frozen workspace index."""

    @staticmethod
    def metadata_class(model: TypeSymbol, conventions: ConventionSet) -> TypeSymbol | None:
        return model.nested(conventions.metadata_class_name(model.name))

    @staticmethod
    def property_names(model: TypeSymbol) -> set[str]:
        """Instance state names (underscores stripped), including inherited ones."""
        names = {m.plain_name for m in model.state_members}
        for ancestor in model.lineage:
            declared = model.workspace.lookup(ancestor.name)
            if declared is not None:
                names.update(m.plain_name for m in declared.state_members)
        return names

    @staticmethod
    def is_entity_name(model: TypeSymbol, type_name: str, conventions: ConventionSet) -> bool:
        """True if `type_name` resolves to a type of the entity lineage."""
        if type_name in conventions.lineage_roots:
            return False
        declared = model.workspace.lookup(type_name)
        if declared is None:
            return False
        return declared.descends_from(conventions.lineage_roots)

    @staticmethod
    def is_collection(ref: TypeRef | None) -> bool:
        if ref is None:
            return False
        return ref.name in MUTABLE_COLLECTIONS | READ_ONLY_COLLECTIONS | OTHER_COLLECTIONS

    @staticmethod
    def is_mutable_collection(ref: TypeRef | None) -> bool:
        return ref is not None and ref.name in MUTABLE_COLLECTIONS

    @staticmethod
    def is_read_only_collection(ref: TypeRef | None) -> bool:
        return ref is not None and ref.name in READ_ONLY_COLLECTIONS

    @staticmethod
    def element_type(ref: TypeRef | None) -> TypeRef | None:
        """First type argument of a collection annotation."""
        if ref is None or not EntityFacts.is_collection(ref) or not ref.args:
            return None
        return ref.args[0]

    @staticmethod
    def child_collections(
        model: TypeSymbol, conventions: ConventionSet
    ) -> list[tuple[MemberSymbol, str]]:
        """(member, child type name) for state members holding collections of entities."""
        children: list[tuple[MemberSymbol, str]] = []
        for member in model.state_members:
            element = EntityFacts.element_type(member.annotation)
            if element is not None and EntityFacts.is_entity_name(model, element.name, conventions):
                children.append((member, element.name))
        return children

    @staticmethod
    def associated_entities(
        model: TypeSymbol, conventions: ConventionSet
    ) -> list[tuple[MemberSymbol, str]]:
        """(member, type name) for non-collection state members typed with another entity."""
        associated: list[tuple[MemberSymbol, str]] = []
        seen: set[str] = set()
        for member in model.state_members:
            ref = member.annotation
            if ref is None or EntityFacts.is_collection(ref) or ref.is_self:
                continue
            if member.plain_name in seen:
                continue
            if EntityFacts.is_entity_name(model, ref.name, conventions):
                seen.add(member.plain_name)
                associated.append((member, ref.name))
        return associated

    @staticmethod
    def is_execution_context(parameter_annotation: TypeRef | None, conventions: ConventionSet) -> bool:
        return (
            parameter_annotation is not None
            and parameter_annotation.name == conventions.execution_context_type
        )

    @staticmethod
    def snake_to_pascal(name: str) -> str:
        return "".join(part.capitalize() for part in name.split("_") if part)

    @staticmethod
    def pascal_to_snake(name: str) -> str:
        chars: list[str] = []
        for index, char in enumerate(name):
            if char.isupper() and index > 0 and not name[index - 1].isupper():
                chars.append("_")
            chars.append(char.lower())
        return "".join(chars)
