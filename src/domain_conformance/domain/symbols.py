"""Symbol Model: read-only facade over one declared type, its members and their bodies.

Rules only ever see these types. They are built by an infrastructure frontend
(see infrastructure.gateways.astroid_gateway) and never mutated afterwards.
"""

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from domain_conformance.domain.entities import ResolutionWarning


class Accessibility(Enum):
    """Who may reach a member, derived from the leading-underscore convention."""

    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"

    @classmethod
    def from_name(cls, name: str) -> "Accessibility":
        """Dunders are public; `__x` private; `_x` protected."""
        if name.startswith("__") and name.endswith("__"):
            return cls.PUBLIC
        if name.startswith("__"):
            return cls.PRIVATE
        if name.startswith("_"):
            return cls.PROTECTED
        return cls.PUBLIC


class TypeKind(Enum):
    """Declaration kind of an analysed type."""

    CLASS = "class"
    VALUE_AGGREGATE = "value_aggregate"
    ENUMERATION = "enumeration"
    CAPABILITY = "capability"


class MemberKind(Enum):
    """Kind of member declared in a type body."""

    CONSTRUCTOR = "constructor"
    METHOD = "method"
    PROPERTY = "property"
    FIELD = "field"
    ENUM_MEMBER = "enum_member"


class NodeKind(Enum):
    """Generic statement/expression shapes exposed to body-pattern detectors."""

    FUNCTION = "function"
    CALL = "call"
    ATTRIBUTE = "attribute"
    NAME = "name"
    CONST = "const"
    BOOL_AND = "bool_and"
    BOOL_OR = "bool_or"
    BIT_AND = "bit_and"
    BIT_OR = "bit_or"
    COMPARE = "compare"
    RAISE = "raise"
    IF = "if"
    WITH = "with"
    ASSIGN = "assign"
    RETURN = "return"
    LAMBDA = "lambda"
    OTHER = "other"


@dataclass(frozen=True)
class BodyNode:
    """
    One node of a member body.

    `name` and `receiver` carry the kind-specific payload: the callee and its
    dotted receiver for CALL, the attribute and its owner for ATTRIBUTE, the
    first target for ASSIGN, the exception class for RAISE, the operator for
    COMPARE. `role` is the field of the parent the node sits in ("body",
    "orelse", "test", "value", "items", ...).
    """

    kind: NodeKind
    line: int
    name: str = ""
    receiver: str = ""
    role: str = ""
    expand: Callable[[], tuple["BodyNode", ...]] = field(
        default=tuple, repr=False, compare=False
    )

    def children(self) -> Iterator["BodyNode"]:
        """Direct children, produced afresh on each call."""
        return iter(self.expand())

    def walk(self) -> Iterator["BodyNode"]:
        """Pre-order traversal in source order. Restartable: every call starts over."""
        yield self
        for child in self.children():
            yield from child.walk()

    def children_in(self, role: str) -> list["BodyNode"]:
        """Direct children sitting in the given parent field."""
        return [child for child in self.children() if child.role == role]

    @property
    def qualified_name(self) -> str:
        """`receiver.name` when a receiver exists, else `name`."""
        return f"{self.receiver}.{self.name}" if self.receiver else self.name


@dataclass(frozen=True)
class TypeRef:
    """
    Shape of a type annotation.

    Optional wrappers (`X | None`, `Optional[X]`, `Union[X, None]`) are unwrapped:
    `name`/`args` describe X and `is_optional` is set. `is_self` marks `Self` or
    the declaring type's own name.
    """

    text: str
    name: str
    args: tuple["TypeRef", ...] = ()
    is_optional: bool = False
    is_self: bool = False

    @property
    def is_none(self) -> bool:
        return self.name == "None" and not self.args and not self.is_optional

    @property
    def is_optional_self(self) -> bool:
        return self.is_optional and self.is_self

    def mentions(self, name: str) -> bool:
        """True if `name` appears anywhere in the annotation tree."""
        if self.name == name:
            return True
        return any(arg.mentions(name) for arg in self.args)


@dataclass(frozen=True)
class Parameter:
    """A declared parameter. The `self`/`cls` receiver is never listed."""

    name: str
    annotation: TypeRef | None = None
    has_default: bool = False

    @property
    def is_optional(self) -> bool:
        return self.annotation is not None and self.annotation.is_optional


@dataclass(frozen=True)
class MemberSymbol:
    """Descriptor of one member: constructor, method, property, field or enum member."""

    name: str
    kind: MemberKind
    accessibility: Accessibility
    line: int
    is_static: bool = False
    is_abstract: bool = False
    is_special: bool = False
    decorators: tuple[str, ...] = ()
    parameters: tuple[Parameter, ...] = ()
    returns: TypeRef | None = None
    annotation: TypeRef | None = None
    is_computed: bool = False
    is_read_only: bool = False
    has_initializer: bool = False
    value: str | int | float | bool | None = None
    initializer_call: str = ""
    initializer_keywords: tuple[str, ...] = ()
    body_source: Callable[[], Optional[BodyNode]] = field(
        default=lambda: None, repr=False, compare=False
    )

    def body(self) -> BodyNode | None:
        """Lazily build the body tree. Nothing is parsed until a detector asks."""
        return self.body_source()

    def walk(self) -> Iterator[BodyNode]:
        """All body nodes in source order, or nothing for bodiless members."""
        root = self.body()
        if root is None:
            return iter(())
        return root.walk()

    def calls(self) -> Iterator[BodyNode]:
        return (node for node in self.walk() if node.kind is NodeKind.CALL)

    @property
    def plain_name(self) -> str:
        """Name without leading underscores; dunders are left alone."""
        if self.is_special:
            return self.name
        return self.name.lstrip("_")

    @property
    def is_public(self) -> bool:
        return self.accessibility is Accessibility.PUBLIC

    @property
    def is_protected(self) -> bool:
        return self.accessibility is Accessibility.PROTECTED

    @property
    def is_private(self) -> bool:
        return self.accessibility is Accessibility.PRIVATE

    @property
    def is_instance(self) -> bool:
        return not self.is_static


@dataclass(frozen=True)
class AncestorRef:
    """One step of the primary lineage chain (first base, then its first base, ...)."""

    name: str
    full_name: str
    is_abstract: bool = False
    resolved: bool = True


class WorkspaceIndex:
    """
    Cross-type facts shared by every Symbol Model of one run.

    `subtyped` is the inheritance index: names of types extended by at least one
    other type anywhere in the workspace. It is fixed at construction, before any
    rule runs. The name directory is sealed exactly once after the models exist;
    both are read-only afterwards.
    """

    def __init__(self, subtyped: Iterable[str] = ()) -> None:
        self._subtyped: frozenset[str] = frozenset(subtyped)
        self._directory: Mapping[str, tuple["TypeSymbol", ...]] = MappingProxyType({})
        self._sealed = False

    def seal(self, types: Iterable["TypeSymbol"]) -> None:
        """Publish the name directory. A second call is a programming error."""
        if self._sealed:
            raise RuntimeError("WorkspaceIndex is already sealed")
        directory: dict[str, list[TypeSymbol]] = {}
        for type_symbol in types:
            directory.setdefault(type_symbol.name, []).append(type_symbol)
        self._directory = MappingProxyType(
            {
                name: tuple(sorted(entries, key=lambda t: t.full_name))
                for name, entries in directory.items()
            }
        )
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def has_subtypes(self, name: str) -> bool:
        return name in self._subtyped

    def lookup(self, name: str) -> Optional["TypeSymbol"]:
        """First type declared under `name` (deterministic by full name), if any."""
        entries = self._directory.get(name, ())
        return entries[0] if entries else None

    def lookup_all(self, name: str) -> tuple["TypeSymbol", ...]:
        return self._directory.get(name, ())


@dataclass(frozen=True)
class TypeSymbol:
    """Read-only snapshot of one declared type plus its reporting metadata."""

    name: str
    full_name: str
    kind: TypeKind
    project: str
    file: str
    line: int
    is_abstract: bool = False
    is_final: bool = False
    is_static: bool = False
    is_frozen: bool = False
    bases: tuple[str, ...] = ()
    lineage: tuple[AncestorRef, ...] = ()
    ancestors: frozenset[str] = frozenset()
    capabilities: frozenset[str] = frozenset()
    members: tuple[MemberSymbol, ...] = ()
    nested_types: tuple["TypeSymbol", ...] = ()
    decorators: tuple[str, ...] = ()
    has_static_initializer: bool = False
    enclosing: str | None = None
    workspace: WorkspaceIndex = field(
        default_factory=WorkspaceIndex, repr=False, compare=False
    )

    @property
    def is_value_aggregate(self) -> bool:
        return self.kind is TypeKind.VALUE_AGGREGATE

    @property
    def is_enumeration(self) -> bool:
        return self.kind is TypeKind.ENUMERATION

    @property
    def is_capability(self) -> bool:
        return self.kind is TypeKind.CAPABILITY

    @property
    def is_concrete_class(self) -> bool:
        """Plain class that can be instantiated: not abstract, static, enum, capability or aggregate."""
        return self.kind is TypeKind.CLASS and not self.is_abstract and not self.is_static

    @property
    def is_nested(self) -> bool:
        return self.enclosing is not None

    def _of_kind(self, kind: MemberKind) -> tuple[MemberSymbol, ...]:
        return tuple(m for m in self.members if m.kind is kind)

    @property
    def constructors(self) -> tuple[MemberSymbol, ...]:
        return self._of_kind(MemberKind.CONSTRUCTOR)

    @property
    def methods(self) -> tuple[MemberSymbol, ...]:
        return self._of_kind(MemberKind.METHOD)

    @property
    def properties(self) -> tuple[MemberSymbol, ...]:
        return self._of_kind(MemberKind.PROPERTY)

    @property
    def fields(self) -> tuple[MemberSymbol, ...]:
        return self._of_kind(MemberKind.FIELD)

    @property
    def enum_members(self) -> tuple[MemberSymbol, ...]:
        return self._of_kind(MemberKind.ENUM_MEMBER)

    @property
    def state_members(self) -> tuple[MemberSymbol, ...]:
        """Instance fields and properties, in declaration order."""
        return tuple(
            m
            for m in self.members
            if m.kind in (MemberKind.FIELD, MemberKind.PROPERTY) and not m.is_static
        )

    def methods_named(self, plain_name: str) -> tuple[MemberSymbol, ...]:
        """Methods whose name, leading underscores removed, equals `plain_name`."""
        return tuple(m for m in self.methods if m.plain_name == plain_name)

    def method(self, plain_name: str) -> MemberSymbol | None:
        found = self.methods_named(plain_name)
        return found[0] if found else None

    def nested(self, name: str) -> Optional["TypeSymbol"]:
        return next((t for t in self.nested_types if t.name == name), None)

    def descends_from(self, names: Iterable[str]) -> bool:
        return any(name in self.ancestors for name in names)


@dataclass(frozen=True)
class WorkspaceSnapshot:
    """
    Everything the frontend produced for one run: every declared type (nested
    ones included, ordered by project, file and line), the sealed index, and
    the resolution warnings raised while building them.
    """

    types: tuple[TypeSymbol, ...]
    index: WorkspaceIndex
    warnings: tuple["ResolutionWarning", ...] = ()

    def named(self, name: str) -> TypeSymbol:
        """The type declared under `name`; raises KeyError when absent."""
        for type_symbol in self.types:
            if type_symbol.name == name or type_symbol.full_name == name:
                return type_symbol
        raise KeyError(name)
