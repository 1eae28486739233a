"""Astroid Gateway: builds Symbol Models from Python sources without importing them."""

import builtins
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from pathlib import Path

import astroid  # type: ignore[import-untyped]

from domain_conformance.domain.constants import (
    ABSTRACT_MARKERS,
    CAPABILITY_BASES,
    ENUM_BASES,
    PRIVATE_MARKER,
    PROTECTED_MARKER,
    TRANSPARENT_BASES,
    VALUE_AGGREGATE_BASES,
    VALUE_AGGREGATE_DECORATORS,
)
from domain_conformance.domain.entities import ResolutionWarning
from domain_conformance.domain.protocols import FileSystemProtocol, SymbolSourceProtocol
from domain_conformance.domain.symbols import (
    Accessibility,
    AncestorRef,
    BodyNode,
    MemberKind,
    MemberSymbol,
    NodeKind,
    Parameter,
    TypeKind,
    TypeRef,
    TypeSymbol,
    WorkspaceIndex,
    WorkspaceSnapshot,
)
from domain_conformance.infrastructure.gateways.filesystem_gateway import FileSystemGateway

logger = logging.getLogger(__name__)

# Bases that are never worth a resolution warning when inference cannot reach them.
KNOWN_EXTERNAL_BASES: frozenset[str] = (
    frozenset(dir(builtins))
    | ENUM_BASES
    | ABSTRACT_MARKERS
    | CAPABILITY_BASES
    | TRANSPARENT_BASES
    | VALUE_AGGREGATE_BASES
)

_STATIC_DECORATORS: frozenset[str] = frozenset({"staticmethod", "classmethod"})
_PROPERTY_DECORATORS: frozenset[str] = frozenset({"property", "cached_property", "abstractproperty"})
_ABSTRACT_DECORATORS: frozenset[str] = frozenset({"abstractmethod", "abstractproperty"})
_COLLECTION_FACTORIES: frozenset[str] = frozenset({"list", "set", "dict", "tuple", "frozenset", "deque"})


@dataclass(frozen=True)
class SourceModule:
    """One parsed file with its reporting metadata."""

    project: str
    file: str
    node: astroid.nodes.Module


@dataclass(frozen=True)
class _Declaration:
    """A ClassDef found in the workspace, before any resolution."""

    node: astroid.nodes.ClassDef
    module: SourceModule
    full_name: str
    enclosing: str | None
    base_names: tuple[str, ...]
    base_nodes: tuple[astroid.nodes.NodeNG, ...]

    @property
    def name(self) -> str:
        return self.node.name


class _LineageResolver:
    """
    Resolves bases by name across the whole workspace.

    Workspace declarations win; anything else goes through astroid inference
    (stdlib and installed packages). Bases neither route can reach become
    resolution warnings. Results are memoized per declaration.
    """

    def __init__(self, declarations: list[_Declaration]) -> None:
        self._directory: dict[str, list[_Declaration]] = {}
        for declaration in declarations:
            self._directory.setdefault(declaration.name, []).append(declaration)
        for entries in self._directory.values():
            entries.sort(key=lambda d: (d.enclosing is not None, d.full_name))
        self._ancestors: dict[str, tuple[str, ...]] = {}
        self._kinds: dict[str, TypeKind] = {}
        self.warnings: list[ResolutionWarning] = []

    def resolve(self, origin: _Declaration, name: str) -> _Declaration | None:
        """Same-module declaration first, then the first by full name."""
        candidates = [d for d in self._directory.get(name, []) if d.full_name != origin.full_name]
        if not candidates:
            return None
        for candidate in candidates:
            if candidate.module.file == origin.module.file:
                return candidate
        return candidates[0]

    def ancestors(self, declaration: _Declaration, trail: frozenset[str] = frozenset()) -> tuple[str, ...]:
        """All ancestor names, nearest first, deduplicated."""
        cached = self._ancestors.get(declaration.full_name)
        if cached is not None:
            return cached
        names: list[str] = []
        trail = trail | {declaration.full_name}
        for base_name, base_node in zip(declaration.base_names, declaration.base_nodes):
            names.append(base_name)
            target = self.resolve(declaration, base_name)
            if target is not None:
                if target.full_name not in trail:
                    names.extend(self.ancestors(target, trail))
                continue
            external = self._infer_external(base_node)
            if external is not None:
                names.extend(external)
            elif base_name not in KNOWN_EXTERNAL_BASES:
                self._warn(declaration, f"base '{base_name}' could not be resolved in the workspace")
        result = tuple(dict.fromkeys(names))
        self._ancestors[declaration.full_name] = result
        return result

    def kind(self, declaration: _Declaration, trail: frozenset[str] = frozenset()) -> TypeKind:
        cached = self._kinds.get(declaration.full_name)
        if cached is not None:
            return cached
        trail = trail | {declaration.full_name}
        ancestors = set(self.ancestors(declaration))
        direct = set(declaration.base_names)
        if ancestors & ENUM_BASES:
            kind = TypeKind.ENUMERATION
        elif direct & CAPABILITY_BASES:
            kind = TypeKind.CAPABILITY
        elif self.is_value_aggregate(declaration, ancestors):
            kind = TypeKind.VALUE_AGGREGATE
        elif self._extends_only_capabilities(declaration, trail) and AstroidGateway.declares_only_abstract(
            declaration.node
        ):
            kind = TypeKind.CAPABILITY
        else:
            kind = TypeKind.CLASS
        self._kinds[declaration.full_name] = kind
        return kind

    def is_value_aggregate(self, declaration: _Declaration, ancestors: set[str]) -> bool:
        decorators = set(AstroidGateway.decorator_names(declaration.node))
        return bool(decorators & VALUE_AGGREGATE_DECORATORS) or bool(ancestors & VALUE_AGGREGATE_BASES)

    def is_abstract(self, declaration: _Declaration) -> bool:
        node = declaration.node
        if set(declaration.base_names) & ABSTRACT_MARKERS:
            return True
        for keyword in node.keywords or []:
            if keyword.arg == "metaclass" and AstroidGateway.simple_name(keyword.value) in ABSTRACT_MARKERS:
                return True
        return any(
            isinstance(stmt, astroid.nodes.FunctionDef)
            and set(AstroidGateway.decorator_names(stmt)) & _ABSTRACT_DECORATORS
            for stmt in node.body
        )

    def lineage(self, declaration: _Declaration) -> tuple[AncestorRef, ...]:
        """Primary chain: first non-capability base, repeatedly."""
        chain: list[AncestorRef] = []
        seen = {declaration.full_name}
        current = declaration
        while True:
            primary = self._primary_base(current)
            if primary is None:
                break
            target = self.resolve(current, primary)
            if target is None:
                chain.append(AncestorRef(name=primary, full_name=primary, resolved=False))
                break
            if target.full_name in seen:
                break
            seen.add(target.full_name)
            chain.append(
                AncestorRef(
                    name=target.name,
                    full_name=target.full_name,
                    is_abstract=self.is_abstract(target),
                )
            )
            current = target
        return tuple(chain)

    def capabilities(self, declaration: _Declaration) -> frozenset[str]:
        found: set[str] = set()
        for name in self.ancestors(declaration):
            target = self.resolve(declaration, name)
            if target is not None and self.kind(target) is TypeKind.CAPABILITY:
                found.add(name)
        return frozenset(found)

    def _primary_base(self, declaration: _Declaration) -> str | None:
        skipped = TRANSPARENT_BASES | ABSTRACT_MARKERS | CAPABILITY_BASES
        for name in declaration.base_names:
            if name in skipped:
                continue
            target = self.resolve(declaration, name)
            if target is not None and self.kind(target) is TypeKind.CAPABILITY:
                continue
            return name
        return None

    def _extends_only_capabilities(self, declaration: _Declaration, trail: frozenset[str]) -> bool:
        relevant = [n for n in declaration.base_names if n not in TRANSPARENT_BASES]
        if not relevant:
            return False
        for name in relevant:
            if name in CAPABILITY_BASES:
                continue
            target = self.resolve(declaration, name)
            if target is None or target.full_name in trail:
                return False
            if self.kind(target, trail) is not TypeKind.CAPABILITY:
                return False
        return True

    def _infer_external(self, base_node: astroid.nodes.NodeNG) -> list[str] | None:
        target = base_node.value if isinstance(base_node, astroid.nodes.Subscript) else base_node
        try:
            inferred = next(target.infer(), None)
        except astroid.AstroidError:
            return None
        if not isinstance(inferred, astroid.nodes.ClassDef):
            return None
        names = [inferred.name]
        try:
            names.extend(ancestor.name for ancestor in inferred.ancestors())
        except astroid.AstroidError:
            pass
        return names

    def _warn(self, declaration: _Declaration, reason: str) -> None:
        warning = ResolutionWarning(
            project=declaration.module.project,
            file=declaration.module.file,
            line=declaration.node.lineno or 0,
            subject=declaration.full_name,
            reason=reason,
        )
        logger.warning("Resolution warning for %s: %s", declaration.full_name, reason)
        self.warnings.append(warning)


class AstroidGateway(SymbolSourceProtocol):
    """AST frontend: parses the workspace with astroid and builds read-only Symbol Models."""

    def __init__(self, filesystem: FileSystemProtocol | None = None) -> None:
        self.filesystem = filesystem or FileSystemGateway()

    # ------------------------------------------------------------------ loading

    def parse_source(self, source: str, module_name: str = "", path: str | None = None) -> astroid.nodes.Module:
        """Parse source text. Raises astroid.AstroidSyntaxError on invalid code."""
        return astroid.parse(source, module_name=module_name, path=path)

    def load_workspace(self, root: str, exclude_paths: tuple[str, ...] = ()) -> WorkspaceSnapshot:
        """Parse every Python file under root; unparseable files become warnings."""
        root_path = self.filesystem.resolve_path(root)
        base = root_path if self.filesystem.is_directory(root_path) else str(Path(root_path).parent)
        modules: list[SourceModule] = []
        warnings: list[ResolutionWarning] = []
        for file_path in self.filesystem.glob_python_files(root_path):
            relative = self.filesystem.relative_to(file_path, base)
            if any(fragment and fragment in relative for fragment in exclude_paths):
                continue
            project = Path(self.filesystem.project_root_for(file_path, base)).name
            try:
                source = self.filesystem.read_text(file_path)
                module = self.parse_source(source, self.module_name_for(relative), file_path)
            except (astroid.AstroidSyntaxError, UnicodeDecodeError, OSError) as exc:
                logger.warning("Could not parse %s: %s", relative, exc)
                warnings.append(
                    ResolutionWarning(
                        project=project,
                        file=relative,
                        line=int(getattr(exc, "lineno", 0) or 0),
                        subject=relative,
                        reason=f"could not parse: {exc}",
                    )
                )
                continue
            modules.append(SourceModule(project=project, file=relative, node=module))
        return self.build_snapshot(modules, warnings)

    def models_from_source(
        self, source: str, project: str = "Domain.Entities", file: str = "subject.py"
    ) -> WorkspaceSnapshot:
        """Snapshot of a single in-memory module (harness and tests)."""
        return self.models_from_sources([(project, file, source)])

    def models_from_sources(self, sources: Iterable[tuple[str, str, str]]) -> WorkspaceSnapshot:
        """Snapshot of several in-memory modules given as (project, file, source)."""
        modules = [
            SourceModule(
                project=project,
                file=file,
                node=self.parse_source(source, self.module_name_for(file), file),
            )
            for project, file, source in sources
        ]
        return self.build_snapshot(modules)

    @staticmethod
    def module_name_for(relative_path: str) -> str:
        parts = [p for p in relative_path.replace("\\", "/").split("/") if p]
        if parts and parts[-1].endswith(".py"):
            parts[-1] = parts[-1][:-3]
        if parts and parts[-1] == "__init__":
            parts.pop()
        if parts and parts[0] == "src":
            parts.pop(0)
        return ".".join(parts) or "__main__"

    # ------------------------------------------------------------------ building

    def build_snapshot(
        self,
        modules: Iterable[SourceModule],
        warnings: Iterable[ResolutionWarning] = (),
    ) -> WorkspaceSnapshot:
        """
        Build all Symbol Models for the given modules.

        The inheritance index is computed first, sequentially, from every
        declaration's base names; the name directory is sealed last.
        """
        declarations: list[_Declaration] = []
        for module in modules:
            self._collect(module, module.node.body, module.node.name, None, declarations)

        subtyped = {
            name
            for declaration in declarations
            for name in declaration.base_names
            if name not in TRANSPARENT_BASES
        }
        index = WorkspaceIndex(subtyped)
        resolver = _LineageResolver(declarations)

        children: dict[str, list[_Declaration]] = {}
        for declaration in declarations:
            if declaration.enclosing is not None:
                children.setdefault(declaration.enclosing, []).append(declaration)

        built: dict[str, TypeSymbol] = {}
        for declaration in declarations:
            self._build_type(declaration, resolver, index, children, built)

        types = sorted(built.values(), key=lambda t: (t.project, t.file, t.line, t.full_name))
        index.seal(types)
        all_warnings = sorted(set(warnings) | set(resolver.warnings), key=lambda w: w.sort_key)
        return WorkspaceSnapshot(types=tuple(types), index=index, warnings=tuple(all_warnings))

    def _collect(
        self,
        module: SourceModule,
        body: list[astroid.nodes.NodeNG],
        prefix: str,
        enclosing: str | None,
        out: list[_Declaration],
    ) -> None:
        for stmt in body:
            if not isinstance(stmt, astroid.nodes.ClassDef):
                continue
            full_name = f"{prefix}.{stmt.name}" if prefix else stmt.name
            bases = [b for b in stmt.bases if AstroidGateway.simple_name(b)]
            out.append(
                _Declaration(
                    node=stmt,
                    module=module,
                    full_name=full_name,
                    enclosing=enclosing,
                    base_names=tuple(AstroidGateway.simple_name(b) for b in bases),
                    base_nodes=tuple(bases),
                )
            )
            self._collect(module, stmt.body, full_name, full_name, out)

    def _build_type(
        self,
        declaration: _Declaration,
        resolver: _LineageResolver,
        index: WorkspaceIndex,
        children: dict[str, list[_Declaration]],
        built: dict[str, TypeSymbol],
    ) -> TypeSymbol:
        existing = built.get(declaration.full_name)
        if existing is not None:
            return existing
        nested = tuple(
            self._build_type(child, resolver, index, children, built)
            for child in children.get(declaration.full_name, [])
        )
        node = declaration.node
        kind = resolver.kind(declaration)
        decorators = AstroidGateway.decorator_names(node)
        is_static = kind is TypeKind.CLASS and AstroidGateway.is_static_class(node)
        ancestors = resolver.ancestors(declaration)
        symbol = TypeSymbol(
            name=node.name,
            full_name=declaration.full_name,
            kind=kind,
            project=declaration.module.project,
            file=declaration.module.file,
            line=node.lineno or 0,
            is_abstract=resolver.is_abstract(declaration),
            is_final="final" in decorators,
            is_static=is_static,
            is_frozen=self._is_frozen(node, ancestors),
            bases=declaration.base_names,
            lineage=resolver.lineage(declaration),
            ancestors=frozenset(ancestors),
            capabilities=resolver.capabilities(declaration),
            members=self._members(node, kind, is_static),
            nested_types=nested,
            decorators=decorators,
            has_static_initializer=AstroidGateway.has_class_body_statements(node),
            enclosing=declaration.enclosing,
            workspace=index,
        )
        built[declaration.full_name] = symbol
        return symbol

    # ------------------------------------------------------------------ class facts

    @staticmethod
    def simple_name(node: astroid.nodes.NodeNG) -> str:
        """Rightmost identifier of a Name/Attribute/Subscript/Call expression."""
        if isinstance(node, astroid.nodes.Name):
            return node.name
        if isinstance(node, astroid.nodes.Attribute):
            return node.attrname
        if isinstance(node, astroid.nodes.Subscript):
            return AstroidGateway.simple_name(node.value)
        if isinstance(node, astroid.nodes.Call):
            return AstroidGateway.simple_name(node.func)
        return ""

    @staticmethod
    def decorator_names(node: astroid.nodes.NodeNG) -> tuple[str, ...]:
        decorators = getattr(node, "decorators", None)
        if decorators is None:
            return ()
        return tuple(n for n in (AstroidGateway.simple_name(d) for d in decorators.nodes) if n)

    @staticmethod
    def is_static_class(node: astroid.nodes.ClassDef) -> bool:
        """Non-empty class with only class-level state and static/class methods."""
        has_member = False
        for stmt in node.body:
            if isinstance(stmt, astroid.nodes.FunctionDef):
                has_member = True
                decorators = set(AstroidGateway.decorator_names(stmt))
                if stmt.name == "__init__" or not decorators & _STATIC_DECORATORS:
                    return False
            elif isinstance(stmt, (astroid.nodes.Assign, astroid.nodes.AnnAssign, astroid.nodes.ClassDef)):
                has_member = True
        return has_member

    @staticmethod
    def declares_only_abstract(node: astroid.nodes.ClassDef) -> bool:
        """True when every method is abstract or a stub and no attribute has a value."""
        for stmt in node.body:
            if isinstance(stmt, astroid.nodes.FunctionDef):
                decorators = set(AstroidGateway.decorator_names(stmt))
                if not decorators & _ABSTRACT_DECORATORS and not AstroidGateway.is_stub(stmt):
                    return False
            elif isinstance(stmt, astroid.nodes.Assign):
                return False
            elif isinstance(stmt, astroid.nodes.AnnAssign) and stmt.value is not None:
                return False
        return True

    @staticmethod
    def is_stub(func: astroid.nodes.FunctionDef) -> bool:
        """Body is only a docstring, `...` or `pass`."""
        for stmt in func.body:
            if isinstance(stmt, astroid.nodes.Pass):
                continue
            if isinstance(stmt, astroid.nodes.Expr) and isinstance(stmt.value, astroid.nodes.Const):
                continue
            return False
        return True

    @staticmethod
    def has_class_body_statements(node: astroid.nodes.ClassDef) -> bool:
        """Executable class-body code or an `__init_subclass__` hook (a static initializer)."""
        allowed = (
            astroid.nodes.Assign,
            astroid.nodes.AnnAssign,
            astroid.nodes.FunctionDef,
            astroid.nodes.ClassDef,
            astroid.nodes.Pass,
        )
        for stmt in node.body:
            if isinstance(stmt, astroid.nodes.Expr) and isinstance(stmt.value, astroid.nodes.Const):
                continue
            if isinstance(stmt, astroid.nodes.FunctionDef) and stmt.name == "__init_subclass__":
                return True
            if not isinstance(stmt, allowed):
                return True
        return False

    def _is_frozen(self, node: astroid.nodes.ClassDef, ancestors: Iterable[str]) -> bool:
        if "NamedTuple" in ancestors:
            return True
        decorators = node.decorators.nodes if node.decorators else []
        for decorator in decorators:
            name = AstroidGateway.simple_name(decorator)
            if name == "frozen":
                return True
            if isinstance(decorator, astroid.nodes.Call) and name in VALUE_AGGREGATE_DECORATORS:
                for keyword in decorator.keywords or []:
                    if (
                        keyword.arg == "frozen"
                        and isinstance(keyword.value, astroid.nodes.Const)
                        and keyword.value.value is True
                    ):
                        return True
        return False

    # ------------------------------------------------------------------ members

    def _members(self, node: astroid.nodes.ClassDef, kind: TypeKind, static_class: bool) -> tuple[MemberSymbol, ...]:
        owner = node.name
        members: list[MemberSymbol] = []
        field_positions: dict[str, int] = {}
        init_impl: astroid.nodes.FunctionDef | None = None
        init_overloads: list[astroid.nodes.FunctionDef] = []
        with_setter: set[str] = set()

        for stmt in node.body:
            if isinstance(stmt, astroid.nodes.FunctionDef):
                decorators = AstroidGateway.decorator_names(stmt)
                if stmt.name == "__init__":
                    if "overload" in decorators:
                        init_overloads.append(stmt)
                    else:
                        init_impl = stmt
                    continue
                if "setter" in decorators or "deleter" in decorators:
                    with_setter.add(stmt.name)
                    continue
                if "overload" in decorators:
                    continue
                members.append(self._function_member(stmt, owner, decorators))
            elif isinstance(stmt, astroid.nodes.AnnAssign) and isinstance(stmt.target, astroid.nodes.AssignName):
                member = self._annotated_field(stmt, owner, static_class)
                field_positions[member.name] = len(members)
                members.append(member)
            elif isinstance(stmt, astroid.nodes.Assign):
                for target in stmt.targets:
                    if not isinstance(target, astroid.nodes.AssignName):
                        continue
                    member = self._assigned_field(stmt, target, kind)
                    if member is None:
                        continue
                    field_positions[member.name] = len(members)
                    members.append(member)

        members = [
            replace(m, is_read_only=False) if m.kind is MemberKind.PROPERTY and m.name in with_setter else m
            for m in members
        ]
        members.extend(self._constructors(init_impl, init_overloads, owner))
        if init_impl is not None:
            parameters = {p.name: p for p in self._parameters(init_impl, owner, skip_receiver=True)}
            for name, line, annotation, value in self._init_assignments(init_impl, owner, parameters):
                if name in field_positions:
                    position = field_positions[name]
                    members[position] = replace(members[position], has_initializer=True)
                    continue
                field_positions[name] = len(members)
                members.append(
                    MemberSymbol(
                        name=name,
                        kind=MemberKind.FIELD,
                        accessibility=Accessibility.from_name(name),
                        line=line,
                        annotation=annotation,
                        has_initializer=True,
                        initializer_call=AstroidGateway.simple_name(value)
                        if isinstance(value, astroid.nodes.Call)
                        else "",
                    )
                )
        return tuple(sorted(members, key=lambda m: m.line))

    def _function_member(
        self, func: astroid.nodes.FunctionDef, owner: str, decorators: tuple[str, ...]
    ) -> MemberSymbol:
        decorator_set = set(decorators)
        is_special = func.name.startswith("__") and func.name.endswith("__")
        common = {
            "name": func.name,
            "accessibility": Accessibility.from_name(func.name),
            "line": func.lineno or 0,
            "is_abstract": bool(decorator_set & _ABSTRACT_DECORATORS),
            "is_special": is_special,
            "decorators": decorators,
            "body_source": self._body_source(func),
        }
        if decorator_set & _PROPERTY_DECORATORS:
            return MemberSymbol(
                kind=MemberKind.PROPERTY,
                annotation=self.type_ref(func.returns, owner),
                is_computed="cached_property" in decorator_set or not self._returns_backing_field(func),
                is_read_only=True,
                **common,
            )
        return MemberSymbol(
            kind=MemberKind.METHOD,
            is_static=bool(decorator_set & _STATIC_DECORATORS),
            parameters=self._parameters(func, owner, skip_receiver="staticmethod" not in decorator_set),
            returns=self.type_ref(func.returns, owner),
            **common,
        )

    def _constructors(
        self,
        implementation: astroid.nodes.FunctionDef | None,
        overloads: list[astroid.nodes.FunctionDef],
        owner: str,
    ) -> list[MemberSymbol]:
        """One constructor per `@overload` signature, else the implementation itself."""
        fallback = Accessibility.PUBLIC
        if implementation is not None:
            fallback = self._constructor_accessibility(implementation) or Accessibility.PUBLIC
        signatures = overloads or ([implementation] if implementation is not None else [])
        body_owner = implementation if implementation is not None else None
        constructors: list[MemberSymbol] = []
        for signature in signatures:
            constructors.append(
                MemberSymbol(
                    name="__init__",
                    kind=MemberKind.CONSTRUCTOR,
                    accessibility=self._constructor_accessibility(signature) or fallback,
                    line=signature.lineno or 0,
                    decorators=AstroidGateway.decorator_names(signature),
                    parameters=self._parameters(signature, owner, skip_receiver=True),
                    returns=self.type_ref(signature.returns, owner),
                    body_source=self._body_source(body_owner) if body_owner is not None else (lambda: None),
                )
            )
        return constructors

    def _constructor_accessibility(self, func: astroid.nodes.FunctionDef) -> Accessibility | None:
        decorators = set(AstroidGateway.decorator_names(func))
        if PRIVATE_MARKER in decorators:
            return Accessibility.PRIVATE
        if PROTECTED_MARKER in decorators:
            return Accessibility.PROTECTED
        return None

    def _annotated_field(self, stmt: astroid.nodes.AnnAssign, owner: str, static_class: bool) -> MemberSymbol:
        name = stmt.target.name
        ref = self.type_ref(stmt.annotation, owner)
        ref, is_class_var, is_final, metadata = self._unwrap_qualifiers(ref)
        value = stmt.value
        return MemberSymbol(
            name=name,
            kind=MemberKind.FIELD,
            accessibility=Accessibility.from_name(name),
            line=stmt.lineno or 0,
            is_static=is_class_var or static_class,
            annotation=ref,
            is_read_only=is_final,
            has_initializer=value is not None,
            value=self._literal(value),
            initializer_call=AstroidGateway.simple_name(value) if isinstance(value, astroid.nodes.Call) else "",
            initializer_keywords=self._keywords(value),
            decorators=metadata,
        )

    def _assigned_field(
        self, stmt: astroid.nodes.Assign, target: astroid.nodes.AssignName, kind: TypeKind
    ) -> MemberSymbol | None:
        name = target.name
        value = stmt.value
        if kind is TypeKind.ENUMERATION:
            if name.startswith("_"):
                return None
            member_kind = MemberKind.ENUM_MEMBER
        else:
            member_kind = MemberKind.FIELD
        return MemberSymbol(
            name=name,
            kind=member_kind,
            accessibility=Accessibility.from_name(name),
            line=stmt.lineno or 0,
            is_static=True,
            has_initializer=True,
            value=self._literal(value),
            initializer_call=AstroidGateway.simple_name(value) if isinstance(value, astroid.nodes.Call) else "",
            initializer_keywords=self._keywords(value),
        )

    def _unwrap_qualifiers(self, ref: TypeRef | None) -> tuple[TypeRef | None, bool, bool, tuple[str, ...]]:
        """Strip ClassVar / Final / Annotated; report what was stripped."""
        is_class_var = is_final = False
        metadata: tuple[str, ...] = ()
        while ref is not None and ref.name in ("ClassVar", "Final", "Annotated"):
            if ref.name == "ClassVar":
                is_class_var = True
            elif ref.name == "Final":
                is_final = True
            else:
                metadata = metadata + tuple(arg.name for arg in ref.args[1:])
            inner = ref.args[0] if ref.args else None
            if inner is not None and ref.is_optional:
                inner = replace(inner, is_optional=True)
            ref = inner
        return ref, is_class_var, is_final, metadata

    def _init_assignments(
        self,
        init: astroid.nodes.FunctionDef,
        owner: str,
        parameters: dict[str, Parameter],
    ) -> Iterator[tuple[str, int, TypeRef | None, astroid.nodes.NodeNG | None]]:
        """`self.x = ...` assignments in the constructor body, with a best-effort type."""
        seen: set[str] = set()
        for node in init.nodes_of_class((astroid.nodes.Assign, astroid.nodes.AnnAssign)):
            targets = node.targets if isinstance(node, astroid.nodes.Assign) else [node.target]
            for target in targets:
                if not (
                    isinstance(target, astroid.nodes.AssignAttr)
                    and isinstance(target.expr, astroid.nodes.Name)
                    and target.expr.name == "self"
                ):
                    continue
                if target.attrname in seen:
                    continue
                seen.add(target.attrname)
                if isinstance(node, astroid.nodes.AnnAssign):
                    annotation, _, _, _ = self._unwrap_qualifiers(self.type_ref(node.annotation, owner))
                else:
                    annotation = self._infer_assigned_type(node.value, parameters)
                yield target.attrname, node.lineno or 0, annotation, node.value

    def _infer_assigned_type(
        self, value: astroid.nodes.NodeNG | None, parameters: dict[str, Parameter]
    ) -> TypeRef | None:
        if isinstance(value, astroid.nodes.Name) and value.name in parameters:
            return parameters[value.name].annotation
        if isinstance(value, astroid.nodes.Call):
            callee = AstroidGateway.simple_name(value.func)
            if callee in _COLLECTION_FACTORIES:
                args: tuple[TypeRef, ...] = ()
                if value.args and isinstance(value.args[0], astroid.nodes.Name):
                    source = parameters.get(value.args[0].name)
                    if source is not None and source.annotation is not None:
                        args = source.annotation.args
                return TypeRef(text=value.as_string(), name=callee, args=args)
        literal_types = {
            astroid.nodes.List: "list",
            astroid.nodes.Set: "set",
            astroid.nodes.Dict: "dict",
            astroid.nodes.Tuple: "tuple",
        }
        for node_type, name in literal_types.items():
            if isinstance(value, node_type):
                return TypeRef(text=value.as_string(), name=name)
        return None

    def _parameters(
        self, func: astroid.nodes.FunctionDef, owner: str, skip_receiver: bool
    ) -> tuple[Parameter, ...]:
        args = func.args
        positional = list(args.posonlyargs or []) + list(args.args or [])
        annotations = list(args.posonlyargs_annotations or []) + list(args.annotations or [])
        annotations += [None] * (len(positional) - len(annotations))
        defaults = list(args.defaults or [])
        first_default = len(positional) - len(defaults)
        parameters: list[Parameter] = []
        for position, (arg, annotation) in enumerate(zip(positional, annotations)):
            if skip_receiver and position == 0:
                continue
            parameters.append(
                Parameter(
                    name=arg.name,
                    annotation=self.type_ref(annotation, owner),
                    has_default=position >= first_default,
                )
            )
        kw_annotations = list(args.kwonlyargs_annotations or [])
        kw_defaults = list(args.kw_defaults or [])
        for position, arg in enumerate(args.kwonlyargs or []):
            annotation = kw_annotations[position] if position < len(kw_annotations) else None
            default = kw_defaults[position] if position < len(kw_defaults) else None
            parameters.append(
                Parameter(
                    name=arg.name,
                    annotation=self.type_ref(annotation, owner),
                    has_default=default is not None,
                )
            )
        return tuple(parameters)

    def _returns_backing_field(self, func: astroid.nodes.FunctionDef) -> bool:
        """`return self._name` (or `self.__name`) is all the getter does."""
        statements = [
            s
            for s in func.body
            if not (isinstance(s, astroid.nodes.Expr) and isinstance(s.value, astroid.nodes.Const))
        ]
        if len(statements) != 1 or not isinstance(statements[0], astroid.nodes.Return):
            return False
        value = statements[0].value
        return (
            isinstance(value, astroid.nodes.Attribute)
            and isinstance(value.expr, astroid.nodes.Name)
            and value.expr.name == "self"
            and value.attrname.lstrip("_") == func.name.lstrip("_")
            and value.attrname != func.name
        )

    @staticmethod
    def _literal(value: astroid.nodes.NodeNG | None) -> str | int | float | bool | None:
        if isinstance(value, astroid.nodes.Const) and isinstance(value.value, (str, int, float, bool)):
            return value.value
        if (
            isinstance(value, astroid.nodes.UnaryOp)
            and value.op == "-"
            and isinstance(value.operand, astroid.nodes.Const)
            and isinstance(value.operand.value, (int, float))
            and not isinstance(value.operand.value, bool)
        ):
            return -value.operand.value
        return None

    @staticmethod
    def _keywords(value: astroid.nodes.NodeNG | None) -> tuple[str, ...]:
        if not isinstance(value, astroid.nodes.Call):
            return ()
        return tuple(k.arg for k in value.keywords or [] if k.arg)

    # ------------------------------------------------------------------ annotations

    def type_ref(self, node: astroid.nodes.NodeNG | None, owner: str) -> TypeRef | None:
        """Describe an annotation expression; string annotations are parsed first."""
        if node is None:
            return None
        if isinstance(node, astroid.nodes.Const):
            if node.value is None:
                return TypeRef(text="None", name="None")
            if isinstance(node.value, str):
                return self._string_annotation(node.value, owner)
            return TypeRef(text=node.as_string(), name=node.as_string())
        text = node.as_string()
        if isinstance(node, astroid.nodes.BinOp) and node.op == "|":
            refs = [self.type_ref(operand, owner) for operand in self._union_operands(node)]
            return self._union(text, [r for r in refs if r is not None])
        if isinstance(node, astroid.nodes.Subscript):
            outer = AstroidGateway.simple_name(node.value)
            elements = node.slice.elts if isinstance(node.slice, astroid.nodes.Tuple) else [node.slice]
            args = [r for r in (self.type_ref(e, owner) for e in elements) if r is not None]
            if outer == "Optional" and args:
                return replace(args[0], text=text, is_optional=True)
            if outer == "Union":
                return self._union(text, args)
            return TypeRef(text=text, name=outer, args=tuple(args), is_self=outer in ("Self", owner))
        if isinstance(node, (astroid.nodes.Name, astroid.nodes.Attribute, astroid.nodes.Call)):
            name = AstroidGateway.simple_name(node)
            return TypeRef(text=text, name=name, is_self=name in ("Self", owner))
        if isinstance(node, (astroid.nodes.List, astroid.nodes.Tuple)):
            args = [r for r in (self.type_ref(e, owner) for e in node.elts) if r is not None]
            return TypeRef(text=text, name="list", args=tuple(args))
        return TypeRef(text=text, name=text)

    def _string_annotation(self, value: str, owner: str) -> TypeRef:
        try:
            parsed = astroid.extract_node(value)
        except astroid.AstroidError:
            stripped = value.strip()
            return TypeRef(text=value, name=stripped, is_self=stripped in ("Self", owner))
        ref = self.type_ref(parsed, owner)
        if ref is None:
            return TypeRef(text=value, name=value.strip())
        return replace(ref, text=value)

    def _union_operands(self, node: astroid.nodes.NodeNG) -> list[astroid.nodes.NodeNG]:
        if isinstance(node, astroid.nodes.BinOp) and node.op == "|":
            return self._union_operands(node.left) + self._union_operands(node.right)
        return [node]

    @staticmethod
    def _union(text: str, refs: list[TypeRef]) -> TypeRef:
        present = [r for r in refs if not r.is_none]
        optional = len(present) < len(refs)
        if len(present) == 1:
            single = present[0]
            return replace(single, text=text, is_optional=optional or single.is_optional)
        return TypeRef(text=text, name="Union", args=tuple(present), is_optional=optional)

    # ------------------------------------------------------------------ bodies

    def _body_source(self, func: astroid.nodes.FunctionDef):  # type: ignore[no-untyped-def]
        """Deferred body builder; nothing is converted until a rule asks."""
        return lambda: BodyNode(
            kind=NodeKind.FUNCTION,
            line=func.lineno or 0,
            name=func.name,
            expand=lambda: tuple(self.to_body_node(stmt, "body") for stmt in func.body),
        )

    def to_body_node(self, node: astroid.nodes.NodeNG, role: str = "") -> BodyNode:
        kind, name, receiver = self._describe(node)
        return BodyNode(
            kind=kind,
            line=node.fromlineno or node.lineno or 0,
            name=name,
            receiver=receiver,
            role=role,
            expand=lambda: self._expand(node),
        )

    def _expand(self, node: astroid.nodes.NodeNG) -> tuple[BodyNode, ...]:
        pairs: list[tuple[astroid.nodes.NodeNG, str]] = []
        for field_name in getattr(node, "_astroid_fields", ()):
            for child in self._field_nodes(getattr(node, field_name, None)):
                pairs.append((child, field_name))
        pairs.sort(key=lambda pair: (pair[0].fromlineno or 0, pair[0].col_offset or 0))
        return tuple(self.to_body_node(child, role) for child, role in pairs)

    def _field_nodes(self, value: object) -> list[astroid.nodes.NodeNG]:
        if isinstance(value, astroid.nodes.NodeNG):
            return [value]
        if isinstance(value, (list, tuple)):
            found: list[astroid.nodes.NodeNG] = []
            for item in value:
                found.extend(self._field_nodes(item))
            return found
        return []

    def _describe(self, node: astroid.nodes.NodeNG) -> tuple[NodeKind, str, str]:
        if isinstance(node, astroid.nodes.Call):
            func = node.func
            if isinstance(func, astroid.nodes.Attribute):
                return NodeKind.CALL, func.attrname, func.expr.as_string()
            if isinstance(func, astroid.nodes.Name):
                return NodeKind.CALL, func.name, ""
            return NodeKind.CALL, func.as_string(), ""
        if isinstance(node, (astroid.nodes.Attribute, astroid.nodes.AssignAttr)):
            return NodeKind.ATTRIBUTE, node.attrname, node.expr.as_string()
        if isinstance(node, (astroid.nodes.Name, astroid.nodes.AssignName)):
            return NodeKind.NAME, node.name, ""
        if isinstance(node, astroid.nodes.Const):
            return NodeKind.CONST, repr(node.value), ""
        if isinstance(node, astroid.nodes.BoolOp):
            return (NodeKind.BOOL_AND if node.op == "and" else NodeKind.BOOL_OR), node.op, ""
        if isinstance(node, astroid.nodes.BinOp):
            operators = {"&": NodeKind.BIT_AND, "|": NodeKind.BIT_OR}
            return operators.get(node.op, NodeKind.OTHER), node.op, ""
        if isinstance(node, astroid.nodes.Compare):
            return NodeKind.COMPARE, node.ops[0][0] if node.ops else "", ""
        if isinstance(node, astroid.nodes.Raise):
            return NodeKind.RAISE, AstroidGateway.simple_name(node.exc) if node.exc is not None else "", ""
        if isinstance(node, astroid.nodes.If):
            return NodeKind.IF, "", ""
        if isinstance(node, astroid.nodes.With):
            return NodeKind.WITH, "", ""
        if isinstance(node, astroid.nodes.Assign):
            return NodeKind.ASSIGN, node.targets[0].as_string() if node.targets else "", ""
        if isinstance(node, (astroid.nodes.AnnAssign, astroid.nodes.AugAssign)):
            return NodeKind.ASSIGN, node.target.as_string(), ""
        if isinstance(node, astroid.nodes.Return):
            return NodeKind.RETURN, "", ""
        # FunctionDef derives from Lambda in astroid; test it first.
        if isinstance(node, astroid.nodes.FunctionDef):
            return NodeKind.FUNCTION, node.name, ""
        if isinstance(node, astroid.nodes.Lambda):
            return NodeKind.LAMBDA, "", ""
        return NodeKind.OTHER, type(node).__name__, ""
