"""Naming conventions the rules check against. Immutable; built once at startup."""

from dataclasses import dataclass, field

from domain_conformance.domain.constants import (
    DEFAULT_AGGREGATE_ROOT_CAPABILITY,
    DEFAULT_ENTITY_CAPABILITY,
    DEFAULT_ENTITY_INFO_TYPE,
    DEFAULT_EXECUTION_CONTEXT_TYPE,
    DEFAULT_LINEAGE_ROOTS,
    DEFAULT_MAX_ABSTRACT_DEPTH,
    DEFAULT_VALIDATION_HELPER,
    METADATA_CLASS_SUFFIX,
    METADATA_SUFFIXES,
)


@dataclass(frozen=True)
class ConventionSet:
    """
    Everything a rule needs to know about the host codebase's conventions.

    `metadata_suffixes` is kept sorted longest first so that decomposition of a
    metadata member name always prefers the most specific suffix.
    """

    lineage_roots: tuple[str, ...] = DEFAULT_LINEAGE_ROOTS
    aggregate_root_capability: str = DEFAULT_AGGREGATE_ROOT_CAPABILITY
    entity_capability: str = DEFAULT_ENTITY_CAPABILITY
    execution_context_type: str = DEFAULT_EXECUTION_CONTEXT_TYPE
    entity_info_type: str = DEFAULT_ENTITY_INFO_TYPE
    validation_helper: str = DEFAULT_VALIDATION_HELPER
    max_abstract_depth: int = DEFAULT_MAX_ABSTRACT_DEPTH
    metadata_suffixes: tuple[str, ...] = field(default=METADATA_SUFFIXES)

    def __post_init__(self) -> None:
        ordered = tuple(
            sorted(dict.fromkeys(self.metadata_suffixes), key=lambda s: (-len(s), s))
        )
        object.__setattr__(self, "metadata_suffixes", ordered)

    @classmethod
    def with_extra_suffixes(cls, extra: tuple[str, ...], **overrides: object) -> "ConventionSet":
        """Defaults plus additional metadata suffixes (leading underscore added when missing)."""
        normalized = tuple(s if s.startswith("_") else f"_{s}" for s in extra)
        return cls(metadata_suffixes=METADATA_SUFFIXES + normalized, **overrides)  # type: ignore[arg-type]

    def metadata_class_name(self, entity_name: str) -> str:
        return f"{entity_name}{METADATA_CLASS_SUFFIX}"
