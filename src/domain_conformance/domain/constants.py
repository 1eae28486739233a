"""
Conformance conventions: default names, vocabularies and visual constants.
"""

# DOMAIN-CONFORMANCE: ANSI Cyan (\033[36m)
_CYAN: str = "\033[36m"
_RESET: str = "\033[0m"
_CONFORMANCE_ART: str = r"""
    ____  ____  __  ______    _____   __
   / __ \/ __ \/  |/  /   |  /  _/ | / /   conformance
  / / / / / / / /|_/ / /| |  / //  |/ /    entity rules
 / /_/ / /_/ / /  / / ___ |_/ // /|  /
/_____/\____/_/  /_/_/  |_/___/_/ |_/
"""
CONFORMANCE_BANNER = _CYAN + _CONFORMANCE_ART + _RESET

TOOL_SECTION_NAME: str = "domain-conformance"

DEFAULT_LINEAGE_ROOTS: tuple[str, ...] = ("EntityBase",)
DEFAULT_AGGREGATE_ROOT_CAPABILITY: str = "AggregateRoot"
DEFAULT_ENTITY_CAPABILITY: str = "Entity"
DEFAULT_EXECUTION_CONTEXT_TYPE: str = "ExecutionContext"
DEFAULT_ENTITY_INFO_TYPE: str = "EntityInfo"
DEFAULT_VALIDATION_HELPER: str = "ValidationUtils"
DEFAULT_MAX_ABSTRACT_DEPTH: int = 1
DEFAULT_REPORT_PATH: str = "architecture-report.json"
DEFAULT_PENDING_DIR: str = ".conformance/pending"

ADR_ROOT: str = "docs/adrs/domain-entities"

# Decorator names that narrow constructor accessibility (see domain_conformance.markers).
PRIVATE_MARKER: str = "private"
PROTECTED_MARKER: str = "protected"

METADATA_CLASS_SUFFIX: str = "Metadata"

METADATA_SUFFIXES: tuple[str, ...] = (
    "_property_name",
    "_min_age_in_years",
    "_max_age_in_years",
    "_min_age_in_days",
    "_max_age_in_days",
    "_min_length",
    "_max_length",
    "_min_value",
    "_max_value",
    "_is_required",
    "_is_unique",
    "_is_read_only",
    "_pattern",
    "_format",
)

ENUM_BASES: frozenset[str] = frozenset(
    {"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag", "ReprEnum"}
)

VALUE_AGGREGATE_BASES: frozenset[str] = frozenset({"NamedTuple", "TypedDict"})

VALUE_AGGREGATE_DECORATORS: frozenset[str] = frozenset(
    {"dataclass", "define", "frozen", "mutable", "attrs", "s"}
)

ABSTRACT_MARKERS: frozenset[str] = frozenset({"ABC", "ABCMeta"})

CAPABILITY_BASES: frozenset[str] = frozenset({"Protocol"})

# Generic/typing helpers that never contribute to an entity lineage.
TRANSPARENT_BASES: frozenset[str] = frozenset({"object", "Generic"})

MUTABLE_COLLECTIONS: frozenset[str] = frozenset(
    {
        "list",
        "List",
        "set",
        "Set",
        "dict",
        "Dict",
        "MutableSequence",
        "MutableSet",
        "MutableMapping",
        "deque",
        "Deque",
    }
)

READ_ONLY_COLLECTIONS: frozenset[str] = frozenset(
    {"Sequence", "tuple", "Tuple", "frozenset", "FrozenSet", "Mapping", "AbstractSet"}
)

OTHER_COLLECTIONS: frozenset[str] = frozenset(
    {"Iterable", "Collection", "Iterator", "Generator"}
)

PRIMITIVE_TYPES: frozenset[str] = frozenset(
    {
        "str",
        "int",
        "float",
        "bool",
        "bytes",
        "complex",
        "Decimal",
        "UUID",
        "datetime",
        "date",
        "time",
        "timedelta",
        "object",
        "Any",
    }
)
