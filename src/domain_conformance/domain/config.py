"""Configuration loader for conformance settings. Immutable value object created by Infrastructure."""

import logging

from domain_conformance.domain.constants import (
    DEFAULT_AGGREGATE_ROOT_CAPABILITY,
    DEFAULT_ENTITY_CAPABILITY,
    DEFAULT_ENTITY_INFO_TYPE,
    DEFAULT_EXECUTION_CONTEXT_TYPE,
    DEFAULT_LINEAGE_ROOTS,
    DEFAULT_MAX_ABSTRACT_DEPTH,
    DEFAULT_PENDING_DIR,
    DEFAULT_REPORT_PATH,
    DEFAULT_VALIDATION_HELPER,
)
from domain_conformance.domain.conventions import ConventionSet
from domain_conformance.domain.entities import Severity


class ConfigurationError(ValueError):
    """A configuration value given explicitly (e.g. on the command line) cannot be used."""


class ConfigurationLoader:
    """
    Immutable configuration for a conformance run.

    Created by Infrastructure from (config_dict, tool_section). Domain does not
    read the filesystem; the composition root calls
    ConfigFileLoader.load_config_from_fs() and constructs
    ConfigurationLoader(config_dict, tool_section). Invalid values are logged
    and replaced by their defaults.
    """

    def __init__(
        self,
        config_dict: dict[str, object],
        tool_section: dict[str, object] | None = None,
    ) -> None:
        """Set config once at construction. No mutable class or instance state after init."""
        self._config = config_dict
        self._tool_section = tool_section or {}

    @property
    def config(self) -> dict[str, object]:
        """Return the loaded configuration."""
        return self._config

    def _string(self, key: str, default: str) -> str:
        raw = self._config.get(key, default)
        if isinstance(raw, str) and raw.strip():
            return raw.strip()
        logging.warning("Configuration Warning: '%s' must be a non-empty string; using '%s'.", key, default)
        return default

    def _string_list(self, key: str, default: tuple[str, ...] = ()) -> list[str]:
        raw = self._config.get(key, list(default))
        if isinstance(raw, str):
            return [raw]
        if isinstance(raw, list):
            values = [str(x) for x in raw if isinstance(x, str) and x.strip()]
            if len(values) != len(raw):
                logging.warning("Configuration Warning: '%s' ignores non-string entries.", key)
            return values
        logging.warning("Configuration Warning: '%s' must be a list of strings; using defaults.", key)
        return list(default)

    def _non_negative_int(self, key: str, default: int) -> int:
        raw = self._config.get(key, default)
        if isinstance(raw, int) and not isinstance(raw, bool) and raw >= 0:
            return raw
        logging.warning("Configuration Warning: '%s' must be a non-negative integer; using %d.", key, default)
        return default

    @property
    def lineage_roots(self) -> list[str]:
        """Base class names that define the entity lineage."""
        roots = self._string_list("lineage_roots", DEFAULT_LINEAGE_ROOTS)
        return roots or list(DEFAULT_LINEAGE_ROOTS)

    @property
    def aggregate_root_capability(self) -> str:
        return self._string("aggregate_root_capability", DEFAULT_AGGREGATE_ROOT_CAPABILITY)

    @property
    def entity_capability(self) -> str:
        return self._string("entity_capability", DEFAULT_ENTITY_CAPABILITY)

    @property
    def execution_context_type(self) -> str:
        return self._string("execution_context_type", DEFAULT_EXECUTION_CONTEXT_TYPE)

    @property
    def entity_info_type(self) -> str:
        return self._string("entity_info_type", DEFAULT_ENTITY_INFO_TYPE)

    @property
    def validation_helper(self) -> str:
        return self._string("validation_helper", DEFAULT_VALIDATION_HELPER)

    @property
    def max_abstract_depth(self) -> int:
        return self._non_negative_int("max_abstract_depth", DEFAULT_MAX_ABSTRACT_DEPTH)

    @property
    def metadata_suffixes(self) -> list[str]:
        """Extra metadata suffixes added to the built-in vocabulary."""
        return self._string_list("metadata_suffixes")

    @property
    def min_severity(self) -> Severity:
        raw = self._config.get("min_severity", Severity.ERROR.value)
        if isinstance(raw, str):
            try:
                return Severity.parse(raw)
            except ValueError:
                pass
        logging.warning("Configuration Warning: 'min_severity' %r is not a severity; using 'error'.", raw)
        return Severity.ERROR

    @property
    def workers(self) -> int:
        """Thread pool size; 0 lets the executor decide."""
        return self._non_negative_int("workers", 0)

    @property
    def exclude_paths(self) -> list[str]:
        """
        Path fragments excluded from the workspace.

        Intended for deliberate-violation fixtures and generated code.
        """
        return self._string_list("exclude_paths")

    @property
    def disabled_rules(self) -> list[str]:
        return self._string_list("disabled_rules")

    @property
    def severity_overrides(self) -> dict[str, Severity]:
        """Rule name or code -> severity."""
        raw = self._config.get("severity_overrides", {})
        if not isinstance(raw, dict):
            logging.warning("Configuration Warning: 'severity_overrides' must be a table; ignoring it.")
            return {}
        overrides: dict[str, Severity] = {}
        for rule, value in raw.items():
            try:
                overrides[str(rule)] = Severity.parse(str(value))
            except ValueError:
                logging.warning(
                    "Configuration Warning: severity override %r for '%s' is not a severity; ignoring it.",
                    value,
                    rule,
                )
        return overrides

    @property
    def report_path(self) -> str:
        return self._string("report_path", DEFAULT_REPORT_PATH)

    @property
    def pending_dir(self) -> str:
        return self._string("pending_dir", DEFAULT_PENDING_DIR)

    @property
    def conventions(self) -> ConventionSet:
        """The immutable convention set handed to every rule."""
        return ConventionSet.with_extra_suffixes(
            tuple(self.metadata_suffixes),
            lineage_roots=tuple(self.lineage_roots),
            aggregate_root_capability=self.aggregate_root_capability,
            entity_capability=self.entity_capability,
            execution_context_type=self.execution_context_type,
            entity_info_type=self.entity_info_type,
            validation_helper=self.validation_helper,
            max_abstract_depth=self.max_abstract_depth,
        )

    @staticmethod
    def parse_severity(value: str) -> Severity:
        """Severity given explicitly by the user; unknown names are an error, not a warning."""
        try:
            return Severity.parse(value)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
