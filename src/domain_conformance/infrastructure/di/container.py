from typing import TYPE_CHECKING, Any, cast

from domain_conformance.domain.config import ConfigurationLoader
from domain_conformance.infrastructure.config_file_loader import ConfigFileLoader
from domain_conformance.infrastructure.gateways.astroid_gateway import AstroidGateway
from domain_conformance.infrastructure.gateways.filesystem_gateway import FileSystemGateway
from domain_conformance.infrastructure.reporters import TerminalConformanceReporter
from domain_conformance.interface.telemetry import ProjectTelemetry

if TYPE_CHECKING:
    from domain_conformance.domain.protocols import (
        FileSystemProtocol,
        SymbolSourceProtocol,
        TelemetryPort,
    )
    from domain_conformance.interface.reporters import ConformanceReporter


class ConformanceContainer:
    """Dependency Injection Container for the conformance checker."""

    def __init__(self, config_start: str | None = None) -> None:
        self._singletons: dict[str, Any] = {}
        self._register_defaults(config_start)

    def _register_defaults(self, config_start: str | None) -> None:
        """Register default implementations for protocols."""
        config_dict, tool_section = ConfigFileLoader.load_config_from_fs(config_start)
        self.register_singleton("ConfigurationLoader", ConfigurationLoader(config_dict, tool_section))

        self.register_singleton(
            "TelemetryPort", ProjectTelemetry("DOMAIN-CONFORMANCE", "cyan", "Entity rules armed")
        )
        filesystem = FileSystemGateway()
        self.register_singleton("FileSystemGateway", filesystem)
        self.register_singleton("AstroidGateway", AstroidGateway(filesystem=filesystem))
        self.register_singleton("ConformanceReporter", TerminalConformanceReporter())

    def register_singleton(self, key: str, instance: Any) -> None:
        """Register a singleton instance."""
        self._singletons[key] = instance

    def get(self, key: str) -> Any:
        """Retrieve a dependency by key. Prefer explicit get_* methods for type safety."""
        if key in self._singletons:
            return self._singletons[key]
        raise ValueError(f"Dependency '{key}' not registered.")

    def get_config_loader(self) -> ConfigurationLoader:
        """Return the configuration loader (created at composition root)."""
        return cast(ConfigurationLoader, self.get("ConfigurationLoader"))

    def get_telemetry_port(self) -> "TelemetryPort":
        return cast("TelemetryPort", self.get("TelemetryPort"))

    def get_filesystem_gateway(self) -> "FileSystemProtocol":
        return cast("FileSystemProtocol", self.get("FileSystemGateway"))

    def get_symbol_source(self) -> "SymbolSourceProtocol":
        """Return the astroid frontend that builds Symbol Models."""
        return cast("SymbolSourceProtocol", self.get("AstroidGateway"))

    def get_reporter(self) -> "ConformanceReporter":
        return cast("ConformanceReporter", self.get("ConformanceReporter"))
