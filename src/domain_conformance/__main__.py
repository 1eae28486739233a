"""Package entry point - composition root. Wire dependencies and run the CLI app."""

import logging

from domain_conformance.infrastructure.di.container import ConformanceContainer
from domain_conformance.interface.cli import CLIAppFactory, CLIDependencies


def main() -> None:
    """Entry point: wire dependencies at composition root, create app, run."""
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    container = ConformanceContainer()

    deps = CLIDependencies(
        config_loader=container.get_config_loader(),
        telemetry=container.get_telemetry_port(),
        symbol_source=container.get_symbol_source(),
        filesystem=container.get_filesystem_gateway(),
        reporter=container.get_reporter(),
    )

    app = CLIAppFactory.create_app(deps)
    app()


if __name__ == "__main__":
    main()
