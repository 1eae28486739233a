"""Terminal telemetry: user-facing progress lines rendered with rich."""

import logging

from rich.console import Console


class ProjectTelemetry:
    """TelemetryPort implementation. Progress goes to stderr so stdout stays parseable."""

    def __init__(
        self,
        project_name: str,
        color: str = "cyan",
        welcome_msg: str = "",
        console: Console | None = None,
    ) -> None:
        self.project_name = project_name
        self.color = color
        self.welcome_msg = welcome_msg
        self.console = console or Console(stderr=True, highlight=False)
        self.logger = logging.getLogger(__name__)

    def handshake(self) -> None:
        message = f" {self.welcome_msg}" if self.welcome_msg else ""
        self.console.print(f"[bold {self.color}]{self.project_name}[/]{message}")
        self.logger.info("%s%s", self.project_name, message)

    def step(self, message: str) -> None:
        self.console.print(f"[{self.color}]>[/] {message}")
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]! {message}[/]")
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]x {message}[/]")
        self.logger.error(message)
