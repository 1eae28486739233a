from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from domain_conformance.domain.entities import RunResult
    from domain_conformance.domain.symbols import WorkspaceSnapshot


class SymbolSourceProtocol(Protocol):
    """Upstream frontend: turns a workspace on disk into Symbol Models."""

    def load_workspace(
        self, root: str, exclude_paths: tuple[str, ...] = ()
    ) -> "WorkspaceSnapshot":
        """Parse every Python file under root; failures become resolution warnings."""
        ...


class TelemetryPort(Protocol):
    """Protocol for telemetry/UI updates."""

    def step(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def handshake(self) -> None: ...


class FileSystemProtocol(Protocol):
    """Protocol for filesystem operations - abstracts Path usage."""

    def resolve_path(self, path: str) -> str:
        """Resolve and normalize a path string."""
        ...

    def is_directory(self, path: str) -> bool:
        """Check if path is a directory."""
        ...

    def glob_python_files(self, path: str) -> list[str]:
        """Get all Python files in path (recursive if directory)."""
        ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """Read a text file."""
        ...

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """Write text content to a file."""
        ...

    def make_dirs(self, path: str, exist_ok: bool = True) -> None:
        """Create directory and parent directories if needed."""
        ...

    def relative_to(self, path: str, root: str) -> str:
        """Path relative to root, with forward slashes."""
        ...

    def project_root_for(self, path: str, workspace_root: str) -> str:
        """Nearest directory holding packaging metadata, bounded by workspace_root."""
        ...

    def remove_files(self, directory: str, pattern: str) -> int:
        """Delete files matching pattern in directory; return how many were removed."""
        ...


class ViolationSinkProtocol(Protocol):
    """Downstream collaborator: consumes the sorted result of a run."""

    def accept(self, result: "RunResult") -> None:
        """Consume violations, rule execution errors and resolution warnings."""
        ...
