"""Filesystem Gateway - Infrastructure implementation of FileSystemProtocol."""

from pathlib import Path

from domain_conformance.domain.protocols import FileSystemProtocol

PROJECT_MARKERS: tuple[str, ...] = ("pyproject.toml", "setup.cfg", "setup.py")


class FileSystemGateway(FileSystemProtocol):
    """Infrastructure implementation of FileSystemProtocol using pathlib."""

    def resolve_path(self, path: str) -> str:
        """Resolve and normalize a path string."""
        return str(Path(path).resolve())

    def is_directory(self, path: str) -> bool:
        """Check if path is a directory."""
        return Path(path).is_dir()

    def glob_python_files(self, path: str) -> list[str]:
        """Get all Python files in path (recursive if directory), sorted."""
        path_obj = Path(path).resolve()
        if path_obj.is_dir():
            return sorted(str(p) for p in path_obj.glob("**/*.py"))
        return [str(path_obj)] if path_obj.suffix == ".py" else []

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return Path(path).read_text(encoding=encoding)

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """Write text content to a file, creating parent directories."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding=encoding)

    def make_dirs(self, path: str, exist_ok: bool = True) -> None:
        """Create directory and parent directories if needed."""
        Path(path).mkdir(parents=True, exist_ok=exist_ok)

    def relative_to(self, path: str, root: str) -> str:
        """Path relative to root, with forward slashes; unrelated paths come back as-is."""
        path_obj = Path(path).resolve()
        try:
            return path_obj.relative_to(Path(root).resolve()).as_posix()
        except ValueError:
            return path_obj.as_posix()

    def project_root_for(self, path: str, workspace_root: str) -> str:
        """
        Nearest directory above `path` holding pyproject.toml / setup.cfg / setup.py.

        The walk stops at workspace_root, which is returned when no marker is found.
        """
        root = Path(workspace_root).resolve()
        if root.is_file():
            root = root.parent
        current = Path(path).resolve().parent
        while True:
            if any((current / marker).exists() for marker in PROJECT_MARKERS):
                return str(current)
            if current == root or current.parent == current:
                return str(root)
            current = current.parent

    def remove_files(self, directory: str, pattern: str) -> int:
        target = Path(directory)
        if not target.is_dir():
            return 0
        removed = 0
        for stale in target.glob(pattern):
            if stale.is_file():
                stale.unlink()
                removed += 1
        return removed
