"""Unit tests for FileSystemGateway."""

from pathlib import Path

from domain_conformance.infrastructure.gateways.filesystem_gateway import FileSystemGateway


def test_glob_python_files_sorted_and_recursive(tmp_path: Path) -> None:
    (tmp_path / "b.py").write_text("")
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "a.py").write_text("")
    (tmp_path / "notes.txt").write_text("")

    files = FileSystemGateway().glob_python_files(str(tmp_path))

    assert [Path(f).relative_to(tmp_path.resolve()).as_posix() for f in files] == ["b.py", "pkg/a.py"]


def test_glob_single_file(tmp_path: Path) -> None:
    module = tmp_path / "order.py"
    module.write_text("")
    gateway = FileSystemGateway()

    assert gateway.glob_python_files(str(module)) == [str(module.resolve())]
    assert gateway.glob_python_files(str(tmp_path / "notes.txt")) == []


def test_write_text_creates_parents(tmp_path: Path) -> None:
    target = tmp_path / "out" / "nested" / "report.json"

    FileSystemGateway().write_text(str(target), "{}")

    assert target.read_text() == "{}"


def test_relative_to_uses_forward_slashes(tmp_path: Path) -> None:
    gateway = FileSystemGateway()

    assert gateway.relative_to(str(tmp_path / "domain" / "order.py"), str(tmp_path)) == "domain/order.py"


def test_project_root_for_nearest_marker(tmp_path: Path) -> None:
    project = tmp_path / "Domain.Entities"
    (project / "domain").mkdir(parents=True)
    (project / "pyproject.toml").write_text("")
    gateway = FileSystemGateway()

    assert gateway.project_root_for(str(project / "domain" / "order.py"), str(tmp_path)) == str(project.resolve())
    assert gateway.project_root_for(str(tmp_path / "loose.py"), str(tmp_path)) == str(tmp_path.resolve())


def test_remove_files_only_matches_pattern(tmp_path: Path) -> None:
    (tmp_path / "architecture_de001_sealedclass_001.txt").write_text("")
    (tmp_path / "keep.txt").write_text("")
    gateway = FileSystemGateway()

    assert gateway.remove_files(str(tmp_path), "architecture_*.txt") == 1
    assert [p.name for p in tmp_path.iterdir()] == ["keep.txt"]
    assert gateway.remove_files(str(tmp_path / "missing"), "architecture_*.txt") == 0
