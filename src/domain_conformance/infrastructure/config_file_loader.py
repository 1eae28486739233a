"""Load [tool.domain-conformance] and [tool] from pyproject.toml. Infrastructure I/O only."""

import logging
import sys
from pathlib import Path

from domain_conformance.domain.constants import TOOL_SECTION_NAME

if sys.version_info >= (3, 11):
    import tomllib as toml_lib
else:
    import tomli as toml_lib

logger = logging.getLogger(__name__)


class ConfigFileLoader:
    """
    Loads config from the nearest pyproject.toml, walking up from a start directory.
    """

    @staticmethod
    def load_config_from_fs(start: str | None = None) -> tuple[dict[str, object], dict[str, object]]:
        """Returns (config_dict, tool_section); both empty when no pyproject.toml is found."""
        current_path = Path(start).resolve() if start else Path.cwd()
        if current_path.is_file():
            current_path = current_path.parent
        empty: dict[str, object] = {}
        while True:
            config_file = current_path / "pyproject.toml"
            if config_file.exists():
                try:
                    with config_file.open("rb") as f:
                        data = toml_lib.load(f)
                except (OSError, toml_lib.TOMLDecodeError) as exc:
                    logger.warning("Could not read %s: %s", config_file, exc)
                    return (empty, empty)
                tool_section = data.get("tool", {}) or {}
                config_dict = tool_section.get(TOOL_SECTION_NAME, {}) or {}
                return (config_dict, tool_section)
            if current_path.parent == current_path:
                return (empty, empty)
            current_path = current_path.parent
