"""Load rqm configuration from pyproject.toml."""

import re
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib  # type: ignore[import-not-found]
except ImportError:
    import tomli as tomllib


@dataclass
class RqmConfig:
    """Configuration schema for rqm.

    Attributes:
        requirements_file (str): Requirements document used when a command
            is not given one explicitly.
        metadata_dir (str): Directory of the metadata store.
        id_prefix (str): Prefix for generated IDs in a newly initialized store.
        schema (str | None): Path to a JSON Schema replacing the bundled
            one, or ``None`` to use the bundled schema.

    Examples:
        Construct a config with custom settings::

            >>> config = RqmConfig(metadata_dir=".ids", id_prefix="AUTH")
            >>> config.id_prefix
            'AUTH'
            >>> config.requirements_file
            'requirements.yml'
    """

    requirements_file: str = "requirements.yml"
    metadata_dir: str = ".rqm"
    id_prefix: str = "REQ"
    schema: str | None = None

    def validate(self, project_root: Path | None = None) -> list[str]:
        """Check settings that cannot be expressed as types.

        Args:
            project_root: Directory relative paths are resolved against.
                Defaults to the current working directory.

        Returns:
            List of validation warning messages. Empty if no issues found.
        """
        root = project_root or Path.cwd()
        validation_warnings: list[str] = []

        if not re.fullmatch(r"[A-Za-z0-9]+", self.id_prefix):
            validation_warnings.append(f"id_prefix '{self.id_prefix}' should contain only letters and digits")

        if self.schema is not None and not (root / self.schema).exists():
            validation_warnings.append(f"schema file '{self.schema}' does not exist")

        return validation_warnings


RECOGNIZED_KEYS = {
    "requirements_file": str,
    "metadata_dir": str,
    "id_prefix": str,
    "schema": str,
}


def _checked(rqm_config: dict[str, Any]) -> dict[str, Any]:
    values = {}
    for key, expected in RECOGNIZED_KEYS.items():
        if key not in rqm_config:
            continue
        value = rqm_config[key]
        if not isinstance(value, expected):
            raise ValueError(f"[tool.rqm] {key} must be a {expected.__name__}, got {type(value).__name__}")
        values[key] = value
    return values


def load_config(config_path: Path | None = None) -> RqmConfig:
    """
    Load rqm configuration from pyproject.toml.

    Looks for the [tool.rqm] section.

    Args:
        config_path: Optional path to pyproject.toml. If None, uses cwd.

    Returns:
        RqmConfig with loaded values or defaults.

    Raises:
        ValueError: If a recognized key has the wrong type.

    Examples:
        Load from a specific path::

            >>> from pathlib import Path
            >>> config = load_config(Path("myproject/pyproject.toml"))
    """
    if config_path is None:
        config_path = Path.cwd() / "pyproject.toml"

    if not config_path.exists():
        return RqmConfig()

    with open(config_path, "rb") as f:
        pyproject = tomllib.load(f)

    rqm_config = pyproject.get("tool", {}).get("rqm", {})

    unknown = set(rqm_config.keys()) - set(RECOGNIZED_KEYS)
    if unknown:
        warnings.warn(
            f"Unrecognized keys in [tool.rqm]: {', '.join(sorted(unknown))}",
            stacklevel=2,
        )

    return RqmConfig(**_checked(rqm_config))
