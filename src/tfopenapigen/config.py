"""Load and validate the generator configuration file.

The configuration is a YAML (or JSON) document validated into a frozen
:class:`~tfopenapigen.models.GeneratorConfig`.  This module owns:

* **Path resolution** -- :func:`resolve_config_path` picks the file using the
  precedence CLI flag > ``TFOPENAPIGEN_CONFIG`` environment variable >
  ``./tfopenapigen_config.yml``.
* **Parsing** -- :func:`parse_config` reads YAML with a loader that rejects
  duplicate mapping keys, so two resources with the same name are reported
  instead of silently overwriting each other.
* **Validation** -- pydantic errors are re-raised as
  :class:`~tfopenapigen.exceptions.ConfigError` with a readable summary.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from tfopenapigen.exceptions import ConfigError
from tfopenapigen.models import GeneratorConfig

DEFAULT_CONFIG_FILENAME = "tfopenapigen_config.yml"
CONFIG_ENV_VAR = "TFOPENAPIGEN_CONFIG"


class _UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that fails on duplicate keys within one mapping."""

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        seen: set[Any] = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def resolve_config_path(cli_path: Optional[str] = None) -> Path:
    """Resolve which configuration file to read.

    Precedence (high to low):
        1. ``cli_path`` (the ``--config`` flag)
        2. ``TFOPENAPIGEN_CONFIG`` environment variable
        3. ``./tfopenapigen_config.yml``

    Args:
        cli_path: Path given on the command line, if any.

    Returns:
        The path to load.  Existence is checked by :func:`load_config`.
    """
    if cli_path:
        return Path(cli_path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_CONFIG_FILENAME


def load_config(path: str | Path) -> GeneratorConfig:
    """Read and validate a configuration file.

    Args:
        path: Path to a YAML or JSON configuration file.

    Returns:
        The validated, frozen :class:`~tfopenapigen.models.GeneratorConfig`.

    Raises:
        ConfigError: If the file is missing, unreadable, malformed or fails
            validation.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigError(f"Generator config not found: {config_path}")
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read generator config {config_path}: {exc}") from exc
    return parse_config(text, source=str(config_path))


def parse_config(text: str, source: str = "<config>") -> GeneratorConfig:
    """Parse configuration text (YAML or JSON) into a :class:`GeneratorConfig`.

    Args:
        text: The raw document.
        source: Name used in error messages.

    Raises:
        ConfigError: On YAML syntax errors, duplicate keys, a non-mapping
            document or validation failures.
    """
    if not text.strip():
        raise ConfigError(f"Generator config is empty: {source}")
    try:
        data = yaml.load(text, Loader=_UniqueKeyLoader)  # noqa: S506 -- SafeLoader subclass
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in generator config {source}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(
            f"Generator config {source} must be a mapping (got {type(data).__name__})"
        )

    try:
        return GeneratorConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid generator config {source}:\n{_format_validation_error(exc)}"
        ) from exc


def _format_validation_error(exc: ValidationError) -> str:
    """Render pydantic errors as ``  - a.b.c: message`` lines."""
    lines = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "<root>"
        lines.append(f"  - {location}: {err['msg']}")
    return "\n".join(lines)
