"""Layered TOML configuration.

Layers, lowest precedence first, each optional:

- ``default.toml``
- ``{NIGHTFALL_ENV}.toml``
- ``local.toml`` (untracked developer overrides)

Tables are merged key by key; any other value replaces the lower layer.
"""

import os
import tomllib
from collections.abc import Iterator
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "NIGHTFALL_CONFIG_DIR"
ENVIRONMENT_ENV = "NIGHTFALL_ENV"
DEFAULT_ENVIRONMENT = "development"
LOCAL_LAYER = "local"

_SEARCH_DEPTH = 5


def get_environment() -> str:
    return os.environ.get(ENVIRONMENT_ENV) or DEFAULT_ENVIRONMENT


def get_config_dir(start: Path | None = None) -> Path:
    """Resolve the directory holding the TOML layers.

    ``NIGHTFALL_CONFIG_DIR`` wins and must exist. Otherwise the nearest
    ``config/`` directory at or above ``start`` (default: cwd) is used.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {override}")
        return path

    here = (start or Path.cwd()).resolve()
    for candidate in [here, *here.parents][:_SEARCH_DEPTH]:
        if (candidate / "config").is_dir():
            return candidate / "config"
    return Path("config")


def load_toml(file_path: Path) -> dict[str, Any]:
    """Read one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    return tomllib.loads(file_path.read_text(encoding="utf-8"))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` updated with ``override``, merging nested tables.

    Neither argument is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        lower = merged.get(key)
        if isinstance(lower, dict) and isinstance(value, dict):
            merged[key] = deep_merge(lower, value)
        else:
            merged[key] = value
    return merged


def iter_layers(config_dir: Path, env: str) -> Iterator[Path]:
    """Yield the existing layer files in merge order."""
    names = ["default", env]
    if env != LOCAL_LAYER:
        names.append(LOCAL_LAYER)
    for name in dict.fromkeys(names):
        path = config_dir / f"{name}.toml"
        if path.is_file():
            yield path


def load_config(config_dir: Path | None = None, env: str | None = None) -> dict[str, Any]:
    """Merge every available layer into one dictionary.

    With no files at all the result is empty and model defaults apply.
    """
    directory = config_dir or get_config_dir()
    config: dict[str, Any] = {}
    for path in iter_layers(directory, env or get_environment()):
        config = deep_merge(config, load_toml(path))
    return config
