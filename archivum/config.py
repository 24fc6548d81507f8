"""
Configuration management for archivum stores.

The configuration is stored as a TOML file in the store directory.
It names the repository document file and the display defaults used
by the Archive wrapper and the CLI.
"""

import os
import tomllib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

# tomli_w for writing TOML (tomllib is read-only)
import tomli_w

from .types import DEFAULT_TAG_COLOR, TAG_COLORS


CONFIG_FILENAME = "archivum.toml"
CONFIG_VERSION = 1
DEFAULT_DOCUMENT_FILENAME = "repository.json"
STORE_PATH_ENV = "ARCHIVUM_STORE_PATH"


@dataclass
class StoreConfig:
    """Settings for one store directory, as kept in archivum.toml."""
    path: Path
    version: int = CONFIG_VERSION
    created: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    # Repository document, relative to the store directory
    document_filename: str = DEFAULT_DOCUMENT_FILENAME

    # Display defaults (never persisted in the document)
    default_tag_color: str = DEFAULT_TAG_COLOR

    # JSON indentation for the saved document; 0 for compact
    indent: int = 2

    @property
    def config_path(self) -> Path:
        """The archivum.toml file inside the store."""
        return self.path / CONFIG_FILENAME

    @property
    def document_path(self) -> Path:
        """Path to the repository document."""
        return self.path / self.document_filename

    def exists(self) -> bool:
        """True once the TOML file has been written."""
        return self.config_path.exists()


def get_config_dir(store_path: str | Path | None = None) -> Path:
    """
    Resolve the store directory.

    Priority:
    1. Explicit path argument
    2. ARCHIVUM_STORE_PATH environment variable
    3. ~/.archivum
    """
    if store_path is not None:
        return Path(store_path).expanduser().resolve()
    env_path = os.environ.get(STORE_PATH_ENV)
    if env_path:
        return Path(env_path).expanduser().resolve()
    return Path.home() / ".archivum"


def _from_toml(store_path: Path, data: dict) -> StoreConfig:
    store = data.get("store", {})
    document = data.get("document", {})
    display = data.get("display", {})

    version = store.get("version", CONFIG_VERSION)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    color = display.get("default_tag_color", DEFAULT_TAG_COLOR)
    if color not in TAG_COLORS:
        raise ValueError(f"Unknown default_tag_color {color!r} (expected one of {', '.join(TAG_COLORS)})")

    indent = document.get("indent", 2)
    if isinstance(indent, bool) or not isinstance(indent, int) or indent < 0:
        raise ValueError(f"document.indent must be a non-negative integer: {indent!r}")

    return StoreConfig(
        path=store_path,
        version=version,
        created=store.get("created", ""),
        document_filename=document.get("filename", DEFAULT_DOCUMENT_FILENAME),
        default_tag_color=color,
        indent=indent,
    )


def _to_toml(config: StoreConfig) -> dict:
    return {
        "store": {"version": config.version, "created": config.created},
        "document": {"filename": config.document_filename, "indent": config.indent},
        "display": {"default_tag_color": config.default_tag_color},
    }


def load_config(store_path: Path) -> StoreConfig:
    """
    Read archivum.toml from a store directory.

    Missing sections and keys fall back to the StoreConfig defaults.

    Raises:
        FileNotFoundError: no archivum.toml in the directory
        ValueError: newer config version, unknown color, or bad indent
    """
    path = store_path / CONFIG_FILENAME
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path, "rb") as f:
        return _from_toml(store_path, tomllib.load(f))


def save_config(config: StoreConfig) -> None:
    """Write archivum.toml, creating the store directory if needed."""
    config.path.mkdir(parents=True, exist_ok=True)
    with open(config.config_path, "wb") as f:
        tomli_w.dump(_to_toml(config), f)


def load_or_create_config(store_path: Path) -> StoreConfig:
    """
    Load the store's config, writing a default one on first use.

    Archive.open() goes through here when no config is passed in.
    """
    if (store_path / CONFIG_FILENAME).exists():
        return load_config(store_path)
    config = StoreConfig(path=store_path)
    save_config(config)
    return config
