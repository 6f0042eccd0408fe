"""Configuration management for trydir."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from . import get_try_home
from .errors import ConfigError

INTERACTIVE_MODES = ("auto", "always", "never")
DB_FILE_NAME = "try.db"


@dataclass
class TryConfig:
    """trydir configuration."""

    # Storage
    base_dir: str = "~/try"
    db_path: str = ""  # Empty = <base_dir>/try.db

    # Selection
    max_choices: int = 3
    interactive: str = "auto"  # "auto" (TTY check), "always", "never"

    # New folders
    date_format: str = "%Y-%m-%d"

    # Diagnostics
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.max_choices < 1:
            raise ConfigError(f"max_choices must be at least 1, got {self.max_choices}")
        if self.interactive not in INTERACTIVE_MODES:
            raise ConfigError(
                f"interactive must be one of {', '.join(INTERACTIVE_MODES)}, "
                f"got {self.interactive!r}"
            )

    @classmethod
    def load(cls, config_path: Path | None = None) -> TryConfig:
        """Load configuration from YAML file with environment variable overrides."""
        if config_path is None:
            config_path = get_try_home() / "config.yaml"

        config_dict: dict[str, Any] = {}
        if config_path.exists():
            try:
                with open(config_path, encoding="utf-8") as f:
                    config_dict = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as exc:
                raise ConfigError(f"Cannot read config {config_path}: {exc}") from exc
            if not isinstance(config_dict, dict):
                raise ConfigError(f"Config {config_path} must be a mapping")

        # Environment variable overrides (TRY_ prefix)
        env_map = {
            "base_dir": ("TRY_BASE_DIR", str),
            "db_path": ("TRY_DB_PATH", str),
            "max_choices": ("TRY_MAX_CHOICES", int),
            "interactive": ("TRY_INTERACTIVE", str),
            "date_format": ("TRY_DATE_FORMAT", str),
            "log_level": ("TRY_LOG_LEVEL", str),
        }

        for field_name, (env_var, converter) in env_map.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    config_dict[field_name] = converter(value)
                except ValueError as exc:
                    raise ConfigError(f"Invalid {env_var}={value!r}") from exc

        # Only pass known fields
        known = {f.name for f in cls.__dataclass_fields__.values()}
        return cls(**{k: v for k, v in config_dict.items() if k in known})

    @property
    def resolved_base_dir(self) -> Path:
        """Resolve the scratch base directory (expand ~ and make absolute)."""
        if not self.base_dir.strip():
            raise ConfigError("base_dir is empty")
        path = _expand(self.base_dir)
        if path.exists() and not path.is_dir():
            raise ConfigError(f"base_dir is not a directory: {path}")
        return path

    @property
    def resolved_db_path(self) -> Path:
        """Resolve the database path; defaults to try.db inside the base directory."""
        if self.db_path.strip():
            return _expand(self.db_path)
        return self.resolved_base_dir / DB_FILE_NAME


def _expand(raw: str) -> Path:
    try:
        path = Path(raw).expanduser()
    except RuntimeError as exc:
        raise ConfigError(f"Cannot expand {raw!r}: {exc}") from exc
    if str(path).startswith("~"):
        raise ConfigError(f"Cannot expand {raw!r}: home directory is unknown")
    return path.resolve()


def get_default_config_content() -> str:
    """Get default config file content for `try init --write-config`."""
    return """\
# trydir configuration
base_dir: "~/try"          # Where scratch folders are created
db_path: ""                # Folder history (SurrealDB file). Empty = <base_dir>/try.db

max_choices: 3             # Candidates shown when several folders match
interactive: "auto"        # "auto" (prompt when stdin is a TTY), "always", "never"

date_format: "%Y-%m-%d"    # Prefix for new folder names

log_level: "WARNING"       # Diagnostics on stderr; --verbose forces DEBUG
"""
