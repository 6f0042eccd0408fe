"""trydir — jump to a dated scratch directory by fuzzy name."""

from pathlib import Path

__version__ = "0.1.0"


def get_try_home() -> Path:
    """Get the global config directory (~/.try/)."""
    return Path.home() / ".try"
