"""Error taxonomy for trydir.

Every error is terminal for the invocation. The CLI maps each one to a single
diagnostic line on stderr and exit code 1.
"""

from __future__ import annotations


class TryError(RuntimeError):
    """Base trydir error."""


class ConfigError(TryError):
    """The configuration cannot be resolved (base directory, invalid values)."""


class StoreError(TryError):
    """The record store could not be opened, queried, or written."""


class ConstraintViolation(StoreError):
    """Insert rejected because a record with the same path already exists."""


class RecordNotFound(StoreError):
    """Update targeted a record id that does not exist."""


class FilesystemError(TryError):
    """A scratch directory could not be created."""


class InvalidQuery(TryError):
    """The query cannot be used to name a new folder."""


class UserCancelled(TryError):
    """The user aborted the interactive selection."""
