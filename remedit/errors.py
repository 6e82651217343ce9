"""
Exceptions raised by remedit.

Only configuration-level problems are raised out of the reconcile flow;
stale or unconfirmed files are reported in results instead.
"""
from typing import Optional


class RemeditError(Exception):
    """Base error for the project."""


class ConfigError(RemeditError):
    pass


class DestinationMissingError(RemeditError):
    """The local destination directory does not exist."""


class MountError(RemeditError):
    pass


class PickerError(RemeditError):
    pass


class StoreError(RemeditError):
    """A remote store command failed."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


class EditorError(RemeditError):
    pass
