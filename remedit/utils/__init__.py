"""Utilities (logging, retry, file utilities)"""
from .logging import log, vlog, warn, error, set_verbose
from .retry import retried
from .file_utils import local_size, local_mtime, is_strictly_newer, expand_pattern

__all__ = [
    "log", "vlog", "warn", "error", "set_verbose",
    "retried",
    "local_size", "local_mtime", "is_strictly_newer", "expand_pattern",
]
