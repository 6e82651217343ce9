"""
File utilities (metadata reads, pattern expansion)
"""
import glob
from pathlib import Path
from typing import Optional


def local_size(path: Path) -> int:
    """Size of a local file in bytes, 0 if it cannot be read."""
    try:
        return path.stat().st_size
    except OSError:
        return 0


def local_mtime(path: Path) -> Optional[float]:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


def is_strictly_newer(src_mtime: float, dest_mtime: Optional[float]) -> bool:
    """True only if src is more recent than dest. Equal mtimes are not newer."""
    if dest_mtime is None:
        return False
    return src_mtime > dest_mtime


def expand_pattern(pattern: str) -> list[Path]:
    """
    Expand a shell-style glob into a sorted list of paths.
    A pattern that matches nothing is returned as-is, the way an unquoted
    shell loop would, so the caller can report it as missing.
    """
    matches = sorted(glob.glob(str(Path(pattern).expanduser())))
    if not matches:
        return [Path(pattern).expanduser()]
    return [Path(m) for m in matches]
