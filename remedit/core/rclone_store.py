"""
Remote store backed by the rclone CLI
"""
import json
import re
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Optional
from .store import RemoteStore
from ..errors import StoreError
from ..utils.logging import log, vlog, warn
from ..utils.retry import retried

# rclone prints nanosecond precision; datetime only takes microseconds
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")

# rclone exit codes for "directory not found" and "file not found"
_NOT_FOUND_CODES = (3, 4)


def parse_modtime(value: str) -> Optional[float]:
    """Parse an rclone lsjson ModTime (RFC 3339) into a POSIX timestamp."""
    if not value:
        return None
    text = _FRACTION_RE.sub(r"\1", value.strip())
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).timestamp()
    except ValueError:
        return None


class RcloneStore(RemoteStore):
    """
    Wraps `rclone size`, `rclone lsjson`, `rclone copy` and `rclone lsf`
    against one configured remote (e.g. ``google-drive:``).
    """

    def __init__(self, remote: str = "google-drive:", rclone_bin: str = "rclone",
                 query_timeout: int = 60):
        self.remote = remote if remote.endswith(":") else f"{remote}:"
        self.rclone_bin = rclone_bin
        self.query_timeout = query_timeout
        self.name = self.remote.rstrip(":")

    def describe(self, path: str) -> str:
        return f"{self.remote}{path}"

    # ── raw exec ────────────────────────────────────────────────────────────

    def _run(self, args: list[str], timeout: Optional[int] = None) -> str:
        """Run rclone; return stdout. Raises StoreError on non-zero exit."""
        cmd = [self.rclone_bin, *args]
        vlog(f"[rclone] {' '.join(cmd)}")
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise StoreError(f"could not run {cmd[0]}: {exc}") from exc
        if proc.returncode != 0:
            raise StoreError(
                f"rclone exited {proc.returncode}: {' '.join(args)}\n"
                f"stderr: {proc.stderr.strip()}",
                returncode=proc.returncode,
            )
        return proc.stdout

    def _stat(self, path: str) -> tuple[Optional[bool], Optional[dict]]:
        """
        Look *path* up with lsjson. Returns (present, entry); present is None
        when rclone could not answer (timeout, auth, network, missing binary).
        """
        try:
            out = self._run(["lsjson", self.describe(path)], timeout=self.query_timeout)
            entries = json.loads(out or "[]")
        except StoreError as exc:
            if exc.returncode in _NOT_FOUND_CODES:
                return False, None
            warn(f"rclone lsjson {path} failed: {exc}")
            return None, None
        except ValueError as exc:
            warn(f"rclone lsjson {path} returned unreadable output: {exc}")
            return None, None
        for entry in entries:
            if not entry.get("IsDir"):
                return True, entry
        return False, None

    # ── queries ─────────────────────────────────────────────────────────────

    def reported_size(self, path: str) -> Optional[int]:
        try:
            out = self._run(["size", self.describe(path), "--json"],
                            timeout=self.query_timeout)
            return int(json.loads(out).get("bytes") or 0)
        except (StoreError, ValueError, TypeError, AttributeError) as exc:
            vlog(f"[rclone] size {path} failed: {exc}")
            return None

    def modification_time(self, path: str) -> Optional[float]:
        _, entry = self._stat(path)
        if entry is None:
            return None
        return parse_modtime(entry.get("ModTime", ""))

    def exists(self, path: str) -> Optional[bool]:
        return self._stat(path)[0]

    def list_objects(self, remote_dir: str) -> list[str]:
        out = self._run(["lsf", "--files-only", self.describe(remote_dir)],
                        timeout=self.query_timeout)
        return sorted(line for line in out.splitlines() if line.strip())

    # ── write ───────────────────────────────────────────────────────────────

    @retried
    def _copy(self, local_path: Path, remote_dir: str):
        self._run(["copy", str(local_path), self.describe(remote_dir.rstrip("/") + "/"), "-v"])

    def write_object(self, local_path: Path, remote_dir: str) -> bool:
        log(f"[rclone] copying {local_path.name} → {self.describe(remote_dir)}/ …")
        try:
            self._copy(local_path, remote_dir)
        except StoreError as exc:
            warn(f"rclone copy failed: {exc}")
            return False
        return True
