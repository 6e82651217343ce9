"""
rclone mount lifecycle (mount as daemon, verify, unmount)
"""
import subprocess
import time
from pathlib import Path
from typing import Callable, Optional
from ..errors import MountError
from ..utils.logging import log, vlog

# --vfs-cache-mode flags per session mode
EDIT_FLAGS = ["--vfs-cache-mode", "writes"]
READ_FLAGS = [
    "--vfs-cache-mode", "full",
    "--vfs-cache-max-age", "10m",
    "--vfs-cache-max-size", "100M",
]


def _run(cmd: list[str]) -> int:
    vlog(f"[mount] {' '.join(cmd)}")
    try:
        return subprocess.run(cmd, capture_output=True, text=True).returncode
    except OSError as exc:
        vlog(f"[mount] could not run {cmd[0]}: {exc}")
        return 127


class RcloneMount:
    """
    Mounts ``remote`` at ``mount_point`` with `rclone mount --daemon`.
    Usable as a context manager: mounted on enter, unmounted on exit.
    """

    def __init__(self, remote: str, mount_point: Path, mode: str = "edit",
                 rclone_bin: str = "rclone", wait: Optional[float] = None,
                 runner: Callable[[list[str]], int] = _run,
                 sleep: Callable[[float], None] = time.sleep):
        if mode not in ("edit", "read"):
            raise ValueError(f"unknown mount mode: {mode!r}")
        self.remote = remote
        self.mount_point = Path(mount_point).expanduser()
        self.mode = mode
        self.rclone_bin = rclone_bin
        self.wait = wait if wait is not None else (2 if mode == "edit" else 5)
        self._run = runner
        self._sleep = sleep

    def is_mounted(self) -> bool:
        return self._run(["mountpoint", "-q", self.mountpoint_str]) == 0

    @property
    def mountpoint_str(self) -> str:
        return str(self.mount_point)

    def _force_unmount(self) -> bool:
        if self._run(["fusermount", "-u", self.mountpoint_str]) == 0:
            return True
        return self._run(["sudo", "umount", "-l", self.mountpoint_str]) == 0

    def start(self):
        if self.is_mounted():
            log(f"{self.remote} is already mounted.")
            return

        log(f"Starting rclone mount of {self.remote} at {self.mount_point} …")
        # Stale mounts leave the point unusable; failure here is expected when clean
        self._force_unmount()
        self.mount_point.mkdir(parents=True, exist_ok=True)

        flags = EDIT_FLAGS if self.mode == "edit" else READ_FLAGS
        rc = self._run([self.rclone_bin, "mount", self.remote, self.mountpoint_str,
                        *flags, "--daemon"])
        if rc != 0:
            raise MountError(f"rclone mount exited {rc}")

        self._sleep(self.wait)
        if not self.is_mounted():
            raise MountError(f"Failed to mount {self.remote} at {self.mount_point}")
        log(f"{self.remote} mounted successfully.")

    def stop(self):
        if not self.is_mounted():
            return
        log(f"Unmounting {self.mount_point} …")
        if not self._force_unmount():
            raise MountError(f"Could not unmount {self.mount_point}")
        log(f"{self.mount_point} unmounted.")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
