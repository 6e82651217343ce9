"""
Edit and read sessions: mount → pick → open → (reconcile) → unmount
"""
import shutil
import time
from pathlib import Path
from typing import Callable, Optional
from .. import config as _cfg
from ..core.mount import RcloneMount
from ..core.reconcile import (
    Destination, LocalDestination, RemoteDestination, ReconcileResult,
    RetryPolicy, reconcile,
)
from ..core.store import RemoteStore
from ..errors import ConfigError, PickerError, RemeditError
from ..utils.logging import log, warn
from .editor import open_in_editor, open_read_only
from .picker import select_file

EDIT_PROMPT = "Enter the number of the file to open"
READ_PROMPT = "Enter the number of the file to open for read-only"


def build_store() -> RemoteStore:
    """Instantiate the configured remote store backend."""
    if _cfg.BACKEND == "rclone":
        from ..core.rclone_store import RcloneStore
        return RcloneStore(_cfg.REMOTE, _cfg.RCLONE_BIN)
    if _cfg.BACKEND == "sftp":
        from ..core.sftp_store import SftpStore
        return SftpStore()
    raise ConfigError(f"unknown backend {_cfg.BACKEND!r} (expected 'rclone' or 'sftp')")


def build_destination(store: Optional[RemoteStore] = None) -> Destination:
    """Where an edited file goes back to, per UPLOAD_VIA."""
    if _cfg.UPLOAD_VIA == "mount":
        return LocalDestination(_cfg.remote_mount_dir())
    if _cfg.UPLOAD_VIA == "store":
        return RemoteDestination(store or build_store(), _cfg.REMOTE_DIR)
    raise ConfigError(f"unknown upload_via {_cfg.UPLOAD_VIA!r} (expected 'store' or 'mount')")


def build_mount(mode: str) -> RcloneMount:
    wait = _cfg.MOUNT_WAIT_EDIT if mode == "edit" else _cfg.MOUNT_WAIT_READ
    return RcloneMount(_cfg.REMOTE, _cfg.MOUNT_POINT, mode=mode,
                       rclone_bin=_cfg.RCLONE_BIN, wait=wait)


def edit_session(mount: RcloneMount, destination: Destination,
                 workdir: Path = Path("."),
                 policy: Optional[RetryPolicy] = None,
                 pick: Callable[..., Path] = select_file,
                 edit: Optional[Callable[[Path], int]] = None,
                 sleep: Callable[[float], None] = time.sleep) -> ReconcileResult:
    """
    Copy a picked remote file into *workdir*, edit it, then reconcile the
    local copy back into *destination*. The mount is always stopped.
    """
    edit = edit or (lambda p: open_in_editor(p, _cfg.EDITOR))
    mount.start()
    try:
        selected = pick(mount.mount_point / _cfg.REMOTE_DIR, prompt=EDIT_PROMPT)

        local_file = Path(workdir) / selected.name
        if local_file.exists():
            # left behind by an unconfirmed upload; never overwrite it
            warn(f"Local copy '{local_file}' already exists. "
                 f"Editing it instead of the remote file.")
        else:
            log(f"Copying {selected.name} to local folder …")
            shutil.copy2(selected, local_file)
        if not local_file.is_file():
            raise RemeditError("Failed to copy file to local folder.")

        edit(local_file)

        log(f"Reconciling {local_file.name} back to remote …")
        result = reconcile(local_file, destination, policy, sleep)
    finally:
        mount.stop()

    log("Done!")
    return result


def read_session(mount: RcloneMount,
                 pick: Callable[..., Path] = select_file,
                 view: Optional[Callable[[Path], int]] = None,
                 wait_fn: Callable[[str], str] = input) -> Path:
    """Open a picked remote file read-only straight from the mount."""
    view = view or (lambda p: open_read_only(p, _cfg.EDITOR))
    mount.start()
    try:
        selected = pick(mount.mount_point / _cfg.REMOTE_DIR, prompt=READ_PROMPT)
        if not selected.is_file():
            raise PickerError("Selected file does not exist or is not readable.")

        view(selected)

        try:
            wait_fn("Press Enter to unmount and finish...")
        except EOFError:
            pass
    finally:
        mount.stop()

    log("Done!")
    return selected
