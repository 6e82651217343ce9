"""
Remote store over SFTP with auto-reconnect and keep-alive
"""
import errno
import stat
from pathlib import Path
from typing import Optional
import paramiko
from .store import RemoteStore, join_remote
from .. import config as _cfg
from ..utils.logging import log, warn
from ..utils.retry import retried


class SftpStore(RemoteStore):
    """
    Wraps paramiko SSHClient + SFTPClient.
    Automatically reconnects on channel errors.
    Sends SSH keep-alives to reduce mid-transfer drops.
    """

    name = "sftp"

    def __init__(self):
        self._ssh: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    def describe(self, path: str) -> str:
        return f"{_cfg.SSH_USER}@{_cfg.SSH_HOST}:{path}"

    # ── connection ─────────────────────────────────────────────────────────

    def connect(self):
        if self._ssh:
            try:
                self._ssh.get_transport().send_ignore()  # test if alive
                return
            except Exception:
                self._close_quietly()

        log(f"[SSH] connecting to {_cfg.SSH_USER}@{_cfg.SSH_HOST}:{_cfg.SSH_PORT} …")
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        kw: dict = dict(hostname=_cfg.SSH_HOST, port=_cfg.SSH_PORT, username=_cfg.SSH_USER,
                        timeout=20, banner_timeout=30, auth_timeout=30)
        if _cfg.SSH_KEY_PATH:
            kw["key_filename"] = _cfg.SSH_KEY_PATH
        if _cfg.SSH_PASSWORD:
            kw["password"] = _cfg.SSH_PASSWORD

        client.connect(**kw)
        client.get_transport().set_keepalive(30)

        self._ssh = client
        self._sftp = client.open_sftp()
        log("[SSH] connected ✓")

    def _close_quietly(self):
        try:
            if self._sftp:
                self._sftp.close()
        except Exception:
            pass
        try:
            if self._ssh:
                self._ssh.close()
        except Exception:
            pass
        self._ssh = None
        self._sftp = None

    def close(self):
        if self._ssh:
            self._close_quietly()
            log("[SSH] disconnected.")

    def ensure_connected(self):
        """Call before any remote operation."""
        try:
            if self._ssh and self._ssh.get_transport().is_active():
                return
        except Exception:
            pass
        self.connect()

    # ── queries ─────────────────────────────────────────────────────────────

    def _stat(self, path: str):
        """
        Return (present, attrs). present is None when the server could not be
        asked; only ENOENT counts as absent.
        """
        try:
            self.ensure_connected()
            st = self._sftp.stat(path)
        except FileNotFoundError:
            return False, None
        except (OSError, paramiko.SSHException) as exc:
            if getattr(exc, "errno", None) == errno.ENOENT:
                return False, None
            warn(f"SFTP stat {path} failed: {exc}")
            return None, None
        if st.st_mode is not None and not stat.S_ISREG(st.st_mode):
            return False, None
        return True, st

    def reported_size(self, path: str) -> Optional[int]:
        _, st = self._stat(path)
        return None if st is None else st.st_size

    def modification_time(self, path: str) -> Optional[float]:
        _, st = self._stat(path)
        return None if st is None or st.st_mtime is None else float(st.st_mtime)

    def exists(self, path: str) -> Optional[bool]:
        return self._stat(path)[0]

    @retried
    def list_objects(self, remote_dir: str) -> list[str]:
        self.ensure_connected()
        return sorted(
            a.filename for a in self._sftp.listdir_attr(remote_dir or ".")
            if a.st_mode is not None and stat.S_ISREG(a.st_mode)
        )

    # ── write ───────────────────────────────────────────────────────────────

    @retried
    def _put(self, local: str, remote: str):
        self.ensure_connected()
        self._sftp.put(local, remote)

    def write_object(self, local_path: Path, remote_dir: str) -> bool:
        remote = join_remote(remote_dir, local_path.name)
        log(f"[SSH] uploading {local_path.name} → {self.describe(remote)} …")
        try:
            self._put(str(local_path), remote)
        except (OSError, paramiko.SSHException) as exc:
            warn(f"SFTP upload failed: {exc}")
            return False
        return True
