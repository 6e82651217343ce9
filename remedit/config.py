"""
Configuration constants for remedit
"""
import os
from pathlib import Path
from typing import Optional
from .errors import ConfigError

# ══════════════════════════════════════════════════════════════════════════════
#  DEFAULTS  ── overridden by YAML config or apply_profile()
# ══════════════════════════════════════════════════════════════════════════════

# rclone remote name (with trailing colon) and the folder inside it to edit
REMOTE = "google-drive:"
REMOTE_DIR = "gods-writing"

# Where `rclone mount` exposes REMOTE locally
MOUNT_POINT = Path.home() / "GoogleDrive"

RCLONE_BIN = "rclone"
EDITOR = "emacs"

# Which remote store backend writes the edited file back: "rclone" or "sftp"
BACKEND = "rclone"
# "store" uploads through the backend, "mount" moves onto the mounted path
UPLOAD_VIA = "store"

# SFTP backend (only used when BACKEND == "sftp")
SSH_HOST = "example.com"
SSH_PORT = 22
SSH_USER = "root"
SSH_KEY_PATH: Optional[str] = None
SSH_PASSWORD: Optional[str] = None

# Upload confirmation: fixed delay between size polls, no back-off
RETRY_MAX = 5
RETRY_DELAY = 2.0  # seconds

# Connection-level retry for remote write commands
WRITE_RETRY_MAX = 3
RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt

# Seconds to wait for `rclone mount --daemon` to come up
MOUNT_WAIT_EDIT = 2
MOUNT_WAIT_READ = 5


# ══════════════════════════════════════════════════════════════════════════════
#  GLOBAL CONFIG FILE  ── $XDG_CONFIG_HOME/remedit/config.yaml
# ══════════════════════════════════════════════════════════════════════════════

def get_global_config_dir() -> Path:
    """Return the global config directory for remedit."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return Path(xdg) / "remedit"
    if os.name == "nt":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "remedit"
    return Path.home() / ".config" / "remedit"


def load_global_config() -> dict:
    """Load global config from the remedit config directory."""
    cfg_path = get_global_config_dir() / "config.yaml"
    if not cfg_path.is_file():
        return {}
    return load_remedit_file(cfg_path)


# ══════════════════════════════════════════════════════════════════════════════
#  PROJECT CONFIG FILE  ── .remedit (searched upward)
# ══════════════════════════════════════════════════════════════════════════════

def find_remedit(start: Optional[Path] = None) -> Optional[Path]:
    """
    Search upward from *start* (default: cwd) for a .remedit YAML file.
    Returns the Path if found, or None if no .remedit exists in any parent.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / ".remedit"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_remedit_file(path: Path) -> dict:
    """Parse a .remedit YAML file and return its contents as a dict."""
    import yaml

    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc


def get_profile(data: dict, profile_name: str = "default") -> dict:
    """
    Extract a named profile from a .remedit or config.yaml data dict.
    Falls back to the first profile if the named one is not found.
    Returns a flat profile dict merged with top-level defaults.
    """
    defaults = data.get("defaults", {})
    profiles = data.get("profiles", [])
    if not profiles:
        return defaults.copy()
    profile = next((p for p in profiles if p.get("name") == profile_name), None)
    if profile is None:
        profile = profiles[0]
    merged = defaults.copy()
    merged.update(profile)
    return merged


def load_active_profile(profile_name: str = "default",
                        start: Optional[Path] = None) -> dict:
    """
    Merge the global config with the nearest .remedit (project wins) and
    return the selected profile. Missing files simply contribute nothing.
    """
    merged = get_profile(load_global_config(), profile_name)
    path = find_remedit(start)
    if path is not None:
        merged.update(get_profile(load_remedit_file(path), profile_name))
    return merged


# ══════════════════════════════════════════════════════════════════════════════
#  APPLY PROFILE  ── mutates module-level variables
# ══════════════════════════════════════════════════════════════════════════════

def apply_profile(profile: dict):
    """
    Apply a profile dict to the module-level config variables.
    Supports keys: remote, remote_dir, mount_point, rclone, editor, backend,
                   upload_via, server, port, user, ssh_key, ssh_password,
                   max_attempts, retry_delay, write_retries, retry_base_delay.
    """
    global REMOTE, REMOTE_DIR, MOUNT_POINT, RCLONE_BIN, EDITOR, BACKEND, UPLOAD_VIA
    global SSH_HOST, SSH_PORT, SSH_USER, SSH_KEY_PATH, SSH_PASSWORD
    global RETRY_MAX, RETRY_DELAY, WRITE_RETRY_MAX, RETRY_BASE_DELAY

    if "remote" in profile:
        rm = str(profile["remote"])
        REMOTE = rm if rm.endswith(":") else f"{rm}:"
    if "remote_dir" in profile:
        REMOTE_DIR = str(profile["remote_dir"]).strip("/")
    if "mount_point" in profile:
        MOUNT_POINT = Path(profile["mount_point"]).expanduser()
    if "rclone" in profile:
        RCLONE_BIN = str(profile["rclone"])
    if "editor" in profile:
        EDITOR = str(profile["editor"])
    if "backend" in profile:
        BACKEND = str(profile["backend"]).lower()
    if "upload_via" in profile:
        UPLOAD_VIA = str(profile["upload_via"]).lower()
    if "server" in profile:
        SSH_HOST = str(profile["server"])
    if "port" in profile:
        SSH_PORT = int(profile["port"])
    if "user" in profile:
        SSH_USER = str(profile["user"])
    if "ssh_key" in profile:
        SSH_KEY_PATH = str(profile["ssh_key"]) if profile["ssh_key"] else None
    if "ssh_password" in profile:
        SSH_PASSWORD = str(profile["ssh_password"]) if profile["ssh_password"] else None
    if "max_attempts" in profile:
        RETRY_MAX = int(profile["max_attempts"])
    if "retry_delay" in profile:
        RETRY_DELAY = float(profile["retry_delay"])
    if "write_retries" in profile:
        WRITE_RETRY_MAX = int(profile["write_retries"])
    if "retry_base_delay" in profile:
        RETRY_BASE_DELAY = float(profile["retry_base_delay"])


def remote_mount_dir() -> Path:
    """Folder being edited, as seen through the mount."""
    return MOUNT_POINT / REMOTE_DIR
