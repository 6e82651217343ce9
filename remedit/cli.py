#!/usr/bin/env python3
"""
remedit  —  edit files on cloud storage through an rclone mount
================================================================

Subcommands:
  init      Create a .remedit config file in the current directory.
  edit      Mount, pick a file, edit a local copy, upload it back if newer.
  read      Mount, pick a file, open it read-only.
  list      List the files in the remote folder without mounting.
  move      Move local file(s) to a folder or the remote if they are newer.

Run 'remedit <subcommand> --help' for more details.
"""
import sys
import argparse
from pathlib import Path


def _load_config(args):
    """Apply global + nearest .remedit profile, then command-line overrides."""
    import remedit.config as _cfg
    from remedit.utils.logging import set_verbose

    set_verbose(getattr(args, "verbose", False))

    path = _cfg.find_remedit()
    if path is not None and args.verbose:
        print(f"[config] Using {path}")
    _cfg.apply_profile(_cfg.load_active_profile(args.profile or "default"))

    overrides = {}
    if getattr(args, "max_attempts", None) is not None:
        overrides["max_attempts"] = args.max_attempts
    if getattr(args, "retry_delay", None) is not None:
        overrides["retry_delay"] = args.retry_delay
    if getattr(args, "editor", None):
        overrides["editor"] = args.editor
    _cfg.apply_profile(overrides)
    if _cfg.RETRY_MAX < 1 or _cfg.RETRY_DELAY < 0:
        from remedit.errors import ConfigError
        raise ConfigError("max_attempts must be >= 1 and retry_delay >= 0")


def _fail(msg: str, code: int = 1):
    print(f"error: {msg}", file=sys.stderr)
    sys.exit(code)


# ── init ─────────────────────────────────────────────────────────────────────

def cmd_init(args):
    """Create a .remedit profile file in the current directory."""
    from remedit import config as _cfg

    target = Path.cwd() / ".remedit"

    if target.exists() and not args.force:
        print(f"error: .remedit already exists in {Path.cwd()}", file=sys.stderr)
        print("Use --force to overwrite.", file=sys.stderr)
        sys.exit(1)

    g_defaults = _cfg.load_global_config().get("defaults", {})

    remote = args.remote or g_defaults.get("remote", _cfg.REMOTE)
    if not remote.endswith(":"):
        remote += ":"
    remote_dir = args.remote_dir or g_defaults.get("remote_dir", _cfg.REMOTE_DIR)
    mount_point = args.mount_point or g_defaults.get("mount_point", "~/GoogleDrive")
    editor = args.editor or g_defaults.get("editor", _cfg.EDITOR)
    backend = args.backend or g_defaults.get("backend", _cfg.BACKEND)
    profile_name = args.profile or "default"

    def _yq(value: str) -> str:
        """Wrap a string in YAML single quotes, escaping embedded single quotes."""
        return "'" + str(value).replace("'", "''") + "'"

    lines = [
        "# .remedit — remedit project configuration",
        "#",
        "# profiles: list of named profiles; pick one with --profile.",
        "# upload_via: 'store' uploads through the backend, 'mount' moves onto the mount.",
        "profiles:",
        f"  - name: {profile_name}",
        f"    remote: {_yq(remote)}",
        f"    remote_dir: {_yq(remote_dir)}",
        f"    mount_point: {_yq(mount_point)}",
        f"    editor: {_yq(editor)}",
        f"    backend: {_yq(backend)}",
        f"    upload_via: {_yq(_cfg.UPLOAD_VIA)}",
        f"    max_attempts: {_cfg.RETRY_MAX}",
        f"    retry_delay: {_cfg.RETRY_DELAY}",
    ]
    content = "\n".join(lines) + "\n"

    if args.dry_run:
        print(f"[dry-run] Would write {target}:")
        print(content)
        return

    target.write_text(content, encoding="utf-8")
    print(f"Created {target}")
    if args.verbose:
        print(content)


# ── edit ─────────────────────────────────────────────────────────────────────

def cmd_edit(args):
    """Mount, pick, edit a local copy and reconcile it back."""
    from remedit.core.reconcile import ReconcileState, RetryPolicy
    from remedit.operations.session import build_destination, build_mount, edit_session

    _load_config(args)
    destination = build_destination()
    store = getattr(destination, "store", None)
    try:
        result = edit_session(build_mount("edit"), destination,
                              workdir=Path(args.workdir),
                              policy=RetryPolicy.from_config())
    finally:
        if store is not None:
            store.close()
    if result.state is ReconcileState.EXHAUSTED:
        print(f"Local copy kept at {result.source_path}", file=sys.stderr)


# ── read ─────────────────────────────────────────────────────────────────────

def cmd_read(args):
    """Mount, pick and open a file read-only."""
    from remedit.operations.session import build_mount, read_session

    _load_config(args)
    read_session(build_mount("read"))


# ── list ─────────────────────────────────────────────────────────────────────

def cmd_list(args):
    """List the files in the remote folder through the backend, no mount."""
    import remedit.config as _cfg
    from remedit.operations.session import build_store

    _load_config(args)
    store = build_store()
    try:
        names = store.list_objects(args.folder or _cfg.REMOTE_DIR)
    finally:
        store.close()
    for i, name in enumerate(names, start=1):
        print(f"{i:2d}) {name}")


# ── move ─────────────────────────────────────────────────────────────────────

def cmd_move(args):
    """Move files matching PATTERN to DEST (or the remote) if they are newer."""
    import remedit.config as _cfg
    from remedit.core.reconcile import (
        LocalDestination, RemoteDestination, RetryPolicy, reconcile_pattern, summarize,
    )
    from remedit.operations.session import build_store
    from remedit.utils.logging import log

    _load_config(args)

    if args.to_remote:
        store = build_store()
        destination = RemoteDestination(store, args.dest or _cfg.REMOTE_DIR)
    else:
        if not args.dest:
            _fail("DEST is required unless --to-remote is given.")
        store = None
        destination = LocalDestination(Path(args.dest).expanduser())

    try:
        results = reconcile_pattern(args.pattern, destination, RetryPolicy.from_config())
    finally:
        if store is not None:
            store.close()

    counts = summarize(results)
    log(f"[move] confirmed={counts['confirmed']}  kept={counts['exhausted']}  "
        f"skipped={counts['skipped']}")


# ── main ──────────────────────────────────────────────────────────────────────

def _add_common(p, retry=False):
    p.add_argument("--profile", metavar="NAME", default="default",
                   help="Profile to use (default: default)")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Show extra output")
    if retry:
        p.add_argument("--max-attempts", type=int, metavar="N", default=None,
                       help="Upload size checks before giving up (default: 5)")
        p.add_argument("--retry-delay", type=float, metavar="SECS", default=None,
                       help="Seconds between size checks (default: 2)")


def main(argv=None):
    """CLI entry point for remedit"""
    from remedit.errors import DestinationMissingError, RemeditError
    from remedit.utils.logging import error, warn

    parser = argparse.ArgumentParser(
        prog="remedit",
        description="Edit files on cloud storage through an rclone mount",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # ── init ──────────────────────────────────────────────────────────────────
    init_p = subparsers.add_parser(
        "init",
        help="Create a .remedit config file in the current directory",
        description="Create a .remedit YAML config file for this project.",
    )
    init_p.add_argument("--remote", metavar="NAME",
                        help="rclone remote name (default: google-drive:)")
    init_p.add_argument("--remote-dir", metavar="PATH",
                        help="Folder inside the remote to edit (default: gods-writing)")
    init_p.add_argument("--mount-point", metavar="PATH",
                        help="Local mount point (default: ~/GoogleDrive)")
    init_p.add_argument("--editor", metavar="CMD",
                        help="Editor command (default: emacs)")
    init_p.add_argument("--backend", choices=["rclone", "sftp"],
                        help="Upload backend (default: rclone)")
    init_p.add_argument("--force", action="store_true",
                        help="Overwrite existing .remedit")
    init_p.add_argument("-n", "--dry-run", action="store_true",
                        help="Preview without writing files")
    _add_common(init_p)

    # ── edit ──────────────────────────────────────────────────────────────────
    edit_p = subparsers.add_parser(
        "edit",
        help="Pick a remote file, edit a local copy, upload it back",
        description="Mount the remote, pick a file, edit it and reconcile it back.",
    )
    edit_p.add_argument("--workdir", metavar="PATH", default=".",
                        help="Where the local copy is kept (default: .)")
    edit_p.add_argument("--editor", metavar="CMD", default=None,
                        help="Editor command (overrides config)")
    _add_common(edit_p, retry=True)

    # ── read ──────────────────────────────────────────────────────────────────
    read_p = subparsers.add_parser(
        "read",
        help="Pick a remote file and open it read-only",
        description="Mount the remote, pick a file and open it read-only.",
    )
    read_p.add_argument("--editor", metavar="CMD", default=None,
                        help="Editor command (overrides config)")
    _add_common(read_p)

    # ── list ──────────────────────────────────────────────────────────────────
    list_p = subparsers.add_parser(
        "list",
        help="List files in the remote folder without mounting",
        description="List files in the remote folder through the configured backend.",
    )
    list_p.add_argument("folder", metavar="FOLDER", nargs="?",
                        help="Remote folder (default: remote_dir from config)")
    _add_common(list_p)

    # ── move ──────────────────────────────────────────────────────────────────
    move_p = subparsers.add_parser(
        "move",
        help="Move newer file(s) to a folder or the remote",
        description="Move files matching PATTERN to DEST only if they are newer.",
    )
    move_p.add_argument("pattern", metavar="PATTERN",
                        help="File name or glob pattern (quote it)")
    move_p.add_argument("dest", metavar="DEST", nargs="?",
                        help="Destination folder (remote folder with --to-remote)")
    move_p.add_argument("--to-remote", action="store_true",
                        help="Upload through the configured backend instead")
    _add_common(move_p, retry=True)

    args = parser.parse_args(argv)

    commands = {"init": cmd_init, "edit": cmd_edit, "read": cmd_read,
                "list": cmd_list, "move": cmd_move}
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        handler(args)
    except DestinationMissingError as exc:
        error(str(exc))
        sys.exit(2)
    except RemeditError as exc:
        _fail(str(exc))
    except KeyboardInterrupt:
        print()
        warn("Interrupted by user.")
        sys.exit(130)


if __name__ == "__main__":
    main()
