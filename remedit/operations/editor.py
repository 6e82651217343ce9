"""
Launch an external editor and wait for it to exit
"""
import shlex
import subprocess
from pathlib import Path
from ..errors import EditorError
from ..utils.logging import log

# Editors that accept -R for read-only
_VI_FAMILY = {"vi", "vim", "nvim", "view"}


def _elisp_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def editor_command(path: Path, editor: str = "emacs", read_only: bool = False) -> list[str]:
    """Build the argv that opens *path* in *editor*."""
    argv = shlex.split(editor)
    if not argv:
        raise EditorError("No editor configured.")
    if not read_only:
        return [*argv, str(path)]

    prog = Path(argv[0]).name
    if prog == "emacs":
        form = (f"(progn (find-file {_elisp_string(str(path))}) (read-only-mode 1) "
                f"(message \"File opened in read-only mode\"))")
        return [*argv, "--eval", form]
    if prog in _VI_FAMILY:
        return [*argv, "-R", str(path)]
    return [*argv, str(path)]


def open_in_editor(path: Path, editor: str = "emacs", read_only: bool = False) -> int:
    """Run the editor in the foreground. Returns its exit code."""
    cmd = editor_command(path, editor, read_only)
    mode = "read-only mode" if read_only else Path(cmd[0]).name
    log(f"Opening {path.name} in {mode} …")
    try:
        return subprocess.run(cmd).returncode
    except OSError as exc:
        raise EditorError(f"could not start editor {cmd[0]!r}: {exc}") from exc


def open_read_only(path: Path, editor: str = "emacs") -> int:
    return open_in_editor(path, editor, read_only=True)
