"""
Tests for the picker, editor command building and edit/read sessions.
"""
import io
import os
import tempfile
import unittest
from pathlib import Path

import remedit.config as cfg
from remedit.core.reconcile import (
    FreshnessDecision, LocalDestination, ReconcileState, RemoteDestination, RetryPolicy,
)
from remedit.core.rclone_store import RcloneStore
from remedit.errors import ConfigError, PickerError
from remedit.operations.editor import editor_command
from remedit.operations.picker import list_files, select_file
from remedit.operations.session import (
    build_destination, build_store, edit_session, read_session,
)

T1 = 1_600_000_000


def answers(*values):
    it = iter(values)

    def _input(prompt):
        value = next(it)
        if isinstance(value, BaseException):
            raise value
        return value
    return _input


# ── Tests: picker ─────────────────────────────────────────────────────────────

class TestPicker(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmpdir.name)
        for name in ("beta.txt", "alpha.txt"):
            (self.dir / name).write_text(name, encoding="utf-8")
        (self.dir / "subdir").mkdir()
        self.out = io.StringIO()

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_lists_only_files_sorted(self):
        self.assertEqual([p.name for p in list_files(self.dir)], ["alpha.txt", "beta.txt"])

    def test_menu_and_selection(self):
        chosen = select_file(self.dir, input_fn=answers("2"), out=self.out)
        self.assertEqual(chosen, self.dir / "beta.txt")
        text = self.out.getvalue()
        self.assertIn(" 1) alpha.txt", text)
        self.assertIn(" 2) beta.txt", text)
        self.assertIn("Selected: beta.txt", text)

    def test_reprompts_on_invalid_input(self):
        chosen = select_file(self.dir, input_fn=answers("0", "abc", "3", "1"), out=self.out)
        self.assertEqual(chosen.name, "alpha.txt")
        self.assertEqual(self.out.getvalue().count("Invalid choice"), 3)

    def test_eof_means_no_selection(self):
        with self.assertRaises(PickerError):
            select_file(self.dir, input_fn=answers(EOFError()), out=self.out)

    def test_ctrl_c_is_not_swallowed(self):
        with self.assertRaises(KeyboardInterrupt):
            select_file(self.dir, input_fn=answers(KeyboardInterrupt()), out=self.out)

    def test_missing_directory(self):
        with self.assertRaises(PickerError):
            select_file(self.dir / "nope", input_fn=answers("1"), out=self.out)

    def test_empty_directory(self):
        empty = self.dir / "subdir"
        with self.assertRaises(PickerError):
            select_file(empty, input_fn=answers("1"), out=self.out)


# ── Tests: editor ─────────────────────────────────────────────────────────────

class TestEditorCommand(unittest.TestCase):

    def test_plain_edit(self):
        self.assertEqual(editor_command(Path("/w/a.txt"), "emacs -nw"),
                         ["emacs", "-nw", "/w/a.txt"])

    def test_emacs_read_only(self):
        cmd = editor_command(Path('/w/"odd".txt'), "emacs", read_only=True)
        self.assertEqual(cmd[:2], ["emacs", "--eval"])
        self.assertIn('(find-file "/w/\\"odd\\".txt")', cmd[2])
        self.assertIn("(read-only-mode 1)", cmd[2])

    def test_vim_read_only(self):
        self.assertEqual(editor_command(Path("a.txt"), "vim", read_only=True),
                         ["vim", "-R", "a.txt"])


# ── Tests: sessions ───────────────────────────────────────────────────────────

class FakeMount:

    def __init__(self, mount_point):
        self.mount_point = mount_point
        self.started = 0
        self.stopped = 0

    def start(self):
        self.started += 1

    def stop(self):
        self.stopped += 1


class TestSessions(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        root = Path(self.tmpdir.name)
        self.mount = FakeMount(root / "mnt")
        self.remote = root / "mnt" / cfg.REMOTE_DIR
        self.remote.mkdir(parents=True)
        self.work = root / "work"
        self.work.mkdir()
        self.remote_file = self.remote / "draft.txt"
        self.remote_file.write_text("first draft\n", encoding="utf-8")
        os.utime(self.remote_file, (T1, T1))
        self._saved = (cfg.UPLOAD_VIA, cfg.BACKEND)

    def tearDown(self):
        cfg.UPLOAD_VIA, cfg.BACKEND = self._saved
        self.tmpdir.cleanup()

    @staticmethod
    def pick(directory, prompt=""):
        return directory / "draft.txt"

    def test_edited_file_goes_back_and_local_copy_is_removed(self):
        def edit(path):
            with path.open("a", encoding="utf-8") as f:
                f.write("more words\n")
            os.utime(path, (T1 + 60, T1 + 60))

        result = edit_session(self.mount, LocalDestination(self.remote), workdir=self.work,
                              policy=RetryPolicy(1, 0), pick=self.pick, edit=edit)

        self.assertIs(result.state, ReconcileState.CONFIRMED)
        self.assertEqual(self.remote_file.read_text(encoding="utf-8"),
                         "first draft\nmore words\n")
        self.assertFalse((self.work / "draft.txt").exists())
        self.assertEqual((self.mount.started, self.mount.stopped), (1, 1))

    def test_unchanged_file_is_not_uploaded(self):
        """The local copy keeps the remote mtime, so an untouched file is rejected."""
        result = edit_session(self.mount, LocalDestination(self.remote), workdir=self.work,
                              policy=RetryPolicy(1, 0), pick=self.pick, edit=lambda p: 0)
        self.assertIs(result.decision, FreshnessDecision.REJECT)
        self.assertIs(result.state, ReconcileState.SKIPPED)
        self.assertTrue((self.work / "draft.txt").exists())

    def test_existing_local_copy_is_not_overwritten(self):
        """A copy kept after an unconfirmed upload is edited, not replaced."""
        backup = self.work / "draft.txt"
        backup.write_text("unsaved edits\n", encoding="utf-8")
        os.utime(backup, (T1 + 120, T1 + 120))
        seen = []

        def edit(path):
            seen.append(path.read_text(encoding="utf-8"))

        result = edit_session(self.mount, LocalDestination(self.remote), workdir=self.work,
                              policy=RetryPolicy(1, 0), pick=self.pick, edit=edit)

        self.assertEqual(seen, ["unsaved edits\n"])
        self.assertIs(result.state, ReconcileState.CONFIRMED)
        self.assertEqual(self.remote_file.read_text(encoding="utf-8"), "unsaved edits\n")

    def test_mount_is_stopped_when_picking_fails(self):
        def pick(directory, prompt=""):
            raise PickerError("No file selected.")

        with self.assertRaises(PickerError):
            edit_session(self.mount, LocalDestination(self.remote), workdir=self.work,
                         pick=pick, edit=lambda p: 0)
        self.assertEqual(self.mount.stopped, 1)

    def test_read_session_opens_and_waits(self):
        seen = []
        chosen = read_session(self.mount, pick=self.pick, view=seen.append,
                              wait_fn=answers(EOFError()))
        self.assertEqual(chosen, self.remote_file)
        self.assertEqual(seen, [self.remote_file])
        self.assertEqual(self.mount.stopped, 1)

    def test_build_destination_by_upload_via(self):
        cfg.UPLOAD_VIA = "mount"
        self.assertIsInstance(build_destination(), LocalDestination)
        cfg.UPLOAD_VIA = "store"
        cfg.BACKEND = "rclone"
        dest = build_destination()
        self.assertIsInstance(dest, RemoteDestination)
        self.assertIsInstance(dest.store, RcloneStore)
        cfg.UPLOAD_VIA = "elsewhere"
        with self.assertRaises(ConfigError):
            build_destination()

    def test_unknown_backend(self):
        cfg.BACKEND = "ftp"
        with self.assertRaises(ConfigError):
            build_store()


if __name__ == "__main__":
    unittest.main()
