"""
Tests for the rclone mount lifecycle, driven by a scripted command runner.
"""
import tempfile
import unittest
from pathlib import Path

from remedit.core.mount import RcloneMount
from remedit.errors import MountError


class ScriptedRunner:
    """Records commands; `mountpoint` answers come from *mounted_answers*."""

    def __init__(self, mounted_answers, fail=()):
        self.mounted_answers = list(mounted_answers)
        self.fail = set(fail)
        self.calls: list[list[str]] = []

    def __call__(self, cmd):
        self.calls.append(cmd)
        if cmd[0] == "mountpoint":
            return 0 if self.mounted_answers.pop(0) else 1
        return 1 if cmd[0] in self.fail else 0

    def programs(self):
        return [c[0] if c[0] != "rclone" else f"rclone {c[1]}" for c in self.calls]


class TestRcloneMount(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.point = Path(self.tmpdir.name) / "GoogleDrive"
        self.sleeps = []

    def tearDown(self):
        self.tmpdir.cleanup()

    def _mount(self, runner, mode="edit"):
        return RcloneMount("google-drive:", self.point, mode=mode,
                           runner=runner, sleep=self.sleeps.append)

    def test_start_is_noop_when_already_mounted(self):
        runner = ScriptedRunner([True])
        self._mount(runner).start()
        self.assertEqual(runner.programs(), ["mountpoint"])

    def test_start_mounts_and_verifies(self):
        runner = ScriptedRunner([False, True], fail={"fusermount", "sudo"})
        self._mount(runner).start()
        self.assertEqual(runner.programs(),
                         ["mountpoint", "fusermount", "sudo", "rclone mount", "mountpoint"])
        self.assertTrue(self.point.is_dir())
        self.assertEqual(self.sleeps, [2])
        mount_cmd = runner.calls[3]
        self.assertIn("writes", mount_cmd)
        self.assertEqual(mount_cmd[-1], "--daemon")

    def test_read_mode_uses_full_cache_and_longer_wait(self):
        runner = ScriptedRunner([False, True])
        self._mount(runner, mode="read").start()
        mount_cmd = next(c for c in runner.calls if c[0] == "rclone")
        self.assertIn("full", mount_cmd)
        self.assertIn("--vfs-cache-max-size", mount_cmd)
        self.assertEqual(self.sleeps, [5])

    def test_start_raises_when_mount_never_appears(self):
        runner = ScriptedRunner([False, False])
        with self.assertRaises(MountError):
            self._mount(runner).start()

    def test_stop_falls_back_to_lazy_umount(self):
        runner = ScriptedRunner([True], fail={"fusermount"})
        self._mount(runner).stop()
        self.assertEqual(runner.programs(), ["mountpoint", "fusermount", "sudo"])

    def test_stop_when_not_mounted_does_nothing(self):
        runner = ScriptedRunner([False])
        self._mount(runner).stop()
        self.assertEqual(runner.programs(), ["mountpoint"])

    def test_context_manager_unmounts_on_error(self):
        runner = ScriptedRunner([True, True])
        with self.assertRaises(RuntimeError):
            with self._mount(runner):
                raise RuntimeError("boom")
        self.assertEqual(runner.programs(), ["mountpoint", "mountpoint", "fusermount"])

    def test_unknown_mode(self):
        with self.assertRaises(ValueError):
            RcloneMount("r:", self.point, mode="write")


if __name__ == "__main__":
    unittest.main()
