"""
Remote object store interface used by the reconcile core
"""
from pathlib import Path, PurePosixPath
from typing import Optional


class RemoteStore:
    """
    Opaque remote backend. Paths are POSIX-style and relative to the
    store's root (e.g. ``gods-writing/draft.txt``).

    Query methods return None when the answer is unknown; they must not
    raise for a missing object or a failed query. `exists` is three-valued:
    True, False only when the backend says the object is not there, and
    None when the lookup itself failed.
    """

    name = "remote"

    def reported_size(self, path: str) -> Optional[int]:
        raise NotImplementedError

    def modification_time(self, path: str) -> Optional[float]:
        raise NotImplementedError

    def exists(self, path: str) -> Optional[bool]:
        raise NotImplementedError

    def write_object(self, local_path: Path, remote_dir: str) -> bool:
        """Upload local_path into remote_dir under its own name. True on success."""
        raise NotImplementedError

    def list_objects(self, remote_dir: str) -> list[str]:
        raise NotImplementedError

    def describe(self, path: str) -> str:
        return f"{self.name}:{path}"

    def close(self):
        pass


def join_remote(remote_dir: str, name: str) -> str:
    """Join a remote directory and a file name with a single slash."""
    if not remote_dir:
        return name
    return str(PurePosixPath(remote_dir) / name)
