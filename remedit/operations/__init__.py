"""Operations (picker, editor, sessions)"""
from .picker import select_file, list_files
from .editor import open_in_editor, open_read_only, editor_command
from .session import edit_session, read_session, build_store, build_destination, build_mount

__all__ = [
    "select_file", "list_files",
    "open_in_editor", "open_read_only", "editor_command",
    "edit_session", "read_session", "build_store", "build_destination", "build_mount",
]
