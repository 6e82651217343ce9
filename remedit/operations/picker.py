"""
Numbered file picker for a mounted remote folder
"""
import sys
from pathlib import Path
from typing import Callable
from ..errors import PickerError


def list_files(directory: Path) -> list[Path]:
    """Regular files directly inside *directory*, sorted by name."""
    return sorted((p for p in directory.iterdir() if p.is_file()), key=lambda p: p.name)


def select_file(directory: Path, prompt: str = "Enter the number of the file to open",
                input_fn: Callable[[str], str] = input, out=None) -> Path:
    """
    Show the files in *directory* as a numbered menu on *out* (stderr by
    default) and keep asking until a valid number is entered.
    """
    out = out or sys.stderr
    if not directory.is_dir():
        raise PickerError(f"Directory {directory} does not exist.")

    files = list_files(directory)
    if not files:
        raise PickerError(f"No files found in {directory}")

    print(f"Files in {directory.name} folder:", file=out)
    print(file=out)
    for i, f in enumerate(files, start=1):
        print(f"{i:2d}) {f.name}", file=out)
    print(file=out)

    n = len(files)
    while True:
        try:
            choice = input_fn(f"{prompt} (1-{n}): ").strip()
        except EOFError:
            raise PickerError("No file selected.")

        if choice.isdigit() and 1 <= int(choice) <= n:
            selected = files[int(choice) - 1]
            break
        print(f"Invalid choice. Please enter a number between 1 and {n}.", file=out)

    print(f"Selected: {selected.name}", file=out)
    return selected
