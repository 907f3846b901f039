"""Configuration constants for notebox."""

import os
from pathlib import Path

# Name of the persisted library document inside the data directory.
LIBRARY_FILENAME: str = "library.json"

# Subdirectory holding image and anchor preview blobs, one file per File.id.
FILES_DIRNAME: str = "files"

# Seconds a "Saved" status stays visible before it is cleared.
STATUS_CLEAR_DELAY: float = 5.0

# Environment variable overriding the data directory search.
DATA_DIR_ENV: str = "NOTEBOX_DIR"

# Directory with data. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/notebox").expanduser(),
    Path("~/.notebox").expanduser(),
    Path("~/.config/notebox").expanduser(),
]


def resolve_data_directory() -> Path:
    """Return the data directory to use.

    ``NOTEBOX_DIR`` wins if set. Otherwise the first existing entry of
    DATA_DIRECTORIES, falling back to the first entry (created on first save).
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]
