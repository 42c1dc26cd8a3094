"""Tracked-file persistence for ttrack."""

from .filestore import ENTRIES_MARKER, TRACKED_MARKER, FileStore, TrackedFileError, is_tracked_file
from .models import TrackedFile

__all__ = [
    "ENTRIES_MARKER",
    "TRACKED_MARKER",
    "FileStore",
    "TrackedFile",
    "TrackedFileError",
    "is_tracked_file",
]
