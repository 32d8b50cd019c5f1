"""
Read-only filesystem view of a snapshot of a content-addressed object graph.
The FUSE adapter lives in snapshot_fs.fuse_interface and needs libfuse.
"""

from .errors import (
    EndOfDirectory,
    HistoryUnavailable,
    NotExist,
    PermissionDenied,
    RevisionNotFound,
    SnapshotFSError,
    UnsupportedModeTranslation,
    UnsupportedObjectKind,
)
from .fs_operations import Intent, SnapshotFS, open_snapshot
from .handles import DirectoryHandle, FileHandle, Handle
from .metadata import FileInfo, translate_mode
from .snapshot import Snapshot, resolve_snapshot

__all__ = [
    'EndOfDirectory', 'HistoryUnavailable', 'NotExist', 'PermissionDenied',
    'RevisionNotFound', 'SnapshotFSError', 'UnsupportedModeTranslation',
    'UnsupportedObjectKind',
    'Intent', 'SnapshotFS', 'open_snapshot',
    'DirectoryHandle', 'FileHandle', 'Handle',
    'FileInfo', 'translate_mode',
    'Snapshot', 'resolve_snapshot',
]
