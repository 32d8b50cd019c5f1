"""
Errors raised by the snapshot filesystem.
Store failures (object_graph.errors) pass through unchanged.
"""


class SnapshotFSError(Exception):
    """Base class for snapshot filesystem errors."""


class RevisionNotFound(SnapshotFSError, LookupError):
    """The revision string does not resolve to a commit."""


class NotExist(SnapshotFSError, FileNotFoundError):
    """A path segment is missing from the snapshot tree."""


class UnsupportedObjectKind(SnapshotFSError):
    """The node is neither a tree nor a blob."""


class UnsupportedModeTranslation(SnapshotFSError):
    """The stored entry mode has no filesystem equivalent."""


class HistoryUnavailable(SnapshotFSError):
    """The history walk for a path errored or produced no commit."""


class PermissionDenied(SnapshotFSError, PermissionError):
    """The operation does not apply to this kind of entry."""


class EndOfDirectory(SnapshotFSError, EOFError):
    """The directory cursor has no entries left."""
