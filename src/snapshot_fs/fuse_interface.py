"""
Read-only FUSE interface for a snapshot.
Mutating operations fall through to fusepy's defaults, which fail with EROFS.
"""
import errno
import logging
import os
import threading
from typing import Any, Dict, List, Tuple, Union

from fuse import FUSE, FuseOSError, LoggingMixIn, Operations

from object_graph.errors import StoreError

from .errors import NotExist, PermissionDenied, SnapshotFSError
from .fs_operations import SnapshotFS
from .handles import Handle

logger = logging.getLogger(__name__)


def _fuse_error(path: str, error: Union[SnapshotFSError, StoreError], denied: int) -> FuseOSError:
    """Map a snapshot or store error to an errno; `denied` is used for wrong-kind operations."""
    if isinstance(error, NotExist):
        return FuseOSError(errno.ENOENT)
    if isinstance(error, PermissionDenied):
        return FuseOSError(denied)
    logger.error(f"{path}: {error}")
    return FuseOSError(errno.EIO)


class FuseInterface(LoggingMixIn, Operations):
    """
    FUSE interface that translates FUSE operations to snapshot filesystem operations.
    """
    def __init__(self, fs: SnapshotFS):
        self.fs = fs
        self.lock = threading.Lock()
        # fh -> (handle, lock serialising its seek and read)
        self.handles: Dict[int, Tuple[Handle, threading.Lock]] = {}
        self.next_fh = 1

    def getattr(self, path: str, fh: Any = None) -> Dict[str, Any]:
        """Get file attributes."""
        try:
            return self.fs.stat(path).to_stat()
        except (SnapshotFSError, StoreError) as e:
            raise _fuse_error(path, e, errno.EACCES) from e

    def readdir(self, path: str, fh: Any) -> List[str]:
        """Read directory entries."""
        try:
            entries = self.fs.read_dir(path)
        except (SnapshotFSError, StoreError) as e:
            raise _fuse_error(path, e, errno.ENOTDIR) from e
        return ['.', '..'] + [entry.name for entry in entries]

    def open(self, path: str, flags: int) -> int:
        """Open a file for reading."""
        if flags & (os.O_WRONLY | os.O_RDWR):
            raise FuseOSError(errno.EROFS)
        try:
            handle = self.fs.open(path)
        except (SnapshotFSError, StoreError) as e:
            raise _fuse_error(path, e, errno.EACCES) from e
        with self.lock:
            fh = self.next_fh
            self.next_fh += 1
            self.handles[fh] = (handle, threading.Lock())
        return fh

    def read(self, path: str, size: int, offset: int, fh: int) -> bytes:
        """Read from an open file."""
        with self.lock:
            entry = self.handles.get(fh)
        if entry is None:
            raise FuseOSError(errno.EBADF)
        handle, handle_lock = entry
        try:
            with handle_lock:
                handle.seek(offset)
                return handle.read(size)
        except (SnapshotFSError, StoreError) as e:
            raise _fuse_error(path, e, errno.EISDIR) from e

    def release(self, path: str, fh: int) -> None:
        """Release an open file."""
        with self.lock:
            entry = self.handles.pop(fh, None)
        if entry is not None:
            handle, handle_lock = entry
            with handle_lock:
                handle.close()


def mount(fs: SnapshotFS, mountpoint: str, **kwargs: Any) -> None:
    """
    Mount a snapshot read-only at the specified mountpoint.

    Args:
        fs: The snapshot filesystem to expose
        mountpoint: Directory to mount the filesystem at
        **kwargs: Additional arguments to pass to FUSE
    """
    logger.info(f"Mounting {fs.commit_id} at {mountpoint}")
    FUSE(
        FuseInterface(fs),
        mountpoint,
        foreground=True,
        ro=True,
        **kwargs
    )
