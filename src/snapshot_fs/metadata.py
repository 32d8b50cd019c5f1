"""
File metadata shared by listings, stat calls and open handles.
"""
from typing import Any, Dict
from dataclasses import dataclass
from datetime import datetime
import stat

from object_graph.objects import FileMode

from .errors import UnsupportedModeTranslation

_MODE_TABLE: Dict[int, int] = {
    FileMode.DIR: stat.S_IFDIR | 0o777,
    FileMode.REGULAR: stat.S_IFREG | 0o644,
    FileMode.DEPRECATED: stat.S_IFREG | 0o644,
    FileMode.EXECUTABLE: stat.S_IFREG | 0o755,
    FileMode.SYMLINK: stat.S_IFLNK | 0o777,
}


def translate_mode(mode: int) -> int:
    """
    Translate a stored entry mode into st_mode bits.

    Args:
        mode: Mode recorded in the parent tree

    Returns:
        The equivalent st_mode value
    """
    try:
        return _MODE_TABLE[mode]
    except KeyError:
        raise UnsupportedModeTranslation(f"entry mode {mode:o} has no filesystem equivalent") from None


@dataclass(frozen=True)
class FileInfo:
    """Stat-level view of a file or directory in a snapshot."""
    name: str
    size: int
    mode: int
    mod_time: datetime
    is_dir: bool

    def to_stat(self) -> Dict[str, Any]:
        mtime = self.mod_time.timestamp()
        return {
            'st_mode': self.mode,
            'st_nlink': 2 if self.is_dir else 1,
            'st_uid': 0,
            'st_gid': 0,
            'st_size': self.size,
            'st_atime': mtime,
            'st_mtime': mtime,
            'st_ctime': mtime,
        }
