"""
Open handles on snapshot entries.
A handle carries the same FileInfo a stat call returns, plus either a content
stream (files) or a cursor over the remaining children (directories).
"""
from typing import BinaryIO, Callable, Deque, List, Sequence
from collections import deque

from object_graph.objects import TreeEntry

from .errors import EndOfDirectory, PermissionDenied
from .fs_tree import NodeRef
from .metadata import FileInfo


class DirectoryCursor:
    """Remaining, not yet returned children of a directory, in stored order."""
    def __init__(self, entries: Sequence[TreeEntry]):
        self._remaining: Deque[TreeEntry] = deque(entries)

    def __len__(self) -> int:
        return len(self._remaining)

    def peek(self, count: int) -> List[TreeEntry]:
        if count < 0 or count >= len(self._remaining):
            return list(self._remaining)
        return [self._remaining[i] for i in range(count)]

    def advance(self, count: int) -> None:
        for _ in range(count):
            self._remaining.popleft()

    def drain(self) -> None:
        self._remaining.clear()


class Handle:
    """
    Common behaviour of open entries. Operations that do not apply to the
    entry's kind raise PermissionDenied.
    """
    def __init__(self, info: FileInfo):
        self._info = info
        self.closed = False

    @property
    def name(self) -> str:
        return self._info.name

    def stat(self) -> FileInfo:
        return self._info

    def read(self, size: int = -1) -> bytes:
        raise PermissionDenied(f"{self._info.name}: is a directory")

    def readinto(self, buffer) -> int:
        raise PermissionDenied(f"{self._info.name}: is a directory")

    def seek(self, offset: int, whence: int = 0) -> int:
        raise PermissionDenied(f"{self._info.name}: is a directory")

    def read_entries(self, count: int = -1) -> List[FileInfo]:
        raise PermissionDenied(f"{self._info.name}: not a directory")

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class FileHandle(Handle):
    def __init__(self, info: FileInfo, stream: BinaryIO):
        super().__init__(info)
        self._stream = stream

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def readinto(self, buffer) -> int:
        return self._stream.readinto(buffer)

    def seek(self, offset: int, whence: int = 0) -> int:
        return self._stream.seek(offset, whence)

    def close(self) -> None:
        self._stream.close()
        super().close()


class DirectoryHandle(Handle):
    def __init__(self, info: FileInfo, node: NodeRef, entries: Sequence[TreeEntry],
                 stat_node: Callable[[NodeRef], FileInfo]):
        super().__init__(info)
        self._node = node
        self._cursor = DirectoryCursor(entries)
        self._stat_node = stat_node

    def read_entries(self, count: int = -1) -> List[FileInfo]:
        """
        Return up to `count` further children (all remaining when negative).

        Each child is materialized with a metadata-only lookup. If any child
        fails, nothing is returned and the cursor is left where it was.

        Raises:
            EndOfDirectory: no children remain and `count` is not zero
        """
        if count == 0:
            return []
        if not self._cursor:
            raise EndOfDirectory(f"{self._node.path}: no more entries")
        batch = self._cursor.peek(count)
        infos = [self._stat_node(self._node.child(entry)) for entry in batch]
        self._cursor.advance(len(batch))
        return infos

    def close(self) -> None:
        self._cursor.drain()
        super().close()
