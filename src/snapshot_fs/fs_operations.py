"""
Filesystem operations over a snapshot.
This module turns graph nodes into files and directories: it resolves paths,
derives metadata, and opens content only when the caller asks to read it.
"""
from typing import List, Union
from datetime import datetime
from enum import Enum

from object_graph.errors import StoreError
from object_graph.objects import ObjectKind
from object_graph.store import HistoryQuery, HistoryWalker, ObjectStore

from .errors import EndOfDirectory, HistoryUnavailable, NotExist, UnsupportedObjectKind
from .fs_tree import FSTree, NodeRef
from .handles import DirectoryHandle, FileHandle
from .metadata import FileInfo, translate_mode
from .snapshot import Snapshot, resolve_snapshot


class Intent(Enum):
    METADATA = "metadata"
    READ = "read"


class SnapshotFS:
    """
    Read-only filesystem view of one snapshot.
    Each lookup walks the tree from the root and the history from the snapshot
    commit; nothing is cached between calls.
    """
    def __init__(self, store: ObjectStore, history: HistoryWalker, snapshot: Snapshot):
        self.store = store
        self.history = history
        self.snapshot = snapshot
        self.tree = FSTree(store, snapshot.tree_id)

    @property
    def commit_id(self) -> str:
        return self.snapshot.commit_id

    def open(self, path: str) -> Union[FileHandle, DirectoryHandle]:
        """
        Open the file or directory at `path` for reading.
        The caller must close the returned handle.
        """
        return self._materialize(self.tree.lookup(path), Intent.READ)

    def stat(self, path: str) -> FileInfo:
        return self._materialize(self.tree.lookup(path), Intent.METADATA)

    def exists(self, path: str) -> bool:
        try:
            self.tree.lookup(path)
        except NotExist:
            return False
        return True

    def read_file(self, path: str) -> bytes:
        with self.open(path) as handle:
            return handle.read()

    def read_dir(self, path: str) -> List[FileInfo]:
        """List every entry of the directory at `path`, in stored order."""
        entries: List[FileInfo] = []
        with self.open(path) as handle:
            while True:
                try:
                    entries.extend(handle.read_entries(-1))
                except EndOfDirectory:
                    return entries

    def _stat_node(self, node: NodeRef) -> FileInfo:
        return self._materialize(node, Intent.METADATA)

    def _materialize(self, node: NodeRef, intent: Intent):
        # gitlink targets live in other repositories and are never in the store
        mode = translate_mode(node.mode)
        obj = self.store.load_object(node.hash)
        if obj.kind is ObjectKind.TREE:
            is_dir, size = True, 0
        elif obj.kind is ObjectKind.BLOB:
            is_dir, size = False, obj.size
        else:
            raise UnsupportedObjectKind(f"{node.path}: cannot represent a {obj.kind.value} object")
        info = FileInfo(node.name, size, mode, self._mod_time(node, is_dir), is_dir)
        if intent is Intent.METADATA:
            return info
        if is_dir:
            return DirectoryHandle(info, node, obj.entries, self._stat_node)
        return FileHandle(info, obj.open())

    def _mod_time(self, node: NodeRef, is_dir: bool) -> datetime:
        """Author time of the most recent commit that touched the node's path."""
        commit_id = self.snapshot.commit_id
        if node.is_root:
            query = HistoryQuery.unfiltered(commit_id)
        elif is_dir:
            query = HistoryQuery.for_directory(commit_id, node.path)
        else:
            query = HistoryQuery.for_file(commit_id, node.path)
        try:
            commits = self.history.walk_history(query)
            try:
                latest = next(commits, None)
            finally:
                commits.close()
        except StoreError as e:
            raise HistoryUnavailable(f"{node.path}: history walk from {commit_id} failed") from e
        if latest is None:
            raise HistoryUnavailable(f"{node.path}: no commit in the history of {commit_id} touches it")
        return latest.author.when


def open_snapshot(store: ObjectStore, history: HistoryWalker, revision: str) -> SnapshotFS:
    """Resolve `revision` and return a filesystem view of it."""
    return SnapshotFS(store, history, resolve_snapshot(store, revision))
