"""
Path resolution against the tree of a snapshot.
"""
from typing import List
from dataclasses import dataclass

from object_graph.objects import FileMode, ObjectKind, TreeEntry
from object_graph.store import ObjectStore

from .errors import NotExist

ROOT_PATH = "."


@dataclass(frozen=True)
class NodeRef:
    """A graph node reached at `path`, with the mode its parent recorded for it."""
    hash: str
    mode: int
    path: str

    @property
    def is_root(self) -> bool:
        return self.path == ROOT_PATH

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    def child(self, entry: TreeEntry) -> 'NodeRef':
        path = entry.name if self.is_root else f"{self.path}/{entry.name}"
        return NodeRef(entry.hash, entry.mode, path)


def split_path(path: str) -> List[str]:
    """
    Split a slash separated path into segments.
    "", "." and "/" denote the root; ".." never names an entry.
    """
    parts = [part for part in path.split("/") if part not in ("", ".")]
    if ".." in parts:
        raise NotExist(f"{path}: invalid path")
    return parts


class FSTree:
    """
    Resolves logical paths to graph nodes by walking trees from the snapshot root.
    """
    def __init__(self, store: ObjectStore, root_tree: str):
        self.store = store
        self.root = NodeRef(root_tree, int(FileMode.DIR), ROOT_PATH)

    def lookup(self, path: str) -> NodeRef:
        """
        Look up the node at `path`.

        Args:
            path: Slash separated path relative to the snapshot root

        Returns:
            The node reference

        Raises:
            NotExist: a segment is missing or a non-directory is traversed
        """
        current = self.root
        for part in split_path(path):
            tree = self.store.load_object(current.hash)
            if tree.kind is not ObjectKind.TREE:
                raise NotExist(f"{path}: {current.path} is not a directory")
            entry = tree.get(part)
            if entry is None:
                raise NotExist(f"{path}: no such file or directory")
            current = current.child(entry)
        return current
