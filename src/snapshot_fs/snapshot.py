"""
Resolution of a revision string into an immutable snapshot.
"""
from dataclasses import dataclass

from object_graph.errors import StoreError
from object_graph.objects import ObjectKind
from object_graph.store import ObjectStore

from .errors import RevisionNotFound, UnsupportedObjectKind


@dataclass(frozen=True)
class Snapshot:
    """The object graph as of one commit."""
    commit_id: str
    tree_id: str


def resolve_snapshot(store: ObjectStore, revision: str) -> Snapshot:
    """
    Resolve `revision` to a snapshot. Reads the commit and its root tree,
    never any file content.

    Args:
        store: The object graph store
        revision: Branch, tag, or full or short commit hash

    Returns:
        The snapshot

    Raises:
        RevisionNotFound: the store cannot resolve the revision
        ObjectNotFound: the resolved commit cannot be loaded
    """
    try:
        commit_id = store.resolve_revision(revision)
    except StoreError as e:
        raise RevisionNotFound(f"revision {revision!r} not found") from e
    commit = store.load_commit(commit_id)
    root = store.load_object(commit.tree)
    if root.kind is not ObjectKind.TREE:
        raise UnsupportedObjectKind(f"commit {commit_id} roots a {root.kind.value}, not a tree")
    return Snapshot(commit_id, commit.tree)
