"""
Interfaces the snapshot filesystem consumes from an object graph backend.
"""
from typing import Generator, Optional, Protocol, Union
from dataclasses import dataclass

from .objects import BlobObject, CommitObject, TagObject, TreeObject

GraphObject = Union[TreeObject, BlobObject, CommitObject, TagObject]


@dataclass(frozen=True)
class HistoryQuery:
    """
    A history walk starting at `start`.
    At most one of `path` (exact file path) and `prefix` (directory path) is set;
    with neither, every commit reachable from `start` matches.
    """
    start: str
    path: Optional[str] = None
    prefix: Optional[str] = None

    def __post_init__(self):
        if self.path is not None and self.prefix is not None:
            raise ValueError("a history query filters by path or by prefix, not both")

    @classmethod
    def unfiltered(cls, start: str) -> 'HistoryQuery':
        return cls(start)

    @classmethod
    def for_file(cls, start: str, path: str) -> 'HistoryQuery':
        return cls(start, path=path)

    @classmethod
    def for_directory(cls, start: str, prefix: str) -> 'HistoryQuery':
        return cls(start, prefix=prefix)

    @property
    def filter_path(self) -> Optional[str]:
        """
        The tree path whose entry decides whether a commit matches.
        A prefix covers the directory itself and everything under `prefix/`;
        since a tree's hash changes whenever anything below it changes,
        comparing the directory entry is exact for both filter kinds.
        """
        return self.path if self.path is not None else self.prefix


class ObjectStore(Protocol):
    def resolve_revision(self, revision: str) -> str:
        """Resolve a branch, tag or (short) hash to a commit id."""
        ...

    def load_commit(self, commit_id: str) -> CommitObject:
        ...

    def load_object(self, hash_value: str) -> GraphObject:
        ...


class HistoryWalker(Protocol):
    def walk_history(self, query: HistoryQuery) -> Generator[CommitObject, None, None]:
        """
        Yield the commits matching `query`, most recent first.
        The sequence is finite and cannot be restarted.
        """
        ...
