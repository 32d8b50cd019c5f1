"""
Object store and history walker over an on-disk git repository, backed by pygit2.
"""
from pathlib import Path
from typing import Generator, Optional, Tuple, Union
import io

import pygit2
from pygit2.enums import SortMode

from .errors import BadRevision, ObjectNotFound, StoreError
from .objects import BlobObject, CommitObject, Signature, TagObject, TreeEntry, TreeObject
from .store import GraphObject, HistoryQuery


def _signature(signature: pygit2.Signature) -> Signature:
    return Signature(signature.name, signature.email, signature.time, signature.offset)


def _entry_id(tree: pygit2.Tree, path: str) -> Optional[Tuple[int, str]]:
    try:
        entry = tree[path]
    except KeyError:
        return None
    return (entry.filemode, str(entry.id))


class GitObjectStore:
    repo: pygit2.Repository

    def __init__(self, repo: pygit2.Repository):
        self.repo = repo

    @classmethod
    def open(cls, path: Union[str, Path]) -> 'GitObjectStore':
        try:
            return cls(pygit2.Repository(str(path)))
        except pygit2.GitError as e:
            raise StoreError(f"cannot open repository at {path}: {e}") from e

    def resolve_revision(self, revision: str) -> str:
        try:
            commit = self.repo.revparse_single(revision).peel(pygit2.Commit)
        except KeyError as e:
            raise ObjectNotFound(f"revision {revision!r} not found") from e
        except (ValueError, pygit2.GitError) as e:
            raise BadRevision(f"cannot resolve {revision!r}: {e}") from e
        return str(commit.id)

    def load_object(self, hash_value: str) -> GraphObject:
        try:
            obj = self.repo[hash_value]
        except (KeyError, ValueError) as e:
            raise ObjectNotFound(f"object {hash_value} not found") from e
        return self._convert(obj)

    def load_commit(self, commit_id: str) -> CommitObject:
        obj = self.load_object(commit_id)
        if not isinstance(obj, CommitObject):
            raise ObjectNotFound(f"{commit_id} is not a commit")
        return obj

    def _convert(self, obj: pygit2.Object) -> GraphObject:
        hash_value = str(obj.id)
        if isinstance(obj, pygit2.Blob):
            oid = obj.id
            return BlobObject(hash_value, obj.size, lambda: self._blob_stream(oid))
        if isinstance(obj, pygit2.Tree):
            entries = tuple(TreeEntry(entry.name, entry.filemode, str(entry.id)) for entry in obj)
            return TreeObject(hash_value, entries)
        if isinstance(obj, pygit2.Commit):
            return CommitObject(
                hash_value,
                str(obj.tree_id),
                tuple(str(parent) for parent in obj.parent_ids),
                _signature(obj.author),
                _signature(obj.committer),
                obj.message,
            )
        if isinstance(obj, pygit2.Tag):
            return TagObject(hash_value, str(obj.target), obj.name)
        raise StoreError(f"object {hash_value} has an unknown type {type(obj).__name__}")

    def _blob_stream(self, oid: pygit2.Oid) -> io.BytesIO:
        # re-read on open; a BlobObject holds only the id
        return io.BytesIO(self.repo[oid].data)

    def walk_history(self, query: HistoryQuery) -> Generator[CommitObject, None, None]:
        """
        Walk commits reachable from the query start in commit-time order,
        yielding those whose entry at the filter path differs from their first parent.
        """
        path = query.filter_path
        try:
            walker = self.repo.walk(pygit2.Oid(hex=query.start), SortMode.TIME)
            for commit in walker:
                if self._touches(commit, path):
                    yield self._convert(commit)
        except (KeyError, ValueError) as e:
            raise ObjectNotFound(f"commit {query.start} not found") from e
        except pygit2.GitError as e:
            raise StoreError(f"history walk from {query.start} failed: {e}") from e

    def _touches(self, commit: pygit2.Commit, path: Optional[str]) -> bool:
        if path is None:
            return True
        current = _entry_id(commit.tree, path)
        if not commit.parents:
            return current is not None
        return current != _entry_id(commit.parents[0].tree, path)
