"""
Content-addressed object graph: object types, store interfaces and backends.
The git backend lives in object_graph.git_store and needs pygit2.
"""

from .errors import BadRevision, CorruptObject, ObjectNotFound, StoreError
from .objects import (
    BlobObject,
    CommitObject,
    FileMode,
    ObjectKind,
    Signature,
    TagObject,
    TreeEntry,
    TreeObject,
)
from .store import GraphObject, HistoryQuery, HistoryWalker, ObjectStore
from .memory_store import MemoryObjectStore

__all__ = [
    'BadRevision', 'CorruptObject', 'ObjectNotFound', 'StoreError',
    'BlobObject', 'CommitObject', 'FileMode', 'ObjectKind', 'Signature',
    'TagObject', 'TreeEntry', 'TreeObject',
    'GraphObject', 'HistoryQuery', 'HistoryWalker', 'ObjectStore',
    'MemoryObjectStore',
]
