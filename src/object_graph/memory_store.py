"""
In-memory content-addressed object store.
Objects are held in their git encoding and addressed by the SHA-1 of that encoding,
so identical content is stored once and ids agree with real git repositories.
"""
from typing import Dict, Generator, List, Mapping, Optional, Set, Tuple, Union
import base64
import io
import re

from serde import serde
from serde.json import from_json, to_json
from sortedcontainers import SortedSet

from .errors import BadRevision, CorruptObject, ObjectNotFound
from .objects import (
    BlobObject,
    CommitObject,
    FileMode,
    ObjectKind,
    Signature,
    TreeEntry,
    TreeObject,
    decode_commit,
    decode_tree,
    encode_commit,
    encode_tree,
    hash_object,
)
from .store import GraphObject, HistoryQuery

DEFAULT_BRANCH = "refs/heads/main"

_HEX_RE = re.compile(r"^[0-9a-f]{4,40}$")
_SUFFIX_RE = re.compile(r"[~^]\d*")

# File content for commit_files: raw bytes (regular file) or (bytes, mode)
FileContent = Union[bytes, Tuple[bytes, int]]


@serde
class StoredObject:
    kind: str
    data: str  # base64 of the payload


@serde
class StoreDump:
    head: str
    refs: dict[str, str]
    objects: dict[str, StoredObject]


def _split_revision(revision: str) -> Tuple[str, List[Tuple[str, int]]]:
    """Split "main~2^1" into ("main", [("~", 2), ("^", 1)])."""
    match = re.search(r"[~^]", revision)
    if match is None:
        return revision, []
    base, rest = revision[:match.start()], revision[match.start():]
    tokens = _SUFFIX_RE.findall(rest)
    if not base or "".join(tokens) != rest:
        raise BadRevision(f"malformed revision {revision!r}")
    return base, [(token[0], int(token[1:]) if len(token) > 1 else 1) for token in tokens]


def _git_sort_key(entry: TreeEntry) -> bytes:
    # git orders directories as if their name ended with "/"
    return (entry.name + "/" if entry.is_dir else entry.name).encode()


class MemoryObjectStore:
    """
    Object store and history walker over a dictionary of encoded objects.
    Objects are immutable once written; only refs and HEAD move.
    """
    objects: Dict[str, Tuple[ObjectKind, bytes]]
    refs: Dict[str, str]
    head: str

    def __init__(self):
        self.objects = {}
        self.refs = {}
        self.head = DEFAULT_BRANCH

    def __contains__(self, hash_value: str) -> bool:
        return hash_value in self.objects

    def __len__(self) -> int:
        return len(self.objects)

    # Writing

    def put(self, kind: ObjectKind, payload: bytes) -> str:
        hash_value = hash_object(kind, payload)
        self.objects[hash_value] = (kind, payload)
        return hash_value

    def put_blob(self, data: bytes) -> str:
        return self.put(ObjectKind.BLOB, data)

    def put_tree(self, entries: List[TreeEntry]) -> str:
        """
        Store a tree with its entries in the given order.

        Args:
            entries: Child entries; names must be unique and contain no "/"

        Returns:
            The tree's hash
        """
        seen: Set[str] = set()
        for entry in entries:
            if not entry.name or "/" in entry.name or entry.name in (".", ".."):
                raise ValueError(f"invalid tree entry name {entry.name!r}")
            if entry.name in seen:
                raise ValueError(f"duplicate tree entry {entry.name!r}")
            seen.add(entry.name)
        return self.put(ObjectKind.TREE, encode_tree(entries))

    def put_commit(self, tree: str, parents: Tuple[str, ...], author: Signature,
                   committer: Optional[Signature] = None, message: str = "") -> str:
        payload = encode_commit(tree, tuple(parents), author, committer or author, message)
        return self.put(ObjectKind.COMMIT, payload)

    def set_ref(self, name: str, commit_id: str) -> None:
        if not name.startswith("refs/"):
            raise ValueError(f"ref names must start with refs/: {name!r}")
        self.refs[name] = commit_id

    def set_head(self, target: str) -> None:
        """Point HEAD at a ref name or detach it at a commit id."""
        self.head = target

    def commit_files(self, files: Mapping[str, Optional[FileContent]], author: Signature,
                     message: str = "", parents: Optional[Tuple[str, ...]] = None,
                     ref: Optional[str] = None, committer: Optional[Signature] = None) -> str:
        """
        Commit a set of file changes on top of a parent commit.

        Args:
            files: Path -> content; None deletes the path
            author: Author signature (also the committer unless given)
            message: Commit message
            parents: Parent commits; defaults to the current tip of `ref`
            ref: Ref to advance; defaults to the ref HEAD points to

        Returns:
            The new commit's hash
        """
        if ref is None and self.head.startswith("refs/"):
            ref = self.head
        if parents is None:
            tip = self.refs.get(ref) if ref else self.head
            parents = (tip,) if tip else ()
        flat = self._flatten(self.load_commit(parents[0]).tree) if parents else {}
        for path, content in files.items():
            path = path.strip("/")
            if content is None:
                flat.pop(path, None)
                continue
            if isinstance(content, tuple):
                data, mode = content
            else:
                data, mode = content, FileMode.REGULAR
            flat[path] = (int(mode), self.put_blob(data))
        tree = self._build_tree(flat)
        commit_id = self.put_commit(tree, tuple(parents), author, committer, message)
        if ref:
            self.set_ref(ref, commit_id)
        else:
            self.head = commit_id
        return commit_id

    def _flatten(self, tree_id: str, prefix: str = "") -> Dict[str, Tuple[int, str]]:
        flat = {}
        for entry in self._load_tree(tree_id).entries:
            path = f"{prefix}{entry.name}"
            if entry.is_dir:
                flat.update(self._flatten(entry.hash, path + "/"))
            else:
                flat[path] = (entry.mode, entry.hash)
        return flat

    def _build_tree(self, flat: Dict[str, Tuple[int, str]]) -> str:
        nested: Dict = {}
        for path, leaf in flat.items():
            parts = path.split("/")
            node = nested
            for part in parts[:-1]:
                node = node.setdefault(part, {})
                if not isinstance(node, dict):
                    raise ValueError(f"{path} conflicts with an existing file")
            if isinstance(node.get(parts[-1]), dict):
                raise ValueError(f"{path} conflicts with an existing directory")
            node[parts[-1]] = leaf
        return self._write_tree(nested)

    def _write_tree(self, node: Dict) -> str:
        entries = []
        for name, value in node.items():
            if isinstance(value, dict):
                entries.append(TreeEntry(name, int(FileMode.DIR), self._write_tree(value)))
            else:
                mode, hash_value = value
                entries.append(TreeEntry(name, mode, hash_value))
        entries.sort(key=_git_sort_key)
        return self.put_tree(entries)

    # Reading

    def load_object(self, hash_value: str) -> GraphObject:
        try:
            kind, payload = self.objects[hash_value]
        except KeyError:
            raise ObjectNotFound(f"object {hash_value} not found") from None
        if kind is ObjectKind.BLOB:
            return BlobObject(hash_value, len(payload), lambda: io.BytesIO(payload))
        if kind is ObjectKind.TREE:
            return decode_tree(hash_value, payload)
        if kind is ObjectKind.COMMIT:
            return decode_commit(hash_value, payload)
        raise CorruptObject(f"object {hash_value} has unsupported kind {kind.value}")

    def load_commit(self, commit_id: str) -> CommitObject:
        obj = self.load_object(commit_id)
        if obj.kind is not ObjectKind.COMMIT:
            raise ObjectNotFound(f"{commit_id} is not a commit")
        return obj

    def _load_tree(self, tree_id: str) -> TreeObject:
        obj = self.load_object(tree_id)
        if obj.kind is not ObjectKind.TREE:
            raise CorruptObject(f"{tree_id} is not a tree")
        return obj

    def resolve_revision(self, revision: str) -> str:
        """
        Resolve HEAD, a ref, a branch or tag name, or a full or short hash,
        optionally followed by ~N / ^N ancestry suffixes.
        """
        base, suffixes = _split_revision(revision)
        commit_id = self._resolve_base(base)
        for op, count in suffixes:
            if op == "~":
                for _ in range(count):
                    commit_id = self._parent(commit_id, 1, revision)
            elif count:
                commit_id = self._parent(commit_id, count, revision)
        return commit_id

    def _resolve_base(self, name: str) -> str:
        if name == "HEAD":
            target = self.head
            if target.startswith("refs/"):
                if target not in self.refs:
                    raise ObjectNotFound(f"HEAD points to unborn branch {target}")
                target = self.refs[target]
            return self._peel(target, name)
        for candidate in (name, f"refs/heads/{name}", f"refs/tags/{name}"):
            if candidate in self.refs:
                return self._peel(self.refs[candidate], name)
        if _HEX_RE.match(name):
            matches = [h for h in self.objects if h.startswith(name)]
            if len(matches) > 1:
                raise BadRevision(f"short hash {name} is ambiguous")
            if matches:
                return self._peel(matches[0], name)
        raise ObjectNotFound(f"revision {name!r} not found")

    def _peel(self, hash_value: str, name: str) -> str:
        if self.load_object(hash_value).kind is not ObjectKind.COMMIT:
            raise BadRevision(f"{name} does not name a commit")
        return hash_value

    def _parent(self, commit_id: str, number: int, revision: str) -> str:
        parents = self.load_commit(commit_id).parents
        if number > len(parents):
            raise ObjectNotFound(f"{revision}: commit {commit_id} has no parent {number}")
        return parents[number - 1]

    # History

    def walk_history(self, query: HistoryQuery) -> Generator[CommitObject, None, None]:
        """
        Walk commits reachable from the query start, newest committer time first,
        yielding the ones whose entry at the filter path differs from their first parent.
        """
        start = self.load_commit(query.start)
        pending = {start.hash: start}
        seen = {start.hash}
        queue = SortedSet([(-start.committer.time, start.hash)])
        while queue:
            _, commit_id = queue.pop(0)
            commit = pending.pop(commit_id)
            for parent_id in commit.parents:
                if parent_id in seen:
                    continue
                seen.add(parent_id)
                parent = self.load_commit(parent_id)
                pending[parent_id] = parent
                queue.add((-parent.committer.time, parent_id))
            if self._touches(commit, query.filter_path):
                yield commit

    def _touches(self, commit: CommitObject, path: Optional[str]) -> bool:
        if path is None:
            return True
        current = self._entry_at(commit.tree, path)
        if not commit.parents:
            return current is not None
        previous = self._entry_at(self.load_commit(commit.parents[0]).tree, path)
        return current != previous

    def _entry_at(self, tree_id: str, path: str) -> Optional[Tuple[int, str]]:
        entry = None
        for part in path.split("/"):
            if entry is not None:
                if not entry.is_dir:
                    return None
                tree_id = entry.hash
            entry = self._load_tree(tree_id).get(part)
            if entry is None:
                return None
        return (entry.mode, entry.hash)

    # Persistence

    def dumps(self) -> str:
        objects = {
            hash_value: StoredObject(kind.value, base64.b64encode(payload).decode())
            for hash_value, (kind, payload) in self.objects.items()
        }
        return to_json(StoreDump(self.head, dict(self.refs), objects))

    @classmethod
    def loads(cls, text: str) -> 'MemoryObjectStore':
        dump = from_json(StoreDump, text)
        store = cls()
        store.head = dump.head
        store.refs = dict(dump.refs)
        for hash_value, stored in dump.objects.items():
            kind = ObjectKind(stored.kind)
            payload = base64.b64decode(stored.data)
            if hash_object(kind, payload) != hash_value:
                raise CorruptObject(f"object {hash_value} does not match its content")
            store.objects[hash_value] = (kind, payload)
        return store

    def save(self, path: str) -> None:
        with open(path, "w") as f:
            f.write(self.dumps())
            f.flush()

    @classmethod
    def load(cls, path: str) -> 'MemoryObjectStore':
        with open(path, "r") as f:
            return cls.loads(f.read())
