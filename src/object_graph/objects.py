"""
Object types of the content-addressed graph and their git encodings.
Every object is identified by the SHA-1 of its header and payload.
"""
from typing import BinaryIO, Callable, ClassVar, List, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum, IntEnum
import hashlib
import re

from .errors import CorruptObject


class ObjectKind(Enum):
    TREE = "tree"
    BLOB = "blob"
    COMMIT = "commit"
    TAG = "tag"


class FileMode(IntEnum):
    """Entry modes as recorded by a parent tree."""
    DIR = 0o040000
    REGULAR = 0o100644
    DEPRECATED = 0o100664  # group-writable regular file written by old git versions
    EXECUTABLE = 0o100755
    SYMLINK = 0o120000
    SUBMODULE = 0o160000


_SIGNATURE_RE = re.compile(r"^(.*) <(.*)> (-?\d+) ([+-])(\d{2})(\d{2})$")


@dataclass(frozen=True)
class Signature:
    """Author or committer of a commit. `offset` is the UTC offset in minutes."""
    name: str
    email: str
    time: int
    offset: int = 0

    @property
    def when(self) -> datetime:
        tz = timezone(timedelta(minutes=self.offset))
        return datetime.fromtimestamp(self.time, tz)

    def format(self) -> str:
        sign = "-" if self.offset < 0 else "+"
        hours, minutes = divmod(abs(self.offset), 60)
        return f"{self.name} <{self.email}> {self.time} {sign}{hours:02d}{minutes:02d}"

    @classmethod
    def parse(cls, text: str) -> 'Signature':
        match = _SIGNATURE_RE.match(text)
        if match is None:
            raise CorruptObject(f"malformed signature: {text!r}")
        name, email, time, sign, hours, minutes = match.groups()
        offset = int(hours) * 60 + int(minutes)
        return cls(name, email, int(time), -offset if sign == "-" else offset)


@dataclass(frozen=True)
class TreeEntry:
    name: str
    mode: int
    hash: str

    @property
    def is_dir(self) -> bool:
        return self.mode == FileMode.DIR


@dataclass(frozen=True)
class TreeObject:
    hash: str
    entries: Tuple[TreeEntry, ...]
    kind: ClassVar[ObjectKind] = ObjectKind.TREE

    def get(self, name: str) -> Optional[TreeEntry]:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None


@dataclass(frozen=True)
class BlobObject:
    """
    A blob carries its declared size and a factory for its content stream.
    The content is only touched when `open` is called.
    """
    hash: str
    size: int
    opener: Callable[[], BinaryIO] = field(repr=False, compare=False)
    kind: ClassVar[ObjectKind] = ObjectKind.BLOB

    def open(self) -> BinaryIO:
        return self.opener()


@dataclass(frozen=True)
class CommitObject:
    hash: str
    tree: str
    parents: Tuple[str, ...]
    author: Signature
    committer: Signature
    message: str = ""
    kind: ClassVar[ObjectKind] = ObjectKind.COMMIT


@dataclass(frozen=True)
class TagObject:
    hash: str
    target: str
    name: str
    kind: ClassVar[ObjectKind] = ObjectKind.TAG


def hash_object(kind: ObjectKind, payload: bytes) -> str:
    """Compute the identifier of an object: sha1("<kind> <len>\\0" + payload)."""
    header = f"{kind.value} {len(payload)}".encode() + b"\0"
    return hashlib.sha1(header + payload).hexdigest()


def encode_tree(entries: List[TreeEntry]) -> bytes:
    chunks = []
    for entry in entries:
        chunks.append(f"{entry.mode:o} {entry.name}".encode() + b"\0" + bytes.fromhex(entry.hash))
    return b"".join(chunks)


def decode_tree(hash_value: str, payload: bytes) -> TreeObject:
    entries = []
    pos = 0
    while pos < len(payload):
        space = payload.find(b" ", pos)
        nul = payload.find(b"\0", space + 1)
        if space < 0 or nul < 0 or nul + 21 > len(payload):
            raise CorruptObject(f"truncated tree {hash_value}")
        mode = int(payload[pos:space], 8)
        name = payload[space + 1:nul].decode()
        child = payload[nul + 1:nul + 21].hex()
        entries.append(TreeEntry(name, mode, child))
        pos = nul + 21
    return TreeObject(hash_value, tuple(entries))


def encode_commit(tree: str, parents: Tuple[str, ...], author: Signature,
                  committer: Signature, message: str) -> bytes:
    lines = [f"tree {tree}"]
    lines += [f"parent {parent}" for parent in parents]
    lines.append(f"author {author.format()}")
    lines.append(f"committer {committer.format()}")
    return ("\n".join(lines) + "\n\n" + message).encode()


def decode_commit(hash_value: str, payload: bytes) -> CommitObject:
    header, _, message = payload.decode().partition("\n\n")
    tree = None
    parents = []
    author = committer = None
    for line in header.splitlines():
        key, _, value = line.partition(" ")
        if key == "tree":
            tree = value
        elif key == "parent":
            parents.append(value)
        elif key == "author":
            author = Signature.parse(value)
        elif key == "committer":
            committer = Signature.parse(value)
    if tree is None or author is None or committer is None:
        raise CorruptObject(f"commit {hash_value} is missing a tree or signature")
    return CommitObject(hash_value, tree, tuple(parents), author, committer, message)
