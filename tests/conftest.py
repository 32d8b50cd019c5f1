# Shared fixtures: small object graphs held in memory
import pytest

from object_graph import MemoryObjectStore, Signature

T1, T2, T3 = 1_700_000_000, 1_700_086_400, 1_700_172_800


def sig(time: int, offset: int = 0) -> Signature:
    return Signature("Test User", "test@example.com", time, offset)


@pytest.fixture
def single_commit_store() -> MemoryObjectStore:
    store = MemoryObjectStore()
    store.commit_files(
        {
            "README.md": b"# project\n",
            "src/main.go": b"package main\n",
        },
        author=sig(T1),
        message="initial",
    )
    return store


@pytest.fixture
def history_store() -> MemoryObjectStore:
    """
    C1 creates everything, C2 edits src/a.go, C3 edits docs/readme.md.
    Tag v1 points at C1.
    """
    store = MemoryObjectStore()
    c1 = store.commit_files(
        {
            "README.md": b"# project\n",
            "docs/readme.md": b"first draft\n",
            "src/a.go": b"package a\n",
            "src/b.go": b"package b\n",
        },
        author=sig(T1),
        message="C1",
    )
    store.commit_files({"src/a.go": b"package a\n\nfunc A() {}\n"}, author=sig(T2), message="C2")
    store.commit_files({"docs/readme.md": b"final text\n"}, author=sig(T3), message="C3")
    store.set_ref("refs/tags/v1", c1)
    return store
