"""
tests/test_memory_store.py
Content addressing, revision resolution, history walking and persistence
of the in-memory object store.
"""
import pytest

from object_graph import (
    BadRevision,
    CorruptObject,
    FileMode,
    HistoryQuery,
    MemoryObjectStore,
    ObjectKind,
    ObjectNotFound,
    TreeEntry,
)

from conftest import T1, T2, T3, sig


def _messages(commits):
    return [commit.message for commit in commits]


def test_object_ids_match_git() -> None:
    store = MemoryObjectStore()
    assert store.put_blob(b"") == "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"
    assert store.put_blob(b"hello world\n") == "3b18e512dba79e4c8300dd08aeb37f8e728b8dad"
    assert store.put_tree([]) == "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


def test_identical_content_is_stored_once() -> None:
    store = MemoryObjectStore()
    first = store.put_blob(b"same")
    second = store.put_blob(b"same")
    assert first == second
    assert len(store) == 1


def test_tree_keeps_insertion_order() -> None:
    store = MemoryObjectStore()
    blob = store.put_blob(b"x")
    tree_id = store.put_tree([
        TreeEntry("zeta", int(FileMode.REGULAR), blob),
        TreeEntry("alpha", int(FileMode.REGULAR), blob),
    ])
    tree = store.load_object(tree_id)
    assert tree.kind is ObjectKind.TREE
    assert [entry.name for entry in tree.entries] == ["zeta", "alpha"]


def test_put_tree_rejects_duplicate_names() -> None:
    store = MemoryObjectStore()
    blob = store.put_blob(b"x")
    with pytest.raises(ValueError):
        store.put_tree([TreeEntry("a", int(FileMode.REGULAR), blob)] * 2)


def test_commit_files_sorts_like_git(history_store: MemoryObjectStore) -> None:
    commit = history_store.load_commit(history_store.resolve_revision("HEAD"))
    root = history_store.load_object(commit.tree)
    assert [entry.name for entry in root.entries] == ["README.md", "docs", "src"]
    assert root.get("docs").mode == FileMode.DIR


def test_commit_round_trips_signatures() -> None:
    store = MemoryObjectStore()
    author = sig(T1, offset=-330)
    commit_id = store.commit_files({"a": b"a"}, author=author, committer=sig(T2), message="msg\n")
    commit = store.load_commit(commit_id)
    assert commit.author == author
    assert commit.committer == sig(T2)
    assert commit.message == "msg\n"
    assert commit.author.when.utcoffset().total_seconds() == -330 * 60


def test_blob_content_is_lazy_and_sized() -> None:
    store = MemoryObjectStore()
    blob = store.load_object(store.put_blob(b"12345"))
    assert blob.size == 5
    with blob.open() as stream:
        assert stream.read() == b"12345"


def test_load_missing_object() -> None:
    store = MemoryObjectStore()
    with pytest.raises(ObjectNotFound):
        store.load_object("0" * 40)


def test_load_commit_rejects_other_kinds() -> None:
    store = MemoryObjectStore()
    blob = store.put_blob(b"not a commit")
    with pytest.raises(ObjectNotFound):
        store.load_commit(blob)


def test_resolve_names(history_store: MemoryObjectStore) -> None:
    head = history_store.resolve_revision("HEAD")
    assert history_store.resolve_revision("main") == head
    assert history_store.resolve_revision("refs/heads/main") == head
    assert history_store.resolve_revision(head) == head
    assert history_store.resolve_revision(head[:7]) == head
    assert history_store.load_commit(history_store.resolve_revision("v1")).message == "C1"


def test_resolve_ancestry_suffixes(history_store: MemoryObjectStore) -> None:
    assert history_store.load_commit(history_store.resolve_revision("HEAD~1")).message == "C2"
    assert history_store.load_commit(history_store.resolve_revision("main~2")).message == "C1"
    assert history_store.load_commit(history_store.resolve_revision("HEAD^")).message == "C2"
    assert history_store.load_commit(history_store.resolve_revision("HEAD^^")).message == "C1"
    assert history_store.resolve_revision("HEAD^0") == history_store.resolve_revision("HEAD")


def test_resolve_second_parent_of_merge() -> None:
    store = MemoryObjectStore()
    base = store.commit_files({"a": b"a"}, author=sig(T1), message="base")
    side = store.commit_files({"b": b"b"}, author=sig(T2), message="side", parents=(base,), ref="refs/heads/side")
    merge = store.commit_files({"b": b"b"}, author=sig(T3), message="merge", parents=(base, side))
    assert store.resolve_revision("HEAD") == merge
    assert store.resolve_revision("HEAD^2") == side
    assert store.resolve_revision("side") == side


def test_resolve_failures(history_store: MemoryObjectStore) -> None:
    with pytest.raises(ObjectNotFound):
        history_store.resolve_revision("no-such-branch")
    with pytest.raises(ObjectNotFound):
        history_store.resolve_revision("HEAD~5")
    with pytest.raises(BadRevision):
        history_store.resolve_revision("main~x")
    with pytest.raises(BadRevision):
        history_store.resolve_revision("~1")
    with pytest.raises(ObjectNotFound):
        MemoryObjectStore().resolve_revision("HEAD")


def test_resolve_rejects_non_commit_hash() -> None:
    store = MemoryObjectStore()
    blob = store.put_blob(b"payload")
    with pytest.raises(BadRevision):
        store.resolve_revision(blob)


def test_unfiltered_history_is_newest_first(history_store: MemoryObjectStore) -> None:
    head = history_store.resolve_revision("HEAD")
    commits = list(history_store.walk_history(HistoryQuery.unfiltered(head)))
    assert _messages(commits) == ["C3", "C2", "C1"]


def test_file_history_only_yields_touching_commits(history_store: MemoryObjectStore) -> None:
    head = history_store.resolve_revision("HEAD")
    assert _messages(history_store.walk_history(HistoryQuery.for_file(head, "src/a.go"))) == ["C2", "C1"]
    assert _messages(history_store.walk_history(HistoryQuery.for_file(head, "src/b.go"))) == ["C1"]
    assert _messages(history_store.walk_history(HistoryQuery.for_file(head, "missing"))) == []


def test_directory_history_respects_segment_boundaries() -> None:
    store = MemoryObjectStore()
    store.commit_files({"docs/a": b"1", "docs2/b": b"1"}, author=sig(T1), message="C1")
    store.commit_files({"docs2/b": b"2"}, author=sig(T2), message="C2")
    head = store.resolve_revision("HEAD")
    assert _messages(store.walk_history(HistoryQuery.for_directory(head, "docs"))) == ["C1"]
    assert _messages(store.walk_history(HistoryQuery.for_directory(head, "docs2"))) == ["C2", "C1"]


def test_history_visits_merged_branches_once() -> None:
    store = MemoryObjectStore()
    base = store.commit_files({"a": b"a"}, author=sig(T1), message="base")
    side = store.commit_files({"b": b"b"}, author=sig(T2), message="side", parents=(base,), ref="refs/heads/side")
    store.commit_files({"b": b"b"}, author=sig(T3), message="merge", parents=(base, side))
    head = store.resolve_revision("HEAD")
    assert _messages(store.walk_history(HistoryQuery.unfiltered(head))) == ["merge", "side", "base"]
    # "b" arrives in the merge relative to its first parent
    assert _messages(store.walk_history(HistoryQuery.for_file(head, "b"))) == ["merge", "side"]


def test_history_query_takes_one_filter() -> None:
    with pytest.raises(ValueError):
        HistoryQuery("abc", path="a", prefix="b")


def test_commit_files_deletes_paths(history_store: MemoryObjectStore) -> None:
    history_store.commit_files({"src/b.go": None}, author=sig(T3 + 1), message="C4")
    head = history_store.load_commit(history_store.resolve_revision("HEAD"))
    src = history_store.load_object(history_store.load_object(head.tree).get("src").hash)
    assert [entry.name for entry in src.entries] == ["a.go"]


def test_save_and_load(history_store: MemoryObjectStore, tmp_path) -> None:
    path = tmp_path / "store.json"
    history_store.save(str(path))
    loaded = MemoryObjectStore.load(str(path))
    assert loaded.objects == history_store.objects
    assert loaded.refs == history_store.refs
    assert loaded.resolve_revision("HEAD") == history_store.resolve_revision("HEAD")


def test_loads_detects_tampering(single_commit_store: MemoryObjectStore) -> None:
    blob = single_commit_store.put_blob(b"original")
    text = single_commit_store.dumps()
    tampered = text.replace(blob, "f" * 40)
    with pytest.raises(CorruptObject):
        MemoryObjectStore.loads(tampered)


def test_detached_head(history_store: MemoryObjectStore) -> None:
    tagged = history_store.resolve_revision("v1")
    assert tagged in history_store
    assert "0" * 40 not in history_store
    history_store.set_head(tagged)
    assert history_store.resolve_revision("HEAD") == tagged
    # commits on a detached HEAD move HEAD, not the branch
    main = history_store.resolve_revision("main")
    child = history_store.commit_files({"new.txt": b"n"}, author=sig(T3 + 1), message="C4")
    assert history_store.resolve_revision("HEAD") == child
    assert history_store.resolve_revision("main") == main
    assert history_store.load_commit(child).parents == (tagged,)
