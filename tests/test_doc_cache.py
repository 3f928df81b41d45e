"""Tests for the open-document cache and notebook relations."""

from mystindex.adapters.doc_cache import DocumentCache
from mystindex.core.lines import LineIndex
from mystindex.core.model import Definition, DocumentSnapshot


def snapshot(uri, *definitions):
    return DocumentSnapshot(
        uri=uri,
        tokens=(),
        line_index=LineIndex(),
        definitions=tuple(definitions),
    )


def test_set_and_get():
    """Test storing and replacing a snapshot."""
    cache = DocumentCache()
    cache.set_data("file:///a.md", snapshot("file:///a.md"))
    newer = snapshot("file:///a.md", Definition("x", "/x"))
    cache.set_data("file:///a.md", newer)

    assert cache.get_data("file:///a.md") is newer
    assert cache.get_data("file:///missing.md") is None
    assert "file:///a.md" in cache
    assert len(cache) == 1


def test_sibling_cells_share_definitions():
    """Test that a cell sees the definitions of other cells in its notebook."""
    cache = DocumentCache()
    cache.set_parent_to_child_uri("nb", "c1")
    cache.set_parent_to_child_uri("nb", "c2")
    cache.set_data("c1", snapshot("c1", Definition("a", "/x")))
    cache.set_data("c2", snapshot("c2"))

    assert list(cache.iter_definitions("c2")) == [Definition("a", "/x")]


def test_own_definitions_come_first():
    """Test lookup order and first-key-wins deduplication."""
    cache = DocumentCache()
    for cell in ("c1", "c2", "c3"):
        cache.set_parent_to_child_uri("nb", cell)
    cache.set_data("c1", snapshot("c1", Definition("a", "/c1")))
    cache.set_data("c2", snapshot("c2", Definition("a", "/c2"), Definition("b", "/b")))
    cache.set_data("c3", snapshot("c3", Definition("c", "/c")))

    assert [d.href for d in cache.iter_definitions("c2")] == ["/c2", "/b", "/c"]
    assert [d.href for d in cache.iter_definitions("c2", distinct=False)] == [
        "/c2",
        "/b",
        "/c1",
        "/c",
    ]


def test_standalone_document_sees_only_itself():
    """Test that an unrelated document does not leak definitions."""
    cache = DocumentCache()
    cache.set_data("a", snapshot("a", Definition("a", "/a")))
    cache.set_data("b", snapshot("b"))

    assert list(cache.iter_definitions("b")) == []
    assert list(cache.iter_definitions("unknown")) == []


def test_relation_is_idempotent():
    """Test that repeating a relation does not duplicate the child."""
    cache = DocumentCache()
    cache.set_parent_to_child_uri("nb", "c1")
    cache.set_parent_to_child_uri("nb", "c1")

    assert cache.children_of("nb") == ["c1"]
    assert cache.parent_of("c1") == "nb"


def test_reparenting_moves_child():
    """Test that a cell belongs to one notebook at a time."""
    cache = DocumentCache()
    cache.set_parent_to_child_uri("nb1", "c1")
    cache.set_parent_to_child_uri("nb2", "c1")

    assert cache.children_of("nb1") == []
    assert cache.children_of("nb2") == ["c1"]
    assert cache.parent_of("c1") == "nb2"


def test_remove_parent_cascades():
    """Test that removing a notebook removes its cells."""
    cache = DocumentCache()
    cache.set_parent_to_child_uri("nb", "c1")
    cache.set_parent_to_child_uri("nb", "c2")
    cache.set_data("c1", snapshot("c1"))
    cache.set_data("c2", snapshot("c2"))

    removed = cache.remove_uri("nb")

    assert removed == ["c1", "c2"]
    assert cache.get_data("c1") is None
    assert cache.get_data("c2") is None
    assert cache.parent_of("c1") is None
    assert cache.children_of("nb") == []


def test_remove_child_detaches_it():
    """Test that removing a cell leaves its siblings in place."""
    cache = DocumentCache()
    cache.set_parent_to_child_uri("nb", "c1")
    cache.set_parent_to_child_uri("nb", "c2")
    cache.set_data("c1", snapshot("c1", Definition("a", "/a")))
    cache.set_data("c2", snapshot("c2"))

    assert cache.remove_uri("c1") == ["c1"]
    assert cache.children_of("nb") == ["c2"]
    assert cache.get_data("c2") is not None
    assert list(cache.iter_definitions("c2")) == []


def test_remove_unknown_is_noop():
    """Test removing a URI that was never cached."""
    cache = DocumentCache()

    assert cache.remove_uri("nothing") == []


def test_clear():
    """Test dropping everything."""
    cache = DocumentCache()
    cache.set_parent_to_child_uri("nb", "c1")
    cache.set_data("c1", snapshot("c1"))
    cache.clear()

    assert len(cache) == 0
    assert cache.parent_of("c1") is None
