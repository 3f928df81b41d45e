"""Tests for parse orchestration and cache publishing."""

from pathlib import Path

import pytest

from mystindex.adapters.doc_cache import DocumentCache
from mystindex.adapters.fs_storage import FsStorage
from mystindex.adapters.markdown_parser import MystParser
from mystindex.adapters.target_index import ProjectTargetIndex
from mystindex.core.model import Definition, Target, TokenKind
from mystindex.core.workspace import Workspace, analyze


@pytest.fixture
def workspace():
    return Workspace(MystParser(), DocumentCache(), ProjectTargetIndex())


DOC = """\
(sec-intro)=
# Intro

[ref]: https://example.com "Example"

:::{note}
:title: hi
See [ref].
:::
"""


def test_analyze_is_deterministic():
    """Test that parsing the same text twice gives equal results."""
    parser = MystParser()

    assert analyze("a", DOC, parser) == analyze("a", DOC, parser)


def test_analyze_collects_everything():
    """Test the derived line index, definitions and targets."""
    result = analyze("file:///a.md", DOC, MystParser())

    assert result.targets == (Target("sec-intro", "file:///a.md", 0),)
    assert result.definitions == (
        Definition("ref", "https://example.com", "Example"),
    )
    div_pos = [i for i, t in enumerate(result.tokens) if t.kind is TokenKind.DIV_OPEN]
    assert div_pos[0] in result.line_index[7]


def test_analyze_first_definition_wins():
    """Test that duplicate definitions keep the first."""
    result = analyze("a", "[x]: /one\n[X]: /two\n", MystParser())

    assert result.definitions == (Definition("x", "/one"),)


def test_update_document_publishes(workspace):
    """Test that an open document lands in both caches."""
    snapshot = workspace.update_document("a", DOC, version=3)

    assert workspace.get_data("a") is snapshot
    assert snapshot.version == 3
    assert snapshot.text == DOC
    assert workspace.get_targets("sec-intro") == [Target("sec-intro", "a", 0)]
    assert [d.key for d in workspace.iter_definitions("a")] == ["ref"]


def test_update_document_replaces_targets(workspace):
    """Test that re-parsing does not accumulate stale targets."""
    workspace.update_document("a", "(one)=\n")
    workspace.update_document("a", "(one)=\n")
    workspace.update_document("a", "(two)=\n")

    assert workspace.get_targets("one") == []
    assert workspace.get_targets("two") == [Target("two", "a", 0)]


def test_same_target_in_two_documents(workspace):
    """Test that duplicate names across documents are both kept."""
    workspace.update_document("a", "(x)=\n")
    workspace.update_document("b", "text\n\n(x)=\n")

    assert workspace.get_targets("x") == [Target("x", "a", 0), Target("x", "b", 2)]
    assert list(workspace.iter_targets()) == [Target("x", "a", 0)]


def test_close_document(workspace):
    """Test that closing drops the snapshot and its targets."""
    workspace.update_document("a", "(x)=\n")
    workspace.close_document("a")

    assert workspace.get_data("a") is None
    assert workspace.get_targets("x") == []


def test_notebook_cells(workspace):
    """Test shared definitions across cells and cascade on close."""
    workspace.open_notebook(
        "nb",
        [("nb#c1", "[a]: /x\n(cell-one)=\n"), ("nb#c2", "See [a].\n")],
    )

    assert list(workspace.iter_definitions("nb#c2")) == [Definition("a", "/x")]
    assert workspace.get_targets("cell-one") == [Target("cell-one", "nb#c1", 1)]

    workspace.close_notebook("nb")

    assert workspace.get_data("nb#c1") is None
    assert workspace.get_data("nb#c2") is None
    assert workspace.get_targets("cell-one") == []


def test_update_cell_adds_to_notebook(workspace):
    """Test that a later cell joins an open notebook."""
    workspace.open_notebook("nb", [("nb#c1", "[a]: /x\n")])
    workspace.update_cell("nb", "nb#c2", "text\n", version=1)

    assert workspace.documents.children_of("nb") == ["nb#c1", "nb#c2"]
    assert [d.key for d in workspace.iter_definitions("nb#c2")] == ["a"]


def test_remove_file(workspace):
    """Test that a deleted file leaves both caches."""
    workspace.update_document("a", "(x)=\n")
    workspace.remove_file("a")

    assert workspace.get_data("a") is None
    assert workspace.get_targets("x") == []


def test_remove_notebook_file_drops_cell_targets(workspace):
    """Test that deleting a notebook from disk also drops its cells' targets."""
    workspace.open_notebook(
        "file:///nb.ipynb", [("cell1", "(t1)=\n"), ("cell2", "(t2)=\n")]
    )

    workspace.remove_file("file:///nb.ipynb")

    assert workspace.get_data("cell1") is None
    assert workspace.get_targets("t1") == []
    assert workspace.get_targets("t2") == []
    assert list(workspace.iter_targets()) == []


def test_refresh_file_skips_open_documents(workspace):
    """Test that the editor buffer wins over the file on disk."""
    workspace.update_document("a", "(buffer)=\n")

    assert workspace.refresh_file("a", "(disk)=\n") is False
    assert workspace.get_targets("buffer") == [Target("buffer", "a", 0)]
    assert workspace.get_targets("disk") == []


def test_refresh_file_reindexes_closed_files(workspace):
    """Test that a closed file only updates the target index."""
    workspace.refresh_file("a", "(old)=\n")

    assert workspace.refresh_file("a", "(new)=\n") is True
    assert workspace.get_targets("old") == []
    assert workspace.get_targets("new") == [Target("new", "a", 0)]
    assert workspace.get_data("a") is None


def test_analyze_project(workspace, tmp_path):
    """Test a full scan of project files with progress reporting."""
    (tmp_path / "a.md").write_text("(a)=\n# A\n")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.md").write_text("(b)=\n(a)=\n")
    (tmp_path / ".hidden").mkdir()
    (tmp_path / ".hidden" / "c.md").write_text("(c)=\n")
    (tmp_path / "notes.txt").write_text("(d)=\n")
    workspace.targets.insert_targets([Target("stale", "gone", 0)])

    calls = []
    total = workspace.analyze_project(
        FsStorage(tmp_path).iter_documents(),
        progress=lambda done, n: calls.append((done, n)),
    )

    assert total == 2
    assert calls == [(1, 2), (2, 2)]
    assert workspace.get_targets("stale") == []
    assert [t.line for t in workspace.get_targets("a")] == [0, 1]
    assert workspace.get_targets("c") == []
    assert workspace.get_targets("d") == []
    assert len(workspace.documents) == 0


def test_reconfigure_reparses_open_documents(workspace):
    """Test that switching extensions re-tokenizes cached documents."""
    workspace.update_document("a", ":::\nbody\n:::\n", version=2)
    assert workspace.get_data("a").tokens[0].kind is TokenKind.DIV_OPEN

    workspace.reconfigure(MystParser(extensions=()))

    snapshot = workspace.get_data("a")
    assert snapshot.version == 2
    assert TokenKind.DIV_OPEN not in [t.kind for t in snapshot.tokens]


def test_file_uris(workspace, tmp_path):
    """Test that FsStorage URIs round-trip through read."""
    path = tmp_path / "doc.md"
    path.write_text("(x)=\n")
    storage = FsStorage(tmp_path)

    [(uri, text)] = list(storage.iter_documents())

    assert uri.startswith("file://")
    assert storage.read(uri) == text
    assert storage.read("vscode-notebook-cell:/nb#c1") is None
    assert Path(uri[len("file://"):]).name == "doc.md"
