from pathlib import Path

import pytest

from cluster_notes.domain.entities import NoteMetadata, SortMode
from cluster_notes.domain.exceptions import (
    DeleteIoError,
    EmptyTitleError,
    NoteNotFoundError,
    RenameFailedError,
    StoreClosedError,
    WriteFailedError,
)
from cluster_notes.parsing import decode_file, encode
from cluster_notes.vault import NoteStore


def _write_note(directory: Path, name: str, *, note_id: str, title: str, created_at: str, tags=(), body="") -> Path:
    meta = NoteMetadata(id=note_id, title=title, tags=list(tags), created_at=created_at, updated_at=created_at)
    path = directory / name
    path.write_text(encode(meta, body or f"# {title}"), encoding="utf-8")
    return path


def _files(directory: Path) -> set[str]:
    return {p.name for p in directory.iterdir()}


def test_load_creates_missing_directory(tmp_path) -> None:
    notes_dir = tmp_path / "notes"
    store = NoteStore.load(notes_dir)
    assert notes_dir.is_dir()
    assert store.notes == []
    assert store.diagnostics == []


def test_load_collects_decode_failures_as_diagnostics(tmp_path) -> None:
    _write_note(tmp_path, "2024-05-01-good.md", note_id="2024-05-01-001", title="Good", created_at="2024-05-01T10:00:00+00:00")
    (tmp_path / "no-frontmatter.md").write_text("# Plain\n", encoding="utf-8")
    (tmp_path / "broken.md").write_text("---\ntitle: [oops\n---\n\nBody\n", encoding="utf-8")
    (tmp_path / "ignored.txt").write_text("not a note", encoding="utf-8")

    store = NoteStore.load(tmp_path)

    assert [n.title for n in store.notes] == ["Good"]
    paths = sorted(Path(d.path).name for d in store.diagnostics)
    assert paths == ["broken.md", "no-frontmatter.md"]
    messages = {Path(d.path).name: d.message for d in store.diagnostics}
    assert "Missing YAML frontmatter start." in messages["no-frontmatter.md"]
    assert "Invalid frontmatter" in messages["broken.md"]


def test_load_rejects_duplicate_ids(tmp_path) -> None:
    _write_note(tmp_path, "a.md", note_id="2024-05-01-001", title="A", created_at="2024-05-01T10:00:00+00:00")
    _write_note(tmp_path, "b.md", note_id="2024-05-01-001", title="B", created_at="2024-05-01T10:00:00+00:00")

    store = NoteStore.load(tmp_path)

    assert store.ids() == ["2024-05-01-001"]
    assert len(store.diagnostics) == 1
    assert "Duplicate note id" in store.diagnostics[0].cause


def test_load_directory_failure_degrades_to_diagnostic(tmp_path) -> None:
    not_a_dir = tmp_path / "notes"
    not_a_dir.write_text("occupied", encoding="utf-8")

    store = NoteStore.load(not_a_dir)

    assert store.notes == []
    assert len(store.diagnostics) == 1
    assert "Failed to create notes directory" in store.diagnostics[0].cause


def test_save_new_note_writes_file(tmp_path) -> None:
    store = NoteStore.load(tmp_path)

    note = store.save("# Hello, World!\ntags: [b, a, b]\n\nFirst body.")

    day = note.created_at.split("T")[0]
    assert note.id == f"{day}-001"
    assert note.tags == ["a", "b"]
    assert note.created_at == note.updated_at
    assert note.location == tmp_path / f"{day}-hello-world.md"
    meta, body = decode_file(note.location)
    assert meta == note.metadata
    assert body == note.body
    assert store.ids() == [note.id]


def test_save_allocates_increasing_ids(tmp_path) -> None:
    store = NoteStore.load(tmp_path)
    first = store.save("# One")
    second = store.save("# Two")
    assert first.id.endswith("-001")
    assert second.id.endswith("-002")


def test_save_same_title_same_day_does_not_overwrite(tmp_path) -> None:
    store = NoteStore.load(tmp_path)
    first = store.save("# Same\none")
    second = store.save("# Same\ntwo")

    assert first.location != second.location
    assert second.location.name.endswith("-same-2.md")
    assert decode_file(first.location)[1] == "# Same\none"
    assert decode_file(second.location)[1] == "# Same\ntwo"


def test_save_is_idempotent(tmp_path) -> None:
    store = NoteStore.load(tmp_path)
    draft = "# Stable\ntags: x, y\n\nText"
    note = store.save(draft)
    before = note.metadata

    again = store.save(draft, note.id)

    assert again is note
    assert again.metadata.model_copy(update={"updated_at": before.updated_at}) == before
    assert again.updated_at >= before.updated_at
    assert again.body == draft
    assert _files(tmp_path) == {note.location.name}


def test_save_retitle_renames_file(tmp_path) -> None:
    store = NoteStore.load(tmp_path)
    note = store.save("# Old title")
    old_location = note.location

    store.save("# New title\nmore", note.id)

    assert not old_location.exists()
    assert note.location.name.endswith("-new-title.md")
    assert note.location.exists()
    meta, body = decode_file(note.location)
    assert meta.title == "New title"
    assert meta.created_at == note.created_at
    assert body == "# New title\nmore"


def test_save_rename_failure_leaves_everything_untouched(tmp_path, monkeypatch) -> None:
    store = NoteStore.load(tmp_path)
    note = store.save("# Old title\nold body")
    old_location = note.location
    old_text = old_location.read_text(encoding="utf-8")

    def failing_rename(self, target):
        raise PermissionError("rename denied")

    monkeypatch.setattr(Path, "rename", failing_rename)

    with pytest.raises(RenameFailedError) as excinfo:
        store.save("# New title\nnew body", note.id)

    assert isinstance(excinfo.value.cause, PermissionError)
    assert str(excinfo.value).startswith("Failed to rename file")
    assert note.title == "Old title"
    assert note.body == "# Old title\nold body"
    assert note.location == old_location
    assert old_location.read_text(encoding="utf-8") == old_text
    assert _files(tmp_path) == {old_location.name}


def test_save_write_failure_after_rename_moves_file_back(tmp_path, monkeypatch) -> None:
    store = NoteStore.load(tmp_path)
    note = store.save("# Old title\nold body")
    old_location = note.location
    old_text = old_location.read_text(encoding="utf-8")

    def failing_write(path, content):
        raise OSError("disk full")

    monkeypatch.setattr("cluster_notes.vault.atomic_write_text", failing_write)

    with pytest.raises(WriteFailedError):
        store.save("# New title\nnew body", note.id)

    assert note.title == "Old title"
    assert note.location == old_location
    assert old_location.read_text(encoding="utf-8") == old_text
    assert _files(tmp_path) == {old_location.name}


def test_save_empty_title_changes_nothing(tmp_path) -> None:
    store = NoteStore.load(tmp_path)
    note = store.save("# Kept")

    with pytest.raises(EmptyTitleError):
        store.save("no heading here\n## not a title", note.id)
    with pytest.raises(EmptyTitleError):
        store.save("no heading here")

    assert store.ids() == [note.id]
    assert note.title == "Kept"
    assert _files(tmp_path) == {note.location.name}


def test_save_unknown_selected_id(tmp_path) -> None:
    store = NoteStore.load(tmp_path)
    with pytest.raises(NoteNotFoundError):
        store.save("# Title", "2024-01-01-001")
    assert _files(tmp_path) == set()


def test_save_tags_from_loaded_note(tmp_path) -> None:
    _write_note(
        tmp_path,
        "2024-05-01-tagged.md",
        note_id="2024-05-01-001",
        title="Tagged",
        created_at="2024-05-01T10:00:00+00:00",
        body="# Tagged\ntags: [a, b, a]",
    )
    store = NoteStore.load(tmp_path)
    note = store.get("2024-05-01-001")

    store.save(store.get_body(note.id), note.id)

    assert note.tags == ["a", "b"]
    assert note.location == tmp_path / "2024-05-01-tagged.md"


def test_delete_removes_file_and_note(tmp_path) -> None:
    store = NoteStore.load(tmp_path)
    keep = store.save("# Keep")
    gone = store.save("# Gone")

    removed = store.delete(gone.id)

    assert removed is gone
    assert not gone.location.exists()
    assert store.ids() == [keep.id]


def test_delete_failure_keeps_note(tmp_path, monkeypatch) -> None:
    store = NoteStore.load(tmp_path)
    note = store.save("# Sticky")

    def failing_unlink(self, missing_ok=False):
        raise PermissionError("unlink denied")

    monkeypatch.setattr(Path, "unlink", failing_unlink)

    with pytest.raises(DeleteIoError) as excinfo:
        store.delete(note.id)

    assert isinstance(excinfo.value.cause, PermissionError)
    assert store.ids() == [note.id]


def test_delete_unknown_id(tmp_path) -> None:
    store = NoteStore.load(tmp_path)
    with pytest.raises(NoteNotFoundError):
        store.delete("nope")


def test_sort_modes(tmp_path) -> None:
    _write_note(tmp_path, "b.md", note_id="2024-05-01-001", title="Banana", created_at="2024-05-01T10:00:00+00:00")
    _write_note(tmp_path, "a.md", note_id="2024-05-02-001", title="apple", created_at="2024-05-02T10:00:00+00:00")
    _write_note(tmp_path, "c.md", note_id="2024-05-01-002", title="Cherry", created_at="2024-05-01T11:00:00+02:00")

    store = NoteStore.load(tmp_path)
    assert store.sort_mode is SortMode.RECENT
    assert [n.title for n in store.notes] == ["apple", "Banana", "Cherry"]

    store.set_sort_mode(SortMode.TITLE)
    assert [n.title for n in store.notes] == ["Banana", "Cherry", "apple"]


def test_list_summaries_filters_by_tag(tmp_path) -> None:
    store = NoteStore.load(tmp_path)
    store.save("# One\ntags: a, b")
    store.save("# Two\ntags: b")

    assert {s.title for s in store.list_summaries()} == {"One", "Two"}
    assert [s.title for s in store.list_summaries(tag="a")] == ["One"]
    assert store.tag_cloud() == {"a": 1, "b": 2}


def test_closed_store_rejects_calls(tmp_path) -> None:
    with NoteStore.load(tmp_path) as store:
        store.save("# Before close")
    assert store.closed
    with pytest.raises(StoreClosedError):
        store.list_summaries()
    with pytest.raises(StoreClosedError):
        store.save("# After close")


def test_save_normalizes_crlf_so_reload_matches(tmp_path) -> None:
    store = NoteStore.load(tmp_path)
    note = store.save("# Title\r\nline two\r\nold mac\rline\r\n")

    assert note.body == "# Title\nline two\nold mac\nline\n"
    reloaded = NoteStore.load(tmp_path)
    assert reloaded.get_body(note.id) == note.body
    assert reloaded.get(note.id).metadata == note.metadata


def test_save_with_unparseable_created_at_stays_inside_notes_dir(tmp_path) -> None:
    notes_dir = tmp_path / "notes"
    notes_dir.mkdir()
    _write_note(notes_dir, "hand-edited.md", note_id="x-001", title="Escape", created_at="../../x")
    store = NoteStore.load(notes_dir)

    note = store.save("# Escape\nresaved", "x-001")

    assert note.location == notes_dir / "unknown-date-escape.md"
    assert note.created_at == "../../x"
    assert _files(notes_dir) == {"unknown-date-escape.md"}
    assert _files(tmp_path) == {"notes"}
