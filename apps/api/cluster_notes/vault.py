from __future__ import annotations

import logging
from pathlib import Path

from .domain.entities import LoadDiagnostic, Note, NoteMetadata, NoteSummary, SortMode
from .domain.exceptions import (
    DecodeError,
    DeleteIoError,
    EmptyTitleError,
    NoteNotFoundError,
    RenameFailedError,
    StoreClosedError,
    WriteFailedError,
)
from .indexing import query
from .parsing import decode_file, encode, parse_title_and_tags
from .util import NOTE_SUFFIX, atomic_write_text, file_location, next_id, normalize_newlines, now_local, rfc3339, slugify

logger = logging.getLogger("cluster_notes.store")


class NoteStore:
    """The live collection of notes backed by one directory of markdown files.

    Every public mutation either completes on disk and in memory, or raises
    and leaves both as they were.
    """

    def __init__(self, notes_dir: Path, sort_mode: SortMode = SortMode.RECENT) -> None:
        self.notes_dir = Path(notes_dir)
        self.sort_mode = sort_mode
        self.diagnostics: list[LoadDiagnostic] = []
        self._notes: list[Note] = []
        self._closed = False

    @classmethod
    def load(cls, notes_dir: Path, sort_mode: SortMode = SortMode.RECENT) -> "NoteStore":
        store = cls(notes_dir, sort_mode)
        store._load()
        return store

    def _diagnose(self, path: Path, cause: str) -> None:
        diagnostic = LoadDiagnostic(path=str(path), cause=cause)
        self.diagnostics.append(diagnostic)
        logger.warning("load_diagnostic", extra={"path": diagnostic.path, "cause": cause})

    def _load(self) -> None:
        try:
            self.notes_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self._diagnose(self.notes_dir, f"Failed to create notes directory: {e}")
            return
        try:
            paths = sorted(p for p in self.notes_dir.iterdir() if p.suffix == NOTE_SUFFIX and p.is_file())
        except OSError as e:
            self._diagnose(self.notes_dir, f"Failed to read notes directory: {e}")
            return

        seen: set[str] = set()
        for path in paths:
            if path.name.startswith("."):
                continue
            try:
                meta, body = decode_file(path)
            except (OSError, UnicodeDecodeError, DecodeError) as e:
                self._diagnose(path, str(e))
                continue
            if meta.id in seen:
                self._diagnose(path, f"Duplicate note id: {meta.id}")
                continue
            seen.add(meta.id)
            self._notes.append(Note(metadata=meta, body=body, location=path))

        self._resort()
        logger.info(
            "store_load",
            extra={"dir": str(self.notes_dir), "notes": len(self._notes), "errors": len(self.diagnostics)},
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._notes = []
        logger.info("store_close", extra={"dir": str(self.notes_dir)})

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "NoteStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def notes(self) -> list[Note]:
        self._check_open()
        return list(self._notes)

    def ids(self) -> list[str]:
        return [n.id for n in self.notes]

    def get(self, note_id: str) -> Note:
        self._check_open()
        for note in self._notes:
            if note.id == note_id:
                return note
        raise NoteNotFoundError(note_id)

    def get_body(self, note_id: str) -> str:
        return self.get(note_id).body

    def list_summaries(self, tag: str | None = None) -> list[NoteSummary]:
        notes = self.notes
        if tag:
            notes = query.notes_with_tag(notes, tag)
        return [n.summary() for n in notes]

    def backlinks(self, title: str) -> list[str]:
        return query.backlinks(self.notes, title)

    def tag_cloud(self) -> dict[str, int]:
        return query.tag_cloud(self.notes)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_sort_mode(self, mode: SortMode) -> None:
        self._check_open()
        self.sort_mode = SortMode(mode)
        self._resort()

    def _resort(self) -> None:
        self._notes = query.sort_notes(self._notes, self.sort_mode)

    def _location_for(self, meta: NoteMetadata, current: Path | None) -> Path:
        taken = {n.location for n in self._notes if n.location != current}
        slug = slugify(meta.title)
        attempt = 1
        while True:
            candidate = file_location(self.notes_dir, meta.date, slug, attempt)
            if candidate == current:
                return candidate
            if candidate not in taken and not candidate.exists():
                return candidate
            attempt += 1

    def save(self, draft_text: str, selected_id: str | None = None) -> Note:
        """Persist ``draft_text`` as a new note, or over the note ``selected_id``."""
        self._check_open()
        body = normalize_newlines(draft_text).lstrip()
        title, tags = parse_title_and_tags(body)
        if not title:
            raise EmptyTitleError()

        now_dt = now_local()
        now = rfc3339(now_dt)
        existing = self.get(selected_id) if selected_id is not None else None
        if existing is not None:
            meta = existing.metadata.model_copy(update={"title": title, "tags": tags, "updated_at": now})
            old_location: Path | None = existing.location
        else:
            meta = NoteMetadata(
                id=next_id(self.ids(), now_dt.date()),
                title=title,
                tags=tags,
                created_at=now,
                updated_at=now,
            )
            old_location = None

        location = self._location_for(meta, old_location)
        renamed = old_location is not None and old_location != location
        if renamed:
            try:
                old_location.rename(location)
            except OSError as e:
                raise RenameFailedError(old_location, location, e) from e
            logger.info("note_rename", extra={"id": meta.id, "from": str(old_location), "to": str(location)})

        try:
            atomic_write_text(location, encode(meta, body))
        except OSError as e:
            if renamed:
                self._undo_rename(location, old_location)
            raise WriteFailedError(location, e) from e

        if existing is not None:
            existing.metadata = meta
            existing.body = body
            existing.location = location
            note = existing
        else:
            note = Note(metadata=meta, body=body, location=location)
            self._notes.append(note)
        self._resort()
        logger.info("note_save", extra={"id": note.id, "path": str(location), "new_note": existing is None})
        return note

    def _undo_rename(self, current: Path, original: Path) -> None:
        try:
            current.rename(original)
        except OSError:
            logger.exception("note_rename_undo_failed", extra={"from": str(current), "to": str(original)})

    def delete(self, note_id: str) -> Note:
        note = self.get(note_id)
        try:
            note.location.unlink()
        except OSError as e:
            raise DeleteIoError(note.location, e) from e
        self._notes.remove(note)
        logger.info("note_delete", extra={"id": note.id, "path": str(note.location)})
        return note
