from __future__ import annotations

from .domain.entities import Note
from .domain.exceptions import DeleteError, NoteNotFoundError, SaveError
from .vault import NoteStore


class EditorSession:
    """Selection, draft buffer and status line of one editing front end."""

    def __init__(self, store: NoteStore) -> None:
        self.store = store
        self.selected_id: str | None = None
        self.draft = ""
        self.status = ""
        notes = store.notes
        if notes:
            self.select(notes[0].id)

    def select(self, note_id: str) -> Note:
        note = self.store.get(note_id)
        self.selected_id = note.id
        self.draft = note.body
        return note

    def new_note(self) -> None:
        self.selected_id = None
        self.draft = ""

    def save(self) -> Note:
        try:
            note = self.store.save(self.draft, self.selected_id)
        except (SaveError, NoteNotFoundError) as e:
            self.status = str(e)
            raise
        self.selected_id = note.id
        self.status = "Saved."
        return note

    def delete(self) -> Note | None:
        if self.selected_id is None:
            self.status = "No note selected to delete."
            return None
        try:
            note = self.store.delete(self.selected_id)
        except (DeleteError, NoteNotFoundError) as e:
            self.status = str(e)
            raise
        self.new_note()
        self.status = "Deleted."
        return note
