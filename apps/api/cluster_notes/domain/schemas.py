from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from cluster_notes.domain.entities import Note, NoteSummary, SortMode


class NoteSummaryOut(BaseModel):
    id: str
    title: str
    path: str
    created_at: str
    updated_at: str
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: NoteSummary) -> "NoteSummaryOut":
        return cls(**summary.__dict__)


class NoteDetailOut(NoteSummaryOut):
    body: str

    @classmethod
    def from_note(cls, note: Note) -> "NoteDetailOut":
        return cls(**note.summary().__dict__, body=note.body)


class NoteGetOut(BaseModel):
    note: NoteDetailOut
    backlinks: list[str] = Field(default_factory=list)


class DraftIn(BaseModel):
    draft: str


class SortModeIO(BaseModel):
    mode: SortMode


class DiagnosticOut(BaseModel):
    path: str
    message: str


class SessionOut(BaseModel):
    selected_id: Optional[str] = None
    draft: str = ""
    status: str = ""
