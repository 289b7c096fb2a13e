from threading import Lock
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from cluster_notes.dependencies import get_lock, get_session, get_store
from cluster_notes.domain.exceptions import DeleteError, EmptyTitleError, NoteNotFoundError, SaveError
from cluster_notes.domain.schemas import (
    DiagnosticOut,
    DraftIn,
    NoteDetailOut,
    NoteGetOut,
    NoteSummaryOut,
    SessionOut,
    SortModeIO,
)
from cluster_notes.session import EditorSession
from cluster_notes.vault import NoteStore

router = APIRouter()


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, NoteNotFoundError):
        return HTTPException(status_code=404, detail="note_not_found")
    if isinstance(e, EmptyTitleError):
        return HTTPException(status_code=422, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


def _session_out(session: EditorSession) -> SessionOut:
    return SessionOut(selected_id=session.selected_id, draft=session.draft, status=session.status)


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/notes")
def list_notes(tag: Optional[str] = None, store: NoteStore = Depends(get_store), lock: Lock = Depends(get_lock)):
    with lock:
        items = store.list_summaries(tag=tag)
    return {"items": [NoteSummaryOut.from_summary(s).model_dump() for s in items]}


@router.post("/notes", response_model=NoteDetailOut)
def create_note(payload: DraftIn, store: NoteStore = Depends(get_store), lock: Lock = Depends(get_lock)):
    with lock:
        try:
            note = store.save(payload.draft)
        except (SaveError, NoteNotFoundError) as e:
            raise _http_error(e) from e
        return NoteDetailOut.from_note(note)


@router.get("/notes/{note_id}", response_model=NoteGetOut)
def get_note(note_id: str, store: NoteStore = Depends(get_store), lock: Lock = Depends(get_lock)):
    with lock:
        try:
            note = store.get(note_id)
        except NoteNotFoundError as e:
            raise _http_error(e) from e
        return NoteGetOut(note=NoteDetailOut.from_note(note), backlinks=store.backlinks(note.title))


@router.put("/notes/{note_id}", response_model=NoteDetailOut)
def update_note(
    note_id: str,
    payload: DraftIn,
    store: NoteStore = Depends(get_store),
    lock: Lock = Depends(get_lock),
):
    with lock:
        try:
            note = store.save(payload.draft, note_id)
        except (SaveError, NoteNotFoundError) as e:
            raise _http_error(e) from e
        return NoteDetailOut.from_note(note)


@router.delete("/notes/{note_id}")
def delete_note(note_id: str, store: NoteStore = Depends(get_store), lock: Lock = Depends(get_lock)):
    with lock:
        try:
            store.delete(note_id)
        except (DeleteError, NoteNotFoundError) as e:
            raise _http_error(e) from e
    return {"ok": True}


@router.get("/sort", response_model=SortModeIO)
def get_sort(store: NoteStore = Depends(get_store), lock: Lock = Depends(get_lock)):
    with lock:
        return SortModeIO(mode=store.sort_mode)


@router.put("/sort", response_model=SortModeIO)
def set_sort(payload: SortModeIO, store: NoteStore = Depends(get_store), lock: Lock = Depends(get_lock)):
    with lock:
        store.set_sort_mode(payload.mode)
        return SortModeIO(mode=store.sort_mode)


@router.get("/backlinks")
def backlinks(title: str, store: NoteStore = Depends(get_store), lock: Lock = Depends(get_lock)):
    with lock:
        return {"items": store.backlinks(title)}


@router.get("/tags")
def tags(store: NoteStore = Depends(get_store), lock: Lock = Depends(get_lock)):
    with lock:
        return {"items": store.tag_cloud()}


@router.get("/diagnostics")
def diagnostics(store: NoteStore = Depends(get_store), lock: Lock = Depends(get_lock)):
    with lock:
        items = [DiagnosticOut(path=d.path, message=d.message).model_dump() for d in store.diagnostics]
    return {"items": items}


@router.get("/session", response_model=SessionOut)
def get_editor_session(session: EditorSession = Depends(get_session), lock: Lock = Depends(get_lock)):
    with lock:
        return _session_out(session)


@router.put("/session/draft", response_model=SessionOut)
def set_draft(payload: DraftIn, session: EditorSession = Depends(get_session), lock: Lock = Depends(get_lock)):
    with lock:
        session.draft = payload.draft
        return _session_out(session)


@router.post("/session/select/{note_id}", response_model=SessionOut)
def select_note(note_id: str, session: EditorSession = Depends(get_session), lock: Lock = Depends(get_lock)):
    with lock:
        try:
            session.select(note_id)
        except NoteNotFoundError as e:
            raise _http_error(e) from e
        return _session_out(session)


@router.post("/session/new", response_model=SessionOut)
def new_note(session: EditorSession = Depends(get_session), lock: Lock = Depends(get_lock)):
    with lock:
        session.new_note()
        return _session_out(session)


@router.post("/session/save", response_model=SessionOut)
def save_draft(session: EditorSession = Depends(get_session), lock: Lock = Depends(get_lock)):
    with lock:
        try:
            session.save()
        except (SaveError, NoteNotFoundError) as e:
            raise _http_error(e) from e
        return _session_out(session)


@router.post("/session/delete", response_model=SessionOut)
def delete_selected(session: EditorSession = Depends(get_session), lock: Lock = Depends(get_lock)):
    with lock:
        try:
            session.delete()
        except (DeleteError, NoteNotFoundError) as e:
            raise _http_error(e) from e
        return _session_out(session)
