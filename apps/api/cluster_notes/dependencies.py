from threading import Lock

from fastapi import Request

from cluster_notes.config import Settings
from cluster_notes.session import EditorSession
from cluster_notes.vault import NoteStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> NoteStore:
    return request.app.state.store


def get_session(request: Request) -> EditorSession:
    return request.app.state.session


def get_lock(request: Request) -> Lock:
    """Serialises every call into the store and session across worker threads."""
    return request.app.state.lock
