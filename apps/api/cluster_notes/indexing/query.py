from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from functools import cmp_to_key

from ..domain.entities import Note, SortMode
from ..util import parse_timestamp


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _recent_first(a: Note, b: Note) -> int:
    a_time = parse_timestamp(a.created_at)
    b_time = parse_timestamp(b.created_at)
    if a_time is not None and b_time is not None:
        return _cmp(b_time, a_time)
    # Unparseable timestamps fall back to comparing the raw strings.
    return _cmp(b.created_at, a.created_at)


def sort_notes(notes: Sequence[Note], mode: SortMode) -> list[Note]:
    if mode is SortMode.TITLE:
        return sorted(notes, key=lambda n: n.title)
    return sorted(notes, key=cmp_to_key(_recent_first))


def backlinks(notes: Sequence[Note], title: str) -> list[str]:
    """Titles of notes whose body contains ``[[title]]``, excluding ``title`` itself."""
    pattern = f"[[{title}]]"
    return [n.title for n in notes if n.title != title and pattern in n.body]


def tag_cloud(notes: Sequence[Note]) -> dict[str, int]:
    counts = Counter(tag for n in notes for tag in n.tags)
    return {tag: counts[tag] for tag in sorted(counts)}


def notes_with_tag(notes: Sequence[Note], tag: str) -> list[Note]:
    return [n for n in notes if tag in n.tags]
