from __future__ import annotations

import os
import re
from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path

NOTE_SUFFIX = ".md"
SLUG_FALLBACK = "note"

_SLUG_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def now_local() -> datetime:
    return datetime.now().astimezone()


def rfc3339(ts: datetime) -> str:
    return ts.isoformat()


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp carrying an explicit offset, else ``None``."""
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def next_id(existing_ids: Iterable[str], day: date) -> str:
    """Return ``<YYYY-MM-DD>-<seq>`` with seq one above the highest for ``day``."""
    prefix = day.strftime("%Y-%m-%d")
    max_seq = 0
    for note_id in existing_ids:
        head, sep, seq = note_id.rpartition("-")
        if not sep or head != prefix or not (seq.isascii() and seq.isdigit()):
            continue
        max_seq = max(max_seq, int(seq))
    return f"{prefix}-{max_seq + 1:03d}"


def slugify(title: str) -> str:
    ascii_lower = "".join(ch.lower() if ch.isascii() else "-" for ch in title)
    slug = _SLUG_SEPARATOR_RE.sub("-", ascii_lower).strip("-")
    return slug or SLUG_FALLBACK


def file_location(notes_dir: Path, day: str, slug: str, attempt: int = 1) -> Path:
    stem = f"{day}-{slug}" if attempt <= 1 else f"{day}-{slug}-{attempt}"
    return notes_dir / f"{stem}{NOTE_SUFFIX}"


def atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp.{os.getpid()}")
    try:
        tmp_path.write_text(content, encoding="utf-8")
        tmp_path.replace(path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
