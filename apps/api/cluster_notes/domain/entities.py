from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from ..util import parse_timestamp

UNKNOWN_DATE = "unknown-date"


class SortMode(str, Enum):
    RECENT = "recent"
    TITLE = "title"


def canonical_tags(tags) -> list[str]:
    return sorted(set(tags))


class NoteMetadata(BaseModel):
    """Frontmatter of a note file.

    ``tags`` is always held deduplicated and sorted so the serialized form is
    stable.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    title: str
    tags: list[str]
    created_at: str
    updated_at: str

    @field_validator("tags", mode="after")
    @classmethod
    def _canonical_tags(cls, value: list[str]) -> list[str]:
        return canonical_tags(value)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _timestamp_as_text(cls, value):
        # yaml.safe_load resolves unquoted timestamps to datetime objects.
        if isinstance(value, datetime):
            return value.isoformat()
        return value

    @property
    def date(self) -> str:
        created = parse_timestamp(self.created_at)
        if created is None:
            return UNKNOWN_DATE
        return created.date().isoformat()


@dataclass
class Note:
    metadata: NoteMetadata
    body: str
    location: Path

    @property
    def id(self) -> str:
        return self.metadata.id

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def tags(self) -> list[str]:
        return self.metadata.tags

    @property
    def created_at(self) -> str:
        return self.metadata.created_at

    @property
    def updated_at(self) -> str:
        return self.metadata.updated_at

    def summary(self) -> NoteSummary:
        return NoteSummary(
            id=self.id,
            title=self.title,
            tags=list(self.tags),
            created_at=self.created_at,
            updated_at=self.updated_at,
            path=str(self.location),
        )


@dataclass(frozen=True)
class NoteSummary:
    id: str
    title: str
    tags: list[str]
    created_at: str
    updated_at: str
    path: str


@dataclass(frozen=True)
class LoadDiagnostic:
    path: str
    cause: str

    @property
    def message(self) -> str:
        return f"{self.path}: {self.cause}"
