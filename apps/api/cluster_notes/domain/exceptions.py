from __future__ import annotations

from pathlib import Path


class DecodeError(ValueError):
    pass


class MissingBlockStartError(DecodeError):
    def __init__(self) -> None:
        super().__init__("Missing YAML frontmatter start.")


class MissingBlockEndError(DecodeError):
    def __init__(self) -> None:
        super().__init__("Missing YAML frontmatter end.")


class MetadataParseError(DecodeError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid frontmatter: {reason}")
        self.reason = reason


class SaveError(Exception):
    pass


class EmptyTitleError(SaveError):
    def __init__(self) -> None:
        super().__init__("Add a '# Title' line to save.")


class RenameFailedError(SaveError):
    def __init__(self, source: Path, target: Path, cause: OSError) -> None:
        super().__init__(f"Failed to rename file: {cause}")
        self.source = source
        self.target = target
        self.cause = cause


class WriteFailedError(SaveError):
    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Failed to save: {cause}")
        self.path = path
        self.cause = cause


class DeleteError(Exception):
    pass


class DeleteIoError(DeleteError):
    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Failed to delete: {cause}")
        self.path = path
        self.cause = cause


class NoteNotFoundError(LookupError):
    def __init__(self, note_id: str) -> None:
        super().__init__(f"Note not found: {note_id}")
        self.note_id = note_id


class StoreClosedError(RuntimeError):
    def __init__(self) -> None:
        super().__init__("Note store is closed.")
