from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from .domain.entities import NoteMetadata, canonical_tags
from .domain.exceptions import MetadataParseError, MissingBlockEndError, MissingBlockStartError

DELIMITER = "---"
_BLOCK_START = f"{DELIMITER}\n"
_BLOCK_END = f"\n{DELIMITER}\n"
_BLOCK_END_AT_EOF = f"\n{DELIMITER}"


def split_frontmatter(text: str) -> tuple[str, str]:
    """Split ``text`` into the raw YAML block and the body.

    The closing delimiter may be followed by a newline or sit at the very end
    of the text. Leading whitespace of the body is dropped.
    """
    if not text.startswith(_BLOCK_START):
        raise MissingBlockStartError()
    start = len(_BLOCK_START)

    end = text.find(_BLOCK_END, start)
    if end != -1:
        return text[start:end], text[end + len(_BLOCK_END) :].lstrip()

    end = text.find(_BLOCK_END_AT_EOF, start)
    if end != -1:
        return text[start:end], text[end + len(_BLOCK_END_AT_EOF) :].lstrip()

    raise MissingBlockEndError()


def parse_metadata(yaml_block: str) -> NoteMetadata:
    try:
        parsed = yaml.safe_load(yaml_block)
    except yaml.YAMLError as e:
        raise MetadataParseError(f"yaml_error: {e}") from e
    if not isinstance(parsed, dict):
        raise MetadataParseError("frontmatter_not_mapping")
    try:
        return NoteMetadata.model_validate(parsed)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "frontmatter" for err in e.errors())
        raise MetadataParseError(f"invalid fields: {fields}") from e


def decode(text: str) -> tuple[NoteMetadata, str]:
    yaml_block, body = split_frontmatter(text)
    meta = parse_metadata(yaml_block)
    if body.endswith("\n"):
        body = body[:-1]
    return meta, body


def encode(meta: NoteMetadata, body: str) -> str:
    yaml_text = yaml.safe_dump(meta.model_dump(), sort_keys=False, allow_unicode=True)
    return f"{_BLOCK_START}{yaml_text}{DELIMITER}\n\n{body}\n"


def decode_file(path: Path) -> tuple[NoteMetadata, str]:
    return decode(path.read_text(encoding="utf-8"))


def parse_tags(raw: str) -> list[str]:
    cleaned = raw.strip()
    cleaned = cleaned.removeprefix("[").removesuffix("]")
    return canonical_tags(t.strip() for t in cleaned.split(",") if t.strip())


def parse_title_and_tags(draft: str) -> tuple[str, list[str]]:
    """Extract the title and tag list from editor text.

    The first ``# `` heading is the title. A ``tags:`` line (any case) holds a
    comma separated list, optionally in brackets; a later line replaces an
    earlier one.
    """
    title = ""
    tags: list[str] = []
    for line in draft.splitlines():
        trimmed = line.strip()
        if not title and trimmed.startswith("# "):
            title = trimmed[2:].strip()
        if trimmed.lower().startswith("tags:"):
            tags = parse_tags(trimmed[5:])
    return title, tags
