from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

NOTES_DIR = "notes"


@dataclass(frozen=True)
class Settings:
    notes_dir: Path
    log_level: str
    api_debug_log: bool


def load_settings() -> Settings:
    notes_dir = Path(os.environ.get("NOTES_DIR", NOTES_DIR)).resolve()
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    api_debug_log = os.environ.get("API_DEBUG_LOG", "false").lower() == "true"
    return Settings(
        notes_dir=notes_dir,
        log_level=log_level,
        api_debug_log=api_debug_log,
    )
