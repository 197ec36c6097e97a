"""Runtime settings for lexicon-store."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DB_PATH = Path.home() / ".lexicon_store.db"
DEFAULT_TIMEOUT = 5.0
DEFAULT_PER_PAGE = 100
MAX_PER_PAGE = 1000

# Proficiency levels, easiest first
SYMBOL_ORDER = ("a1", "a2", "b1", "b2", "c1")


@dataclass(frozen=True, slots=True)
class Settings:
    """Store location and I/O limits."""

    db_path: Path
    timeout: float
    per_page: int


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build settings from ``LEXICON_STORE_*`` environment variables."""
    env = os.environ if environ is None else environ

    db_path = Path(env.get("LEXICON_STORE_DB") or DEFAULT_DB_PATH).expanduser()
    try:
        timeout = float(env.get("LEXICON_STORE_TIMEOUT", DEFAULT_TIMEOUT))
    except ValueError:
        timeout = DEFAULT_TIMEOUT
    try:
        per_page = int(env.get("LEXICON_STORE_PER_PAGE", DEFAULT_PER_PAGE))
    except ValueError:
        per_page = DEFAULT_PER_PAGE
    per_page = max(1, min(MAX_PER_PAGE, per_page))

    return Settings(db_path=db_path, timeout=timeout, per_page=per_page)
