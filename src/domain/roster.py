"""Read the tracked-player list."""

from __future__ import annotations

import re
from pathlib import Path

_COMMENT_RE = re.compile(r"#|//")


def parse_roster(text: str) -> list[str]:
    """One player id or nickname per line; `#` and `//` start comments."""
    players: list[str] = []
    seen: set[str] = set()
    for line in text.splitlines():
        token = _COMMENT_RE.split(line, maxsplit=1)[0].strip()
        if not token or token in seen:
            continue
        seen.add(token)
        players.append(token)
    return players


def load_roster(path: Path) -> list[str]:
    if not path.exists():
        raise FileNotFoundError(f"Roster file not found: {path}")
    return parse_roster(path.read_text(encoding="utf-8"))


__all__ = ["load_roster", "parse_roster"]
