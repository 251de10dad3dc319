"""Journal store — one append-only markdown document per local day.

Narrative events land here, optionally carrying the list of sources that
were searched to produce them.  Write errors propagate: a lost journal
entry is a hole in the audit trail.
"""

from __future__ import annotations

import pathlib
from typing import Mapping, Sequence

from sentinel.clock import Clock

_DEFAULT_TITLE = "系统记录"


def ensure_document(path: pathlib.Path, header: str) -> bool:
    """Create *path* with *header* unless it exists.  Returns True if created.

    Uses exclusive create, so a concurrent creator simply wins the race.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(path, "x", encoding="utf-8") as fh:
            fh.write(header)
    except FileExistsError:
        return False
    return True


def append_text(path: pathlib.Path, text: str) -> None:
    with open(path, "a", encoding="utf-8") as fh:
        fh.write(text)


def format_sources(sources: Sequence[str] | None) -> str:
    if not sources:
        return ""
    joined = " | ".join(f"`{s}`" for s in sources)
    return f"\n> **[Sources Searched]**: {joined}\n"


class JournalStore:
    """Daily narrative journal under *logs_dir*."""

    def __init__(self, logs_dir: pathlib.Path, clock: Clock) -> None:
        self.logs_dir = logs_dir
        self.clock = clock

    def path_for(self, day: str | None = None) -> pathlib.Path:
        return self.logs_dir / f"{day or self.clock.today()}.md"

    def ensure_journal(self) -> pathlib.Path:
        """Return today's journal path, creating it with a title if needed."""
        day = self.clock.today()
        path = self.path_for(day)
        ensure_document(path, f"# {day}: 操作日志\n\n")
        return path

    def append(self, text: str) -> pathlib.Path:
        path = self.ensure_journal()
        append_text(path, text)
        return path

    def format_entry(
        self,
        title: str | None,
        body: str,
        sources: Sequence[str] | None = None,
    ) -> str:
        return (
            f"\n## 🔄 {title or _DEFAULT_TITLE} - {self.clock.timestamp()}\n"
            f"{format_sources(sources)}\n{body}\n\n---\n"
        )

    def write_entry(self, content: Mapping) -> pathlib.Path:
        """Append a narrative record built from ``{title?, body, sources?}``."""
        entry = self.format_entry(
            content.get("title"),
            content.get("body", ""),
            content.get("sources"),
        )
        return self.append(entry)
