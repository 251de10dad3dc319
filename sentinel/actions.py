"""Action recorder — the audit channel for physical agent actions.

Every command the agent runs is written to ``candy-<date>.md`` together
with the paths it relied on.  An action without citations is still
recorded, but flagged as unverified inference.
"""

from __future__ import annotations

import pathlib
from typing import Mapping, Sequence

from sentinel.clock import Clock
from sentinel.journal import append_text, ensure_document

UNVERIFIED_MARKER = "⚠️ 逻辑推演 (无物理引用)"
_DEFAULT_TASK = "未命名"


def format_citations(citations: Sequence[str] | None) -> str:
    if not citations:
        return UNVERIFIED_MARKER
    return ", ".join(f"`{c}`" for c in citations)


def is_evidence_backed(action: Mapping) -> bool:
    return bool(action.get("citations"))


class ActionRecorder:
    """Append-only per-day action log under *raw_dir*."""

    def __init__(self, raw_dir: pathlib.Path, clock: Clock) -> None:
        self.raw_dir = raw_dir
        self.clock = clock

    def path_for(self, day: str | None = None) -> pathlib.Path:
        return self.raw_dir / f"candy-{day or self.clock.today()}.md"

    def ensure_log(self) -> pathlib.Path:
        day = self.clock.today()
        path = self.path_for(day)
        ensure_document(path, f"# 小烛行动日志 - {day}\n\n")
        return path

    def format_entry(self, action: Mapping) -> str:
        command = action.get("command") or ""
        glyph = "✅" if action.get("success") else "❌"
        return (
            f"\n### ⚡️ 物理操作 - {self.clock.timestamp()}\n"
            f"- **任务**: {action.get('task') or _DEFAULT_TASK}\n"
            f"- **参考**: {format_citations(action.get('citations'))}\n"
            f"- **执行**: `{command}`\n"
            f"- **结果**: {glyph}\n"
            "---\n"
        )

    def record_action(self, action: Mapping) -> pathlib.Path:
        """Record ``{task?, citations?, command, success}`` and return the log path."""
        path = self.ensure_log()
        append_text(path, self.format_entry(action))
        return path
