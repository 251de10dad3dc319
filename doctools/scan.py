"""Read-only scans over the docs/ markdown tree.

Finds markdown files, parses the bits of frontmatter we care about, and
collects the link targets that router.md, index.md and the VitePress
sidebar point at.  Pure stdlib.
"""

from __future__ import annotations

import json
import pathlib
import re
from typing import Iterable, NamedTuple

_FRONTMATTER_RE = re.compile(r"^---\n(.*?)\n---", re.DOTALL)
_TAGS_RE = re.compile(r"tags?:\s*(\[.+\])")
_ROUTER_LINK_RE = re.compile(r"docs/[^)\n]+?\.md")
_INDEX_LINK_RE = re.compile(r"""link: ["']/([^"']+\.md)["']""")
_SIDEBAR_LINK_RE = re.compile(r"""link: ["']/([a-z\-/]+\.md)["']""")

_HIGH_PRIORITY_TAGS = frozenset({"core", "rule", "skill"})

SIDEBAR_CONFIG = pathlib.PurePosixPath(".vitepress/config.mjs")


class Frontmatter(NamedTuple):
    has_frontmatter: bool
    tags: tuple[str, ...] = ()

    @property
    def high_priority(self) -> bool:
        return any(t in _HIGH_PRIORITY_TAGS for t in self.tags)


def iter_markdown(docs_dir: pathlib.Path) -> list[str]:
    """Return every ``*.md`` under *docs_dir* as sorted relative POSIX paths."""
    if not docs_dir.is_dir():
        return []
    return sorted(p.relative_to(docs_dir).as_posix() for p in docs_dir.rglob("*.md") if p.is_file())


def _parse_tag_list(raw: str) -> tuple[str, ...]:
    try:
        value = json.loads(raw)
    except ValueError:
        # YAML flow style without quotes: [core, notes]
        value = [part.strip().strip("'\"") for part in raw[1:-1].split(",")]
    if not isinstance(value, list):
        return ()
    return tuple(str(v) for v in value if str(v))


def parse_frontmatter(text: str) -> Frontmatter:
    m = _FRONTMATTER_RE.match(text)
    if not m:
        return Frontmatter(False)
    tags = _TAGS_RE.search(m.group(1))
    if not tags:
        return Frontmatter(True)
    return Frontmatter(True, _parse_tag_list(tags.group(1)))


def read_frontmatter(docs_dir: pathlib.Path, rel: str) -> Frontmatter:
    try:
        text = (docs_dir / rel).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return Frontmatter(False)
    return parse_frontmatter(text)


def _read(path: pathlib.Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace") if path.is_file() else ""


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def router_links(docs_dir: pathlib.Path, names: Iterable[str] = ("router.md",)) -> list[str]:
    """``docs/...md`` references in the given pages, relative to docs/."""
    found = []
    for name in names:
        for match in _ROUTER_LINK_RE.findall(_read(docs_dir / name)):
            rel = match[len("docs/"):]
            if rel:
                found.append(rel)
    return _unique(found)


def index_links(docs_dir: pathlib.Path) -> list[str]:
    return _unique(_INDEX_LINK_RE.findall(_read(docs_dir / "index.md")))


def sidebar_links(docs_dir: pathlib.Path) -> list[str]:
    return _unique(_SIDEBAR_LINK_RE.findall(_read(docs_dir / SIDEBAR_CONFIG)))


def suggest_destination(rel: str) -> str:
    """Archive bucket an unindexed file should probably move to."""
    if "journal" in rel or "2026-" in rel:
        return "archive/logs/"
    if "temp" in rel or "draft" in rel:
        return "archive/temp/"
    if "ops/skill-sync" in rel:
        return "archive/cleanup/"
    if "example" in rel or "demo" in rel:
        return "archive/examples/"
    return "archive/others/"


def classify(rel: str) -> tuple[str, str]:
    """Return ``(category, type)`` for a docs-relative path."""
    parts = rel.split("/")
    category = parts[0] if len(parts) > 1 else "root"
    dirs = set(parts[:-1])
    if category == "memory" and "journal" in dirs:
        kind = "log"
    elif category == "retrospectives":
        kind = "archive"
    elif category == "secrets":
        kind = "security"
    elif dirs & {"temp", "draft", "backup"}:
        kind = "temp"
    elif dirs & {"examples", "demo"}:
        kind = "example"
    elif category == "snippets":
        kind = "snippet"
    elif category in ("public", "creative", "persona_refs"):
        kind = "asset"
    elif category == "checklists":
        kind = "resource"
    else:
        kind = "content"
    return category, kind
