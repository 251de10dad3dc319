"""Docs tree reports: index gaps, health checks, structure overview."""

from __future__ import annotations

import pathlib
import re
from typing import NamedTuple

from doctools.scan import (
    Frontmatter,
    classify,
    index_links,
    iter_markdown,
    read_frontmatter,
    router_links,
    sidebar_links,
)

_LAST_UPDATED_RE = re.compile(r"Last Updated: (\d{4}-\d{2}-\d{2})")

# Entry pages: indexed implicitly, never "weak".
_ENTRY_PAGES = frozenset({"router.md", "index.md"})

REQUIRED_INDEX_FILES = (
    "router.md",
    "index.md",
    "about.md",
    "tech_stack.md",
    "snippets/index.md",
)

HEALTH_CATEGORIES = ("rules", "skills", "agents", "memory")


class UnindexedFile(NamedTuple):
    path: str
    frontmatter: Frontmatter


class DirectoryCounts(NamedTuple):
    files: int = 0
    core: int = 0       # frontmatter with a high-priority tag
    fragment: int = 0   # frontmatter, no high-priority tag


class IndexReport(NamedTuple):
    total: int
    indexed: list[str]
    unindexed: list[UnindexedFile]
    weak: list[str]
    directories: dict[str, DirectoryCounts]

    @property
    def ok(self) -> bool:
        return not self.unindexed


class HealthReport(NamedTuple):
    total: int
    missing_frontmatter: list[str]
    router_last_updated: str | None
    router_is_current: bool
    journal_files: list[str]
    unreferenced: list[str]
    categories: dict[str, int]

    @property
    def ok(self) -> bool:
        return not self.missing_frontmatter and not self.unreferenced


class CategoryInfo(NamedTuple):
    kind: str
    files: list[str]


class StructureReport(NamedTuple):
    total: int
    categories: dict[str, CategoryInfo]
    missing_index_files: list[str]

    def files_of_kind(self, kind: str) -> list[str]:
        return [f for info in self.categories.values() if info.kind == kind for f in info.files]

    @property
    def ok(self) -> bool:
        return not self.missing_index_files


def index_report(docs_dir: pathlib.Path) -> IndexReport:
    """Which markdown files are reachable from router/index/sidebar."""
    files = iter_markdown(docs_dir)
    sidebar = sidebar_links(docs_dir)
    linked = set(router_links(docs_dir)) | set(index_links(docs_dir)) | set(sidebar)

    indexed, unindexed, weak = [], [], []
    directories: dict[str, DirectoryCounts] = {}
    for rel in files:
        fm = read_frontmatter(docs_dir, rel)
        category, _ = classify(rel)
        counts = directories.get(category, DirectoryCounts())
        directories[category] = counts._replace(
            files=counts.files + 1,
            core=counts.core + (fm.has_frontmatter and fm.high_priority),
            fragment=counts.fragment + (fm.has_frontmatter and not fm.high_priority),
        )
        if rel not in linked:
            unindexed.append(UnindexedFile(rel, fm))
            continue
        indexed.append(rel)
        if rel not in sidebar and rel not in _ENTRY_PAGES:
            weak.append(rel)
    return IndexReport(len(files), indexed, unindexed, weak, directories)


def health_report(docs_dir: pathlib.Path, today: str) -> HealthReport:
    files = iter_markdown(docs_dir)

    missing = [
        rel for rel in files
        if not (docs_dir / rel).read_text(encoding="utf-8", errors="replace").startswith("---")
    ]

    last_updated = None
    router = docs_dir / "router.md"
    if router.is_file():
        m = _LAST_UPDATED_RE.search(router.read_text(encoding="utf-8", errors="replace"))
        if m:
            last_updated = m.group(1)

    journal_dir = docs_dir / "memory" / "journal"
    journal = sorted(p.name for p in journal_dir.glob("*.md")) if journal_dir.is_dir() else []

    referenced = set(router_links(docs_dir, ("router.md", "index.md"))) | set(sidebar_links(docs_dir))
    unreferenced = [
        rel for rel in files
        if rel not in referenced and rel not in _ENTRY_PAGES and not rel.startswith("archive/")
    ]

    categories = {name: 0 for name in HEALTH_CATEGORIES}
    categories["archives"] = 0
    for rel in files:
        top = rel.split("/")[0]
        if top == "archive" and "logs" in rel.split("/"):
            categories["archives"] += 1
        elif top in categories:
            categories[top] += 1

    return HealthReport(
        total=len(files),
        missing_frontmatter=missing,
        router_last_updated=last_updated,
        router_is_current=last_updated == today,
        journal_files=journal,
        unreferenced=unreferenced,
        categories=categories,
    )


def structure_report(docs_dir: pathlib.Path) -> StructureReport:
    files = iter_markdown(docs_dir)
    categories: dict[str, CategoryInfo] = {}
    for rel in files:
        category, kind = classify(rel)
        if category not in categories:
            categories[category] = CategoryInfo(kind, [])
        categories[category].files.append(rel)
    missing = [name for name in REQUIRED_INDEX_FILES if not (docs_dir / name).is_file()]
    return StructureReport(len(files), categories, missing)
