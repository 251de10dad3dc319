"""Tests for sentinel.journal — JournalStore."""

from __future__ import annotations

import datetime
import os
from zoneinfo import ZoneInfo

import pytest

from sentinel.clock import Clock
from sentinel.journal import JournalStore, ensure_document, format_sources

_NOW = datetime.datetime(2026, 2, 26, 9, 5, 3, tzinfo=ZoneInfo("Asia/Shanghai"))


def _store(tmp_path):
    return JournalStore(tmp_path / "docs" / "memory" / "logs", Clock(now_fn=lambda: _NOW))


class TestEnsureJournal:
    def test_creates_dirs_and_header(self, tmp_path):
        store = _store(tmp_path)
        path = store.ensure_journal()
        assert path == tmp_path / "docs" / "memory" / "logs" / "2026-02-26.md"
        assert path.read_text() == "# 2026-02-26: 操作日志\n\n"

    def test_idempotent_never_truncates(self, tmp_path):
        store = _store(tmp_path)
        path = store.ensure_journal()
        with open(path, "a", encoding="utf-8") as fh:
            fh.write("existing entry\n")
        for _ in range(5):
            assert store.ensure_journal() == path
        assert path.read_text().count("操作日志") == 1
        assert path.read_text().endswith("existing entry\n")

    def test_ensure_document_reports_creation(self, tmp_path):
        path = tmp_path / "a" / "b.md"
        assert ensure_document(path, "# h\n") is True
        assert ensure_document(path, "# other\n") is False
        assert path.read_text() == "# h\n"


class TestFormatEntry:
    def test_without_sources(self, tmp_path):
        entry = _store(tmp_path).format_entry("Sync", "did things")
        assert entry == "\n## 🔄 Sync - 2026/2/26 09:05:03\n\ndid things\n\n---\n"
        assert "Sources Searched" not in entry

    def test_with_sources(self, tmp_path):
        entry = _store(tmp_path).format_entry("Sync", "body", ["docs/a.md", "grep foo"])
        assert "\n> **[Sources Searched]**: `docs/a.md` | `grep foo`\n" in entry

    def test_empty_sources_omitted(self):
        assert format_sources([]) == ""
        assert format_sources(None) == ""

    def test_default_title(self, tmp_path):
        entry = _store(tmp_path).format_entry(None, "body")
        assert entry.startswith("\n## 🔄 系统记录 - ")


class TestWriteEntry:
    def test_appends_in_order(self, tmp_path):
        store = _store(tmp_path)
        store.write_entry({"title": "one", "body": "first"})
        path = store.write_entry({"title": "two", "body": "second", "sources": ["x"]})
        text = path.read_text()
        assert text.startswith("# 2026-02-26: 操作日志\n\n")
        assert text.index("first") < text.index("second")
        assert text.count("---\n") == 2

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores file permissions")
    def test_write_failure_propagates(self, tmp_path):
        store = _store(tmp_path)
        path = store.ensure_journal()
        path.chmod(0o444)
        try:
            with pytest.raises(PermissionError):
                store.write_entry({"body": "lost?"})
        finally:
            path.chmod(0o644)

    def test_unwritable_logs_dir_propagates(self, tmp_path):
        blocker = tmp_path / "docs"
        blocker.write_text("not a directory")
        store = _store(tmp_path)
        with pytest.raises(OSError):
            store.write_entry({"body": "x"})
