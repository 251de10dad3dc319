"""Tests for sentinel.context_buffer — ContextBuffer."""

from __future__ import annotations

import datetime
import json
import threading
from zoneinfo import ZoneInfo

import pytest

from sentinel.clock import Clock
from sentinel.context_buffer import ContextBuffer

_NOW = datetime.datetime(2026, 2, 26, 14, 3, 5, tzinfo=ZoneInfo("Asia/Shanghai"))


def _buffer(tmp_path, locking=False):
    return ContextBuffer(tmp_path / ".context_buffer.json", Clock(now_fn=lambda: _NOW), locking)


class TestPush:
    def test_creates_artifact(self, tmp_path):
        buf = _buffer(tmp_path)
        assert buf.push({"topic": "a"}) == 1
        stored = json.loads(buf.path.read_text())
        assert stored == [{"timestamp": "2026/2/26 14:03:05", "topic": "a"}]

    def test_appends_in_order(self, tmp_path):
        buf = _buffer(tmp_path)
        buf.push({"n": 1})
        assert buf.push({"n": 2}) == 2
        assert [e["n"] for e in buf.peek()] == [1, 2]

    def test_payload_timestamp_wins(self, tmp_path):
        buf = _buffer(tmp_path)
        buf.push({"timestamp": "custom", "n": 1})
        assert buf.peek()[0]["timestamp"] == "custom"

    def test_corrupt_artifact_is_discarded(self, tmp_path):
        buf = _buffer(tmp_path)
        buf.path.write_text("[{broken")
        assert buf.push({"n": 1}) == 1
        assert [e["n"] for e in buf.peek()] == [1]

    def test_non_list_artifact_is_discarded(self, tmp_path):
        buf = _buffer(tmp_path)
        buf.path.write_text(json.dumps({"n": 0}))
        buf.push({"n": 1})
        assert [e["n"] for e in buf.peek()] == [1]

    def test_no_temp_files_left(self, tmp_path):
        buf = _buffer(tmp_path)
        buf.push({"n": 1})
        buf.push({"n": 2})
        assert sorted(p.name for p in tmp_path.iterdir()) == [".context_buffer.json"]

    def test_with_locking(self, tmp_path):
        buf = _buffer(tmp_path, locking=True)
        buf.push({"n": 1})
        assert buf.consume()[0]["n"] == 1

    def test_concurrent_writers_lose_nothing_with_locking(self, tmp_path):
        def writer(worker):
            buf = _buffer(tmp_path, locking=True)
            for i in range(25):
                buf.push({"worker": worker, "i": i})

        threads = [threading.Thread(target=writer, args=(w,)) for w in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        entries = _buffer(tmp_path).consume()
        assert len(entries) == 100
        assert {(e["worker"], e["i"]) for e in entries} == {(w, i) for w in range(4) for i in range(25)}


class TestConsume:
    def test_absent_returns_none(self, tmp_path):
        assert _buffer(tmp_path).consume() is None

    def test_round_trip(self, tmp_path):
        buf = _buffer(tmp_path)
        buf.push({"name": "a"})
        buf.push({"name": "b"})
        entries = buf.consume()
        assert [e["name"] for e in entries] == ["a", "b"]
        assert all(e["timestamp"] == "2026/2/26 14:03:05" for e in entries)
        assert not buf.path.exists()
        assert buf.consume() is None

    def test_corrupt_artifact_returns_none_and_is_removed(self, tmp_path):
        buf = _buffer(tmp_path)
        buf.path.write_text("not json")
        assert buf.consume() is None
        assert not buf.path.exists()


class TestDrain:
    def test_deletes_after_clean_exit(self, tmp_path):
        buf = _buffer(tmp_path)
        buf.push({"n": 1})
        with buf.drain() as entries:
            assert [e["n"] for e in entries] == [1]
        assert not buf.path.exists()

    def test_keeps_artifact_when_block_raises(self, tmp_path):
        buf = _buffer(tmp_path)
        buf.push({"n": 1})
        with pytest.raises(RuntimeError):
            with buf.drain():
                raise RuntimeError("processing failed")
        assert [e["n"] for e in buf.peek()] == [1]

    def test_preserves_entries_pushed_during_block(self, tmp_path):
        buf = _buffer(tmp_path)
        buf.push({"n": 1})
        with buf.drain() as entries:
            assert len(entries) == 1
            buf.push({"n": 2})
        assert [e["n"] for e in buf.peek()] == [2]

    def test_consumer_emptying_yielded_list_still_deletes(self, tmp_path):
        buf = _buffer(tmp_path)
        buf.push({"n": 1})
        buf.push({"n": 2})
        with buf.drain() as entries:
            while entries:
                entries.pop(0)
        assert buf.peek() == []
        assert not buf.path.exists()

    def test_partial_mutation_keeps_later_pushes_only(self, tmp_path):
        buf = _buffer(tmp_path)
        buf.push({"n": 1})
        buf.push({"n": 2})
        with buf.drain() as entries:
            entries[0]["n"] = 99
            entries.append({"n": "local"})
            buf.push({"n": 3})
        assert [e["n"] for e in buf.peek()] == [3]

    def test_empty_buffer_yields_empty_list(self, tmp_path):
        buf = _buffer(tmp_path)
        with buf.drain() as entries:
            assert entries == []
        assert not buf.path.exists()
