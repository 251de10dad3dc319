"""Context handoff buffer — one JSON array on disk, drained in one go.

A producer process pushes timestamped context objects; a later consumer
takes the whole backlog and the file disappears.  Absent means "nothing
pending".  Corrupt content is discarded rather than reported.
"""

from __future__ import annotations

import contextlib
import copy
import logging
import pathlib
from typing import Iterator, Mapping

from sentinel.clock import Clock
from sentinel.state_file import locked, read_json, write_json_atomic

log = logging.getLogger("candle.context_buffer")


class ContextBuffer:
    def __init__(self, path: pathlib.Path, clock: Clock, locking: bool = False) -> None:
        self.path = path
        self.clock = clock
        self.locking = locking

    def _load(self) -> list | None:
        """Return the stored entries, [] if corrupt, None if absent."""
        if not self.path.exists():
            return None
        entries = read_json(self.path, default=[])
        if not isinstance(entries, list):
            log.warning("Context buffer %s is not a list, discarding", self.path)
            return []
        return entries

    def push(self, data: Mapping) -> int:
        """Append *data* (with a timestamp) and return the new backlog size."""
        with locked(self.path, self.locking):
            entries = self._load() or []
            entries.append({"timestamp": self.clock.timestamp(), **data})
            write_json_atomic(self.path, entries, indent=2)
        return len(entries)

    def peek(self) -> list:
        return self._load() or []

    def consume(self) -> list | None:
        """Take the whole backlog and delete the file (at-most-once).

        Returns None when nothing is pending.  Once this returns, the
        entries exist only in the caller's hands.
        """
        with locked(self.path, self.locking):
            entries = self._load()
            if entries is None:
                return None
            self.path.unlink(missing_ok=True)
        return entries or None

    @contextlib.contextmanager
    def drain(self) -> Iterator[list]:
        """Yield the backlog; delete it only if the block finishes cleanly.

        Entries pushed while the block runs are kept for the next drain.
        """
        snapshot = self.peek()
        yield copy.deepcopy(snapshot)
        if not snapshot:
            return
        with locked(self.path, self.locking):
            current = self._load() or []
            n = len(snapshot)
            remaining = current[n:] if current[:n] == snapshot else current
            if remaining:
                write_json_atomic(self.path, remaining, indent=2)
            else:
                self.path.unlink(missing_ok=True)
