"""Small JSON state files shared between independent processes.

Writes go to a temp file in the target's directory and are renamed over
the target, so a reader sees either the old or the new content.  Reads
never fail on missing or corrupt files.  Pure stdlib (POSIX: fcntl).
"""

from __future__ import annotations

import contextlib
import fcntl
import json
import logging
import os
import pathlib
import tempfile
from typing import Any, Iterator

log = logging.getLogger("candle.state_file")


def read_json(path: pathlib.Path, default: Any = None) -> Any:
    """Return the parsed content of *path*, or *default* if absent/corrupt."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return default
    try:
        return json.loads(text)
    except ValueError:
        log.warning("Discarding corrupt state file %s", path)
        return default


def write_json_atomic(path: pathlib.Path, data: Any, indent: int | None = None) -> None:
    """Replace *path* with *data* serialised as JSON, atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False, indent=indent)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


@contextlib.contextmanager
def locked(path: pathlib.Path, enabled: bool = True) -> Iterator[None]:
    """Hold an exclusive advisory lock on ``<path>.lock`` while inside.

    With *enabled* false this is a no-op: concurrent writers then race and
    the last one wins.
    """
    if not enabled:
        yield
        return
    lock_path = path.with_name(path.name + ".lock")
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with open(lock_path, "a") as fh:
        fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
