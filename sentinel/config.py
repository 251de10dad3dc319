"""Sentinel configuration — load [sentinel] from config.toml + lark.env secrets.

Pure stdlib.  Every path the sentinel touches comes from here; components
receive a SentinelConfig instead of reading module-level constants.
"""

from __future__ import annotations

import os
import pathlib
import tomllib
from typing import NamedTuple

_DEFAULT_TIMEZONE = "Asia/Shanghai"
_WEBHOOK_KEY = "LARK_WEBHOOK_URL"


class SentinelConfig(NamedTuple):
    project_root: pathlib.Path
    docs_dir: pathlib.Path
    logs_dir: pathlib.Path
    raw_logs_dir: pathlib.Path
    secrets_path: pathlib.Path
    lock_path: pathlib.Path
    buffer_path: pathlib.Path
    timezone: str = _DEFAULT_TIMEZONE
    notify_start_hour: int = 10      # inclusive, local time
    notify_end_hour: int = 20        # exclusive, local time
    notify_cooldown_sec: int = 300
    notify_max_chars: int = 1000
    notify_timeout_sec: float = 10.0
    file_locking: bool = False       # flock around read-modify-write

    def webhook_url(self) -> str:
        """Return the configured webhook URL, or "" when notifications are off."""
        return parse_env_file(self.secrets_path).get(_WEBHOOK_KEY, "")


def parse_env_file(env_path: pathlib.Path) -> dict[str, str]:
    """Parse a simple KEY=VALUE file into a dict.

    Ignores comments (#) and blank lines, strips optional surrounding
    quotes, skips empty values.  A missing file yields an empty dict.
    """
    if not env_path.is_file():
        return {}
    values: dict[str, str] = {}
    for line in env_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]
        if key and value:
            values[key] = value
    return values


def _resolve(project_root: pathlib.Path, value: str) -> pathlib.Path:
    path = pathlib.Path(value).expanduser()
    return path if path.is_absolute() else project_root / path


def load_sentinel_config(project_root: pathlib.Path) -> SentinelConfig:
    """Load sentinel config from config/config.toml, falling back to defaults.

    The file is optional; so is every key in it.
    """
    project_root = pathlib.Path(project_root).resolve()
    toml: dict = {}
    cfg_path = project_root / "config" / "config.toml"
    if cfg_path.is_file():
        with open(cfg_path, "rb") as f:
            toml = tomllib.load(f)

    s = toml.get("sentinel", {})
    notify = s.get("notify", {})

    docs_dir = _resolve(project_root, s.get("docs_dir", "docs"))
    logs_dir = _resolve(project_root, s.get("logs_dir", "docs/memory/logs"))
    return SentinelConfig(
        project_root=project_root,
        docs_dir=docs_dir,
        logs_dir=logs_dir,
        raw_logs_dir=_resolve(project_root, s.get("raw_logs_dir", str(logs_dir / "raw"))),
        secrets_path=_resolve(project_root, s.get("secrets_path", "docs/secrets/lark.env")),
        lock_path=_resolve(project_root, s.get("lock_path", ".last_notif.json")),
        buffer_path=_resolve(project_root, s.get("buffer_path", ".context_buffer.json")),
        timezone=s.get("timezone", _DEFAULT_TIMEZONE),
        notify_start_hour=notify.get("start_hour", 10),
        notify_end_hour=notify.get("end_hour", 20),
        notify_cooldown_sec=notify.get("cooldown_sec", 300),
        notify_max_chars=notify.get("max_chars", 1000),
        notify_timeout_sec=notify.get("timeout_sec", 10.0),
        file_locking=s.get("file_locking", False),
    )


def default_project_root() -> pathlib.Path:
    """Project root for the module-level helpers: $CANDLE_ROOT or the cwd."""
    env_root = os.environ.get("CANDLE_ROOT", "")
    return pathlib.Path(env_root) if env_root else pathlib.Path.cwd()
