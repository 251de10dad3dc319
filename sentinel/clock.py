"""Clock — local date/hour and the canonical zh-CN timestamp (pure stdlib)."""

from __future__ import annotations

import datetime
from typing import Callable
from zoneinfo import ZoneInfo


class Clock:
    """Wall-clock access with an injectable source of "now".

    ``now_fn`` must return the process-local time (naive or aware).  The
    journal day and the notification window both follow the process's
    local clock; only the rendered timestamp is converted to *timezone*.
    """

    def __init__(
        self,
        timezone: str = "Asia/Shanghai",
        now_fn: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self.tz = ZoneInfo(timezone)
        self._now_fn = now_fn or datetime.datetime.now

    def now(self) -> datetime.datetime:
        return self._now_fn()

    def timestamp(self) -> str:
        """Render now as ``YYYY/M/D HH:MM:SS`` in the configured zone."""
        return format_timestamp(self.now(), self.tz)

    def today(self) -> str:
        """Local calendar date, ``YYYY-MM-DD``."""
        return self.now().date().isoformat()

    def hour(self) -> int:
        return self.now().hour

    def epoch_ms(self) -> int:
        return int(self.now().timestamp() * 1000)


def format_timestamp(moment: datetime.datetime, tz: ZoneInfo) -> str:
    # Naive datetimes are taken as local time by astimezone().
    t = moment.astimezone(tz)
    return f"{t.year}/{t.month}/{t.day} {t.hour:02d}:{t.minute:02d}:{t.second:02d}"
