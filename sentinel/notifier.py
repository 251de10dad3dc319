"""Lark webhook notifications — gated, deduplicated, throttled, never raises.

Pure stdlib (urllib.request + json).  The only cross-process memory is the
lock file recording the last notification that was actually delivered.
"""

from __future__ import annotations

import json
import logging
import math
import urllib.error
import urllib.request
from typing import Callable, NamedTuple

from sentinel.clock import Clock
from sentinel.config import SentinelConfig
from sentinel.state_file import locked, read_json, write_json_atomic

log = logging.getLogger("candle.notifier")

_TITLE_BANNER = "🧠 大脑同步: "
_DEFAULT_TITLE = "系统记录"

DELIVERED = "delivered"
SUPPRESSED = "suppressed"
FAILED = "failed"


class DeliveryResult(NamedTuple):
    status: str
    reason: str = ""

    @property
    def delivered(self) -> bool:
        return self.status == DELIVERED


class NotificationLock(NamedTuple):
    timestamp: int = 0   # epoch ms of the last delivery
    body: str = ""


def read_lock(path) -> NotificationLock:
    """Load the notification lock; anything unreadable counts as empty."""
    raw = read_json(path, default=None)
    if not isinstance(raw, dict):
        return NotificationLock()
    ts = raw.get("timestamp", 0)
    body = raw.get("body", "")
    if (
        isinstance(ts, bool)
        or not isinstance(ts, (int, float))
        or not math.isfinite(ts)
        or not isinstance(body, str)
    ):
        log.warning("Ignoring malformed notification lock %s", path)
        return NotificationLock()
    return NotificationLock(int(ts), body)


def write_lock(path, lock: NotificationLock) -> None:
    write_json_atomic(path, lock._asdict())


class LarkNotifier:
    """POST "post"-type messages to a Lark custom-bot webhook."""

    def __init__(self, webhook_url: str, timeout: float = 10.0) -> None:
        self.webhook_url = webhook_url
        self.timeout = timeout

    @staticmethod
    def build_payload(title: str | None, body: str, max_chars: int = 1000) -> dict:
        return {
            "msg_type": "post",
            "content": {
                "post": {
                    "zh_cn": {
                        "title": f"{_TITLE_BANNER}{title or _DEFAULT_TITLE}",
                        "content": [[{"tag": "text", "text": body[:max_chars]}]],
                    },
                },
            },
        }

    def post(self, payload: dict) -> int:
        """Send *payload* and return the HTTP status.  Transport errors raise."""
        data = json.dumps(payload).encode("utf-8")
        req = urllib.request.Request(
            self.webhook_url,
            data=data,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return resp.status
        except urllib.error.HTTPError as exc:
            return exc.code


class NotificationGateway:
    """Decide whether a notification goes out, send it, remember it."""

    def __init__(
        self,
        config: SentinelConfig,
        clock: Clock,
        notifier_factory: Callable[..., LarkNotifier] = LarkNotifier,
    ) -> None:
        self.config = config
        self.clock = clock
        self._notifier_factory = notifier_factory

    def in_active_hours(self) -> bool:
        hour = self.clock.hour()
        return self.config.notify_start_hour <= hour < self.config.notify_end_hour

    def notify(self, title: str | None, body: str) -> DeliveryResult:
        """Run the gates in order and deliver if all pass."""
        try:
            result = self._notify(title, body)
        except Exception as exc:
            log.warning("Lark notification failed: %s", exc)
            return DeliveryResult(FAILED, str(exc))
        if result.status == SUPPRESSED:
            log.debug("Notification suppressed: %s", result.reason)
        elif result.status == FAILED:
            log.warning("Lark notification failed: %s", result.reason)
        return result

    def _notify(self, title: str | None, body: str) -> DeliveryResult:
        webhook_url = self.config.webhook_url()
        if not webhook_url:
            return DeliveryResult(SUPPRESSED, "not configured")

        if not self.in_active_hours():
            return DeliveryResult(SUPPRESSED, "outside active hours")

        lock_path = self.config.lock_path
        with locked(lock_path, self.config.file_locking):
            last = read_lock(lock_path)
            trimmed = body.strip()
            if trimmed == last.body.strip():
                return DeliveryResult(SUPPRESSED, "duplicate body")

            now_ms = self.clock.epoch_ms()
            if now_ms - last.timestamp < self.config.notify_cooldown_sec * 1000:
                return DeliveryResult(SUPPRESSED, "cooldown")

            notifier = self._notifier_factory(webhook_url, timeout=self.config.notify_timeout_sec)
            payload = notifier.build_payload(title, body, self.config.notify_max_chars)
            status = notifier.post(payload)
            if not 200 <= status < 300:
                return DeliveryResult(FAILED, f"http {status}")

            write_lock(lock_path, NotificationLock(now_ms, trimmed))
        log.info("Lark notification sent: %s", title or _DEFAULT_TITLE)
        return DeliveryResult(DELIVERED)
