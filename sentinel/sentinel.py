"""Sentinel — the evidence-chain logging surface used by agents and scripts.

Wires the journal, action recorder, notification gateway and context
buffer from one SentinelConfig.  The module-level helpers operate on a
default instance rooted at $CANDLE_ROOT (or the working directory).
"""

from __future__ import annotations

import functools
import logging
import pathlib
import threading
from typing import Callable, Mapping

from sentinel.actions import ActionRecorder
from sentinel.clock import Clock
from sentinel.config import SentinelConfig, default_project_root, load_sentinel_config
from sentinel.context_buffer import ContextBuffer
from sentinel.journal import JournalStore
from sentinel.notifier import DeliveryResult, LarkNotifier, NotificationGateway

log = logging.getLogger("candle.sentinel")


class Sentinel:
    """One agent, one log tree, one webhook."""

    def __init__(
        self,
        config: SentinelConfig,
        clock: Clock | None = None,
        notifier_factory: Callable[..., LarkNotifier] | None = None,
    ) -> None:
        self.config = config
        self.clock = clock or Clock(config.timezone)
        self.journal = JournalStore(config.logs_dir, self.clock)
        self.actions = ActionRecorder(config.raw_logs_dir, self.clock)
        self.gateway = NotificationGateway(
            config, self.clock, notifier_factory or LarkNotifier,
        )
        self.buffer = ContextBuffer(config.buffer_path, self.clock, config.file_locking)

    def get_current_timestamp(self) -> str:
        return self.clock.timestamp()

    def record_action(self, action: Mapping) -> pathlib.Path:
        return self.actions.record_action(action)

    def write_log(self, content: Mapping, notify: bool = False) -> threading.Thread | None:
        """Append a narrative entry; optionally notify in the background.

        The journal write happens first and its errors propagate.  The
        returned thread (if any) runs the notification; its outcome never
        reaches the caller.
        """
        self.journal.write_entry(content)
        if not notify:
            return None
        thread = threading.Thread(
            target=self.send_notification,
            args=(content.get("title"), content.get("body", "")),
            name="lark-notify",
        )
        thread.start()
        return thread

    def send_notification(self, title: str | None, body: str) -> DeliveryResult:
        return self.gateway.notify(title, body)

    def push_semantic_context(self, data: Mapping) -> int:
        return self.buffer.push(data)

    def consume_buffer(self) -> list | None:
        return self.buffer.consume()


@functools.lru_cache(maxsize=1)
def default_sentinel() -> Sentinel:
    return Sentinel(load_sentinel_config(default_project_root()))


def get_current_timestamp() -> str:
    return default_sentinel().get_current_timestamp()


def record_action(action: Mapping) -> pathlib.Path:
    return default_sentinel().record_action(action)


def write_log(content: Mapping, notify: bool = False) -> threading.Thread | None:
    return default_sentinel().write_log(content, notify=notify)


def push_semantic_context(data: Mapping) -> int:
    return default_sentinel().push_semantic_context(data)


def consume_buffer() -> list | None:
    return default_sentinel().consume_buffer()
