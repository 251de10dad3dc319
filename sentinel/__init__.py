"""Sentinel — evidence-chain journal, action log, Lark notifications, context handoff.

Pure stdlib.
"""

from __future__ import annotations

from sentinel.sentinel import (
    Sentinel,
    consume_buffer,
    default_sentinel,
    get_current_timestamp,
    push_semantic_context,
    record_action,
    write_log,
)

__all__ = [
    "Sentinel",
    "consume_buffer",
    "default_sentinel",
    "get_current_timestamp",
    "push_semantic_context",
    "record_action",
    "write_log",
]
