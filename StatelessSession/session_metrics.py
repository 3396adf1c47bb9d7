"""
SESSION METRICS
===============
Prometheus counters for the session lifecycle.
"""

# FLOW:
# - increment_session_event() is called by the middleware at each decision point.
# - get_event_metrics_snapshot() reads current counts (admin/debug views, tests).
# HOW:
# - One labelled Counter, created lazily when PROMETHEUS_ENABLED is true.

from __future__ import annotations

import os
from typing import Dict

from prometheus_client import Counter


SESSION_EVENTS = (
    "unsealed",
    "unseal_failed",
    "started_empty",
    "extract_failed",
    "resealed",
    "skipped",
)

_SESSION_EVENTS_TOTAL = None


def _enabled() -> bool:
    return os.getenv("PROMETHEUS_ENABLED", "true").lower() == "true"


def _init_metrics() -> None:
    global _SESSION_EVENTS_TOTAL
    if _SESSION_EVENTS_TOTAL is not None or not _enabled():
        return
    _SESSION_EVENTS_TOTAL = Counter(
        "stateless_session_events_total",
        "Count of stateless session lifecycle events",
        ["event"],
    )


def increment_session_event(event: str, amount: int = 1) -> None:
    _init_metrics()
    if _SESSION_EVENTS_TOTAL is None:
        return
    _SESSION_EVENTS_TOTAL.labels(event=event).inc(amount)


def _counter_value(event: str) -> int:
    if _SESSION_EVENTS_TOTAL is None:
        return 0
    return int(_SESSION_EVENTS_TOTAL.labels(event=event)._value.get())


def get_event_metrics_snapshot(events: tuple[str, ...] = SESSION_EVENTS) -> Dict[str, int]:
    _init_metrics()
    return {event: _counter_value(event) for event in events}
