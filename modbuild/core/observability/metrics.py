from __future__ import annotations

from collections import Counter
from typing import Dict

from prometheus_client import Counter as PromCounter

# Named counters (custom)
_NAMED = Counter()

_PROM_PUBLISH_DECISIONS = PromCounter(
    "modbuild_publish_decisions_total",
    "Publish decisions by outcome",
    ["decision"],
)

_PROM_MANIFESTS_WRITTEN = PromCounter(
    "modbuild_manifests_written_total",
    "Module manifests written to disk",
)


def reset_metrics() -> None:
    """
    Test helper: clears the in-process counters to avoid cross-test leakage.
    Prometheus counters are process-global and are left alone.
    """
    _NAMED.clear()


def inc_named(name: str, value: int = 1) -> None:
    if not name:
        return
    _NAMED[name] += int(value)


def inc_publish_decision(decision: str) -> None:
    d = (decision or "unknown").lower()
    _NAMED[f"publish_{d}"] += 1
    _PROM_PUBLISH_DECISIONS.labels(decision=d).inc()


def inc_manifest_written() -> None:
    _NAMED["manifests_written"] += 1
    _PROM_MANIFESTS_WRITTEN.inc()


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
