from __future__ import annotations

from collections import Counter
from typing import Dict

from prometheus_client import Counter as PromCounter

# In-process counters (snapshot-able in tests)
_DERIVATIONS = Counter()

_PROM_DERIVATIONS = PromCounter(
    "stagebuilder_derivations_total",
    "Total record derivations",
    ["outcome"],
)

_PROM_STAGES = PromCounter(
    "stagebuilder_stages_generated_total",
    "Total stage classes generated (chain + terminal)",
)


def reset_metrics() -> None:
    """
    Test helper: clears in-process counters to avoid cross-test leakage.
    Prometheus counters are monotonic and are left alone.
    """
    _DERIVATIONS.clear()


def inc_derivation(outcome: str, stages: int = 0) -> None:
    """
    Record one derivation attempt. outcome: "ok" | "<input shape code>" | "overflow".
    """
    o = outcome or "unknown"
    _DERIVATIONS["derivations_total"] += 1
    _DERIVATIONS[f"outcome_{o}"] += 1
    _PROM_DERIVATIONS.labels(outcome=o).inc()
    if stages > 0:
        _DERIVATIONS["stages_generated"] += stages
        _PROM_STAGES.inc(stages)


def snapshot() -> Dict[str, int]:
    return dict(_DERIVATIONS)
