from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Dict


@dataclass
class DuoNudgeSnapshot:
    outcomes: Dict[str, Dict[str, int]]
    skip_reasons: Dict[str, int]
    delivery: Dict[str, int]

    def as_dict(self) -> Dict[str, object]:
        return {
            "outcomes": {key: dict(value) for key, value in self.outcomes.items()},
            "skip_reasons": dict(self.skip_reasons),
            "delivery": dict(self.delivery),
        }


class DuoNudgeObservabilityStore:
    """Collect duo nudge decisions and push delivery telemetry."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._sent: Dict[str, int] = defaultdict(int)
        self._skipped: Dict[str, int] = defaultdict(int)
        self._skip_reasons: Dict[str, int] = defaultdict(int)
        self._delivery: Dict[str, int] = defaultdict(int)

    def record_outcome(self, nudge_type: str, *, sent: bool, reason: str | None = None) -> None:
        with self._lock:
            if sent:
                self._sent[nudge_type] += 1
                return
            self._skipped[nudge_type] += 1
            self._skip_reasons[reason or "unknown"] += 1

    def record_delivery(self, *, delivered: int, failed: int) -> None:
        with self._lock:
            self._delivery["delivered"] += delivered
            self._delivery["failed"] += failed

    def record_pruned_destinations(self, count: int) -> None:
        with self._lock:
            self._delivery["pruned_destinations"] += count

    def snapshot(self) -> DuoNudgeSnapshot:
        with self._lock:
            outcomes = {
                "sent": dict(self._sent),
                "skipped": dict(self._skipped),
            }
            skip_reasons = dict(self._skip_reasons)
            delivery = dict(self._delivery)
        return DuoNudgeSnapshot(outcomes=outcomes, skip_reasons=skip_reasons, delivery=delivery)

    def reset(self) -> None:
        with self._lock:
            self._sent.clear()
            self._skipped.clear()
            self._skip_reasons.clear()
            self._delivery.clear()


_STORE = DuoNudgeObservabilityStore()


def get_duo_nudge_store() -> DuoNudgeObservabilityStore:
    return _STORE


__all__ = ["get_duo_nudge_store", "DuoNudgeObservabilityStore", "DuoNudgeSnapshot"]
