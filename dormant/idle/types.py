"""Idle detection data model."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List


class IdleStatus(str, Enum):
    """Idle status of the host."""
    WARMING_UP = "warming_up"
    ACTIVE = "active"
    IDLE = "idle"


class GatingReason(str, Enum):
    """Conditions that prevent suspend."""
    WARMING_UP = "warming_up"
    HIGH_CPU = "high_cpu"
    HIGH_GPU = "high_gpu"
    BELOW_TIMEOUT = "below_timeout"
    INHIBIT = "inhibit"


class GatingReasons:
    """Ordered, duplicate-free set of gating reasons.

    Keeps insertion order so the persisted array reads in the order the
    reasons were raised.
    """

    def __init__(self, reasons: Iterable[GatingReason] = ()):
        self._reasons: List[GatingReason] = []
        for reason in reasons:
            self.add(reason)

    @classmethod
    def parse(cls, values: Iterable[str]) -> "GatingReasons":
        """Build from raw strings; unknown reasons raise ValueError."""
        return cls(GatingReason(value) for value in values)

    def add(self, reason: GatingReason) -> None:
        reason = GatingReason(reason)
        if reason not in self._reasons:
            self._reasons.append(reason)

    def discard(self, reason: GatingReason) -> None:
        reason = GatingReason(reason)
        if reason in self._reasons:
            self._reasons.remove(reason)

    def union(self, other: Iterable[GatingReason]) -> "GatingReasons":
        return GatingReasons(list(self._reasons) + list(other))

    def copy(self) -> "GatingReasons":
        return GatingReasons(self._reasons)

    def to_list(self) -> List[str]:
        return [reason.value for reason in self._reasons]

    def __contains__(self, reason: object) -> bool:
        return reason in self._reasons

    def __iter__(self) -> Iterator[GatingReason]:
        return iter(list(self._reasons))

    def __len__(self) -> int:
        return len(self._reasons)

    def __bool__(self) -> bool:
        return bool(self._reasons)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, GatingReasons):
            return self._reasons == other._reasons
        return NotImplemented

    def __repr__(self) -> str:
        return f"GatingReasons({self.to_list()})"

    def __str__(self) -> str:
        return ", ".join(self.to_list())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MetricSample:
    """Single utilization sample for idle calculation."""
    timestamp: datetime
    cpu_util_pct: float
    gpu_util_pct: float


@dataclass
class IdleState:
    """Current idle decision, as persisted in idle_state.json."""
    status: IdleStatus
    idle_for_seconds: int = 0
    threshold_seconds: int = 0
    cpu_idle_pct: float = 0.0
    gpu_idle_pct: float = 0.0
    gating_reasons: GatingReasons = field(default_factory=GatingReasons)
    last_update: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "idle_for_s": self.idle_for_seconds,
            "threshold_s": self.threshold_seconds,
            "cpu_idle_pct": self.cpu_idle_pct,
            "gpu_idle_pct": self.gpu_idle_pct,
            "gating_reasons": self.gating_reasons.to_list(),
            "last_update": self.last_update.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IdleState":
        last_update = datetime.fromisoformat(data["last_update"].replace("Z", "+00:00"))
        if last_update.tzinfo is None:
            last_update = last_update.replace(tzinfo=timezone.utc)

        return cls(
            status=IdleStatus(data["status"]),
            idle_for_seconds=int(data.get("idle_for_s", 0)),
            threshold_seconds=int(data.get("threshold_s", 0)),
            cpu_idle_pct=float(data.get("cpu_idle_pct", 0.0)),
            gpu_idle_pct=float(data.get("gpu_idle_pct", 0.0)),
            gating_reasons=GatingReasons.parse(data.get("gating_reasons") or []),
            last_update=last_update,
        )
