"""Idle detection and suspend.

This module decides whether and when the host should suspend:
- Sliding window of CPU/GPU utilization samples with idle hysteresis
- Idle engine producing a status and gating reasons each tick
- Atomic state file shared with the idle checker and status readers
- Suspend executor with dry-run and inhibitor override

Usage:
    from dormant.idle import IdleEngine, StateStore, SuspendExecutor
    from dormant.core.config import IdleConfig

    config = IdleConfig()
    engine = IdleEngine(config)
    engine.add_metrics(cpu_util=3.0, gpu_util=1.0)

    state = engine.get_state()
    StateStore(config.state_file_path).save(state)
"""

from dormant.idle.errors import (
    IdleError,
    SampleCollectionFailed,
    InhibitorQueryFailed,
    SuspendBlocked,
    GatingBlocked,
    InhibitBlocked,
    SuspendCommandFailed,
    SuspendUnsupported,
    PersistenceFailed,
    StateLoadFailed,
    StateNotFound,
)
from dormant.idle.types import (
    IdleStatus,
    GatingReason,
    GatingReasons,
    MetricSample,
    IdleState,
)
from dormant.idle.window import SlidingWindow
from dormant.idle.engine import IdleEngine
from dormant.idle.state import StateStore
from dormant.idle.executor import SuspendExecutor

__all__ = [
    # Errors
    "IdleError",
    "SampleCollectionFailed",
    "InhibitorQueryFailed",
    "SuspendBlocked",
    "GatingBlocked",
    "InhibitBlocked",
    "SuspendCommandFailed",
    "SuspendUnsupported",
    "PersistenceFailed",
    "StateLoadFailed",
    "StateNotFound",

    # Types
    "IdleStatus",
    "GatingReason",
    "GatingReasons",
    "MetricSample",
    "IdleState",

    # Components
    "SlidingWindow",
    "IdleEngine",
    "StateStore",
    "SuspendExecutor",
]
