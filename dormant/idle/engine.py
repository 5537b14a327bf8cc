"""Idle detection engine."""

import logging
from typing import Optional

from dormant.core.config import IdleConfig
from dormant.idle.types import (
    GatingReason,
    GatingReasons,
    IdleState,
    IdleStatus,
    MetricSample,
    utc_now,
)
from dormant.idle.window import Clock, SlidingWindow

logger = logging.getLogger(__name__)


class IdleEngine:
    """Turns window statistics into an IdleState and a suspend decision.

    The engine knows nothing about inhibitors; merging the inhibit reason
    is the caller's job.
    """

    def __init__(self, config: IdleConfig, clock: Optional[Clock] = None):
        self.config = config
        self._clock = clock or utc_now
        self.window = SlidingWindow(
            config.window_seconds,
            config.min_samples_required,
            clock=self._clock,
        )

    def add_metrics(self, cpu_util: float, gpu_util: float) -> None:
        """Record one CPU/GPU utilization sample."""
        self.window.add_sample(MetricSample(
            timestamp=self._clock(),
            cpu_util_pct=cpu_util,
            gpu_util_pct=gpu_util,
        ))

        logger.debug(
            f"Added metrics sample (cpu={cpu_util:.1f}%, gpu={gpu_util:.1f}%, "
            f"samples={self.window.sample_count()})"
        )

    def get_state(self) -> IdleState:
        """Evaluate the window. Advances idle tracking; call once per tick."""
        if not self.window.has_enough_samples():
            return IdleState(
                status=IdleStatus.WARMING_UP,
                idle_for_seconds=0,
                threshold_seconds=self.config.idle_timeout_seconds,
                gating_reasons=GatingReasons([GatingReason.WARMING_UP]),
                last_update=self._clock(),
            )

        cpu_threshold = self.config.cpu_threshold_pct
        gpu_threshold = self.config.gpu_threshold_pct

        idle, cpu_avg, gpu_avg = self.window.is_idle(cpu_threshold, gpu_threshold)
        idle_for = int(self.window.get_idle_duration(cpu_threshold, gpu_threshold).total_seconds())

        gating = GatingReasons()
        if not idle:
            status = IdleStatus.ACTIVE
            if cpu_avg >= cpu_threshold:
                gating.add(GatingReason.HIGH_CPU)
            if gpu_avg >= gpu_threshold:
                gating.add(GatingReason.HIGH_GPU)
        else:
            status = IdleStatus.IDLE
            if idle_for < self.config.idle_timeout_seconds:
                gating.add(GatingReason.BELOW_TIMEOUT)

        state = IdleState(
            status=status,
            idle_for_seconds=idle_for,
            threshold_seconds=self.config.idle_timeout_seconds,
            cpu_idle_pct=100.0 - cpu_avg,
            gpu_idle_pct=100.0 - gpu_avg,
            gating_reasons=gating,
            last_update=self._clock(),
        )

        logger.debug(
            f"Calculated idle state: status={state.status.value} "
            f"idle_for={state.idle_for_seconds}s "
            f"cpu_idle={state.cpu_idle_pct:.1f}% gpu_idle={state.gpu_idle_pct:.1f}% "
            f"gating=[{state.gating_reasons}]"
        )
        return state

    def should_suspend(self, state: IdleState) -> bool:
        """True only for an idle, ungated state past its threshold."""
        if state.status != IdleStatus.IDLE:
            return False

        if state.gating_reasons:
            return False

        return state.idle_for_seconds >= state.threshold_seconds

    def reset(self) -> None:
        self.window.reset()
        logger.info("Idle engine reset")
