"""Long-lived idle monitoring agent."""

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from dormant.core.config import SystemConfig
from dormant.core.events import EventBus, IdleStateChanged, InhibitorsChanged
from dormant.core.interfaces import IMetricsSource
from dormant.idle.engine import IdleEngine
from dormant.idle.errors import InhibitorQueryFailed, PersistenceFailed, SampleCollectionFailed
from dormant.idle.executor import SuspendExecutor
from dormant.idle.state import StateStore
from dormant.idle.types import GatingReason, IdleState, IdleStatus
from dormant.sensors.writer import MetricsWriter

logger = logging.getLogger(__name__)


class IdleAgent:
    """Samples utilization every tick and persists the idle decision.

    The agent never suspends the host itself; the short-lived checker acts
    on the state file it writes.
    """

    def __init__(
        self,
        config: SystemConfig,
        metrics_source: IMetricsSource,
        cancel_event: asyncio.Event,
        engine: Optional[IdleEngine] = None,
        executor: Optional[SuspendExecutor] = None,
        state_store: Optional[StateStore] = None,
        event_bus: Optional[EventBus] = None,
        metrics_log_path: Optional[Path] = None,
    ):
        self.config = config
        self.metrics_source = metrics_source
        self.cancel_event = cancel_event
        self.engine = engine or IdleEngine(config.idle)
        self.executor = executor or SuspendExecutor(config.idle)
        self.state_store = state_store or StateStore(config.idle.state_file_path)
        self.event_bus = event_bus

        self.metrics_log_path = metrics_log_path
        self._metrics_writer = MetricsWriter() if metrics_log_path else None

        self._start_time = time.monotonic()
        self._last_state: Optional[IdleState] = None
        self._last_inhibitors: List[str] = []
        self._inhibitor_check_failed = False
        self._metrics_write_failed = False
        self._running = False

        logger.info("Idle agent initialized")

    async def run(self) -> None:
        """Tick until the cancel event is set."""
        interval = self.config.agent.tick_interval_seconds
        self._running = True
        logger.info(f"Agent started (pid={os.getpid()}, tick_interval={interval}s)")

        try:
            while not self.cancel_event.is_set():
                try:
                    await self.tick()
                except Exception as e:
                    logger.error(f"Agent tick error: {e}", exc_info=True)

                try:
                    await asyncio.wait_for(self.cancel_event.wait(), timeout=interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            self.metrics_source.shutdown()
            logger.info(f"Agent stopped (uptime={self.uptime_seconds():.0f}s)")

    async def tick(self) -> Optional[IdleState]:
        """Run one sample/evaluate/persist cycle.

        Returns the persisted state, or None if no sample could be taken.
        """
        try:
            cpu_util, gpu_util = await asyncio.to_thread(self.metrics_source.collect_sample)
        except SampleCollectionFailed as e:
            logger.warning(f"Failed to collect metrics: {e}")
            return None

        self.engine.add_metrics(cpu_util, gpu_util)
        state = self.engine.get_state()

        await self._merge_inhibitors(state)
        self._write_metrics(state, cpu_util, gpu_util)

        try:
            self.state_store.save(state)
        except PersistenceFailed as e:
            logger.warning(f"Failed to save idle state: {e}")

        await self._publish_transition(state)
        self._last_state = state

        logger.debug(
            f"Idle state updated: status={state.status.value} "
            f"idle_for={state.idle_for_seconds}s threshold={state.threshold_seconds}s "
            f"gating=[{state.gating_reasons}]"
        )
        return state

    async def _merge_inhibitors(self, state: IdleState) -> None:
        try:
            has_inhibit, inhibitors = await asyncio.to_thread(self.executor.active_inhibitors)
        except InhibitorQueryFailed as e:
            if not self._inhibitor_check_failed:
                logger.warning(f"Failed to inspect sleep inhibitors: {e}")
                self._inhibitor_check_failed = True
            return

        self._inhibitor_check_failed = False

        if has_inhibit:
            state.gating_reasons.add(GatingReason.INHIBIT)
            logger.debug(f"Active inhibitors detected (count={len(inhibitors)})")
        else:
            state.gating_reasons.discard(GatingReason.INHIBIT)

        if inhibitors != self._last_inhibitors:
            self._last_inhibitors = list(inhibitors)
            if self.event_bus:
                await self.event_bus.publish(InhibitorsChanged(
                    active=has_inhibit,
                    inhibitors=list(inhibitors),
                ))

    def _write_metrics(self, state: IdleState, cpu_util: float, gpu_util: float) -> None:
        if not self._metrics_writer:
            return

        try:
            self._metrics_writer.write(state.last_update, cpu_util, gpu_util, self.metrics_log_path)
        except OSError as e:
            if not self._metrics_write_failed:
                logger.warning(f"Failed to write metrics sample to {self.metrics_log_path}: {e}")
                self._metrics_write_failed = True
            return

        if self._metrics_write_failed:
            logger.info(f"Metrics logging restored ({self.metrics_log_path})")
        self._metrics_write_failed = False

    async def _publish_transition(self, state: IdleState) -> None:
        old_status = self._last_state.status if self._last_state else None
        if old_status == state.status:
            return

        logger.info(
            f"Idle status {old_status.value if old_status else 'none'} -> {state.status.value}"
        )
        if self.event_bus:
            await self.event_bus.publish(IdleStateChanged(
                old_status=old_status.value if old_status else "",
                new_status=state.status.value,
                idle_for_seconds=state.idle_for_seconds,
                gating_reasons=state.gating_reasons.to_list(),
            ))

    def uptime_seconds(self) -> float:
        return time.monotonic() - self._start_time

    def health_check(self) -> Dict[str, Any]:
        """Read-only agent status; does not advance idle tracking."""
        window = self.engine.window
        last_status = self._last_state.status if self._last_state else IdleStatus.WARMING_UP
        return {
            "running": self._running,
            "uptime_seconds": self.uptime_seconds(),
            "samples": window.sample_count(),
            "warmed_up": window.has_enough_samples(),
            "status": last_status.value,
            "inhibitor_check_failed": self._inhibitor_check_failed,
        }
