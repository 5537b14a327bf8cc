"""Suspend execution with gating and inhibitor checks."""

import logging
from typing import List, Optional, Tuple

from dormant.core.config import IdleConfig
from dormant.core.interfaces import IInhibitorRegistry, ISuspendInvoker
from dormant.idle.errors import (
    GatingBlocked,
    InhibitBlocked,
    InhibitorQueryFailed,
    SuspendCommandFailed,
)
from dormant.idle.types import GatingReason, IdleState
from dormant.power.systemd import SystemctlSuspendInvoker, SystemdInhibitorRegistry

logger = logging.getLogger(__name__)


class SuspendExecutor:
    """Runs the suspend gates and, if they all pass, suspends the host."""

    def __init__(
        self,
        config: IdleConfig,
        inhibitor_registry: Optional[IInhibitorRegistry] = None,
        suspend_invoker: Optional[ISuspendInvoker] = None,
    ):
        self.config = config
        self.inhibitor_registry = inhibitor_registry or SystemdInhibitorRegistry()
        self.suspend_invoker = suspend_invoker or SystemctlSuspendInvoker()

    def execute(self, state: IdleState) -> None:
        self.execute_with_options(state, ignore_inhibitors=False)

    def execute_with_options(self, state: IdleState, ignore_inhibitors: bool = False) -> None:
        """Attempt suspend for `state`.

        Args:
            state: Current idle state. Its gating reasons are updated in place
                (inhibit removed when ignored, added when inhibitors block).
            ignore_inhibitors: Skip the inhibitor check and drop any inhibit reason.

        Raises:
            GatingBlocked: State still carries gating reasons.
            InhibitBlocked: An active inhibitor holds sleep.
            SuspendCommandFailed: The suspend command failed.
        """
        if ignore_inhibitors:
            state.gating_reasons.discard(GatingReason.INHIBIT)

        if state.gating_reasons:
            logger.info(
                f"Suspend skipped due to gating reasons "
                f"(idle_for={state.idle_for_seconds}s, gating=[{state.gating_reasons}])"
            )
            raise GatingBlocked(state.gating_reasons.to_list())

        if not self.config.enable_suspend:
            logger.info(f"Suspend skipped (dry-run mode, idle_for={state.idle_for_seconds}s)")
            return

        if not ignore_inhibitors:
            try:
                has_inhibit, inhibitors = self.active_inhibitors()
            except InhibitorQueryFailed as e:
                # A broken check must not block suspend forever
                logger.warning(f"Failed to check inhibitors, assuming none: {e}")
                has_inhibit, inhibitors = False, []

            if has_inhibit:
                logger.info(
                    f"Suspend skipped due to inhibitors "
                    f"(idle_for={state.idle_for_seconds}s, inhibitors={inhibitors})"
                )
                state.gating_reasons.add(GatingReason.INHIBIT)
                raise InhibitBlocked(inhibitors)
        else:
            logger.info("Skipping inhibitor check (force mode)")

        logger.info(
            f"Suspend requested (idle_for={state.idle_for_seconds}s, "
            f"threshold={state.threshold_seconds}s, "
            f"cpu_idle={state.cpu_idle_pct:.1f}%, gpu_idle={state.gpu_idle_pct:.1f}%)"
        )

        try:
            self.suspend_invoker.suspend()
        except SuspendCommandFailed as e:
            logger.error(f"Failed to execute suspend: {e}")
            raise

        logger.info("Suspend executed successfully")

    def active_inhibitors(self) -> Tuple[bool, List[str]]:
        """Query the inhibitor registry. Raises InhibitorQueryFailed."""
        inhibitors = self.inhibitor_registry.list_inhibitors()
        return bool(inhibitors), inhibitors

    def check_can_suspend(self) -> None:
        """Preflight check; raises SuspendUnsupported."""
        self.suspend_invoker.can_suspend()
