"""Short-lived idle check, run by an external timer."""

import logging
from typing import Optional

from dormant.core.config import IdleConfig
from dormant.idle.engine import IdleEngine
from dormant.idle.errors import IdleError, PersistenceFailed, StateLoadFailed
from dormant.idle.executor import SuspendExecutor
from dormant.idle.state import StateStore
from dormant.idle.types import GatingReason

logger = logging.getLogger(__name__)


def idle_check(
    config: IdleConfig,
    ignore_inhibitors: bool = False,
    state_store: Optional[StateStore] = None,
    executor: Optional[SuspendExecutor] = None,
) -> bool:
    """Decide from the persisted snapshot alone whether to suspend.

    Returns True if the executor ran to completion (suspend or dry-run),
    False if no suspend was due. Executor errors are re-raised after the
    state, with any gating changes, is written back.
    """
    logger.info("Idle check started")

    state_store = state_store or StateStore(config.state_file_path)
    executor = executor or SuspendExecutor(config)
    engine = IdleEngine(config)

    try:
        state = state_store.load()
    except StateLoadFailed as e:
        logger.warning(f"Failed to load idle state: {e}")
        logger.info("Idle check completed (no state)")
        return False

    if ignore_inhibitors:
        state.gating_reasons.discard(GatingReason.INHIBIT)

    logger.info(
        f"Idle state loaded: status={state.status.value} "
        f"idle_for={state.idle_for_seconds}s threshold={state.threshold_seconds}s "
        f"gating=[{state.gating_reasons}]"
    )

    if not engine.should_suspend(state):
        logger.info(
            f"Suspend not required (status={state.status.value}, "
            f"idle_for={state.idle_for_seconds}s, threshold={state.threshold_seconds}s)"
        )
        logger.info("Idle check completed")
        return False

    logger.info(
        f"System should suspend (idle_for={state.idle_for_seconds}s, "
        f"threshold={state.threshold_seconds}s)"
    )

    try:
        executor.execute_with_options(state, ignore_inhibitors=ignore_inhibitors)
    except IdleError as e:
        logger.error(f"Suspend did not run: {e}")
        try:
            state_store.save(state)
        except PersistenceFailed as save_error:
            logger.warning(f"Failed to persist updated state: {save_error}")
        raise

    try:
        state_store.save(state)
    except PersistenceFailed as e:
        logger.warning(f"Failed to persist updated state: {e}")

    logger.info("Idle check completed")
    return True
