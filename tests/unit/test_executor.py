"""Unit tests for the suspend executor."""

from dataclasses import replace

import pytest
from dormant.idle.errors import (
    GatingBlocked,
    InhibitBlocked,
    InhibitorQueryFailed,
    SuspendCommandFailed,
    SuspendUnsupported,
)
from dormant.idle.executor import SuspendExecutor
from dormant.idle.types import GatingReason, GatingReasons, IdleState, IdleStatus


def idle_state(*reasons):
    return IdleState(
        status=IdleStatus.IDLE,
        idle_for_seconds=600,
        threshold_seconds=300,
        cpu_idle_pct=99.0,
        gpu_idle_pct=99.0,
        gating_reasons=GatingReasons(reasons),
    )


class TestSuspendExecutor:
    """Test gate ordering and external calls."""

    @pytest.fixture
    def executor(self, idle_config, inhibitor_registry, suspend_invoker):
        return SuspendExecutor(idle_config, inhibitor_registry, suspend_invoker)

    def test_suspends_when_clear(self, executor, inhibitor_registry, suspend_invoker):
        executor.execute(idle_state())

        assert inhibitor_registry.call_count == 1
        assert suspend_invoker.suspend_calls == 1

    def test_gating_blocks_before_external_calls(self, executor, inhibitor_registry, suspend_invoker):
        with pytest.raises(GatingBlocked) as exc_info:
            executor.execute(idle_state(GatingReason.BELOW_TIMEOUT))

        assert exc_info.value.reasons == ["below_timeout"]
        assert inhibitor_registry.call_count == 0
        assert suspend_invoker.suspend_calls == 0

    def test_dry_run(self, idle_config, inhibitor_registry, suspend_invoker):
        executor = SuspendExecutor(
            replace(idle_config, enable_suspend=False), inhibitor_registry, suspend_invoker
        )

        executor.execute_with_options(idle_state())

        assert suspend_invoker.suspend_calls == 0
        assert inhibitor_registry.call_count == 0

    def test_dry_run_still_gated(self, idle_config, inhibitor_registry, suspend_invoker):
        executor = SuspendExecutor(
            replace(idle_config, enable_suspend=False), inhibitor_registry, suspend_invoker
        )

        with pytest.raises(GatingBlocked):
            executor.execute(idle_state(GatingReason.HIGH_GPU))

    def test_ignore_inhibitors_filters_reason(self, executor, inhibitor_registry, suspend_invoker):
        inhibitor_registry.inhibitors = ["backup"]
        state = idle_state(GatingReason.INHIBIT)

        executor.execute_with_options(state, ignore_inhibitors=True)

        assert not state.gating_reasons
        assert inhibitor_registry.call_count == 0
        assert suspend_invoker.suspend_calls == 1

    def test_ignore_inhibitors_keeps_other_reasons(self, executor, suspend_invoker):
        state = idle_state(GatingReason.INHIBIT, GatingReason.BELOW_TIMEOUT)

        with pytest.raises(GatingBlocked) as exc_info:
            executor.execute_with_options(state, ignore_inhibitors=True)

        assert exc_info.value.reasons == ["below_timeout"]
        assert suspend_invoker.suspend_calls == 0

    def test_stale_inhibit_reason_blocks_without_override(self, executor, suspend_invoker):
        with pytest.raises(GatingBlocked):
            executor.execute(idle_state(GatingReason.INHIBIT))

        assert suspend_invoker.suspend_calls == 0

    def test_active_inhibitor_blocks(self, executor, inhibitor_registry, suspend_invoker):
        inhibitor_registry.inhibitors = ["ollama", "rsync"]
        state = idle_state()

        with pytest.raises(InhibitBlocked) as exc_info:
            executor.execute(state)

        assert exc_info.value.inhibitors == ["ollama", "rsync"]
        assert state.gating_reasons.to_list() == ["inhibit"]
        assert suspend_invoker.suspend_calls == 0

    def test_inhibitor_query_failure_does_not_block(self, executor, inhibitor_registry, suspend_invoker):
        inhibitor_registry.fail = True

        executor.execute(idle_state())

        assert suspend_invoker.suspend_calls == 1

    def test_suspend_command_failure(self, executor, suspend_invoker):
        suspend_invoker.fail = True

        with pytest.raises(SuspendCommandFailed) as exc_info:
            executor.execute(idle_state())

        assert "Access denied" in str(exc_info.value)
        assert exc_info.value.output == "Access denied"

    def test_active_inhibitors(self, executor, inhibitor_registry):
        assert executor.active_inhibitors() == (False, [])

        inhibitor_registry.inhibitors = ["gdm"]
        assert executor.active_inhibitors() == (True, ["gdm"])

    def test_active_inhibitors_propagates_failure(self, executor, inhibitor_registry):
        inhibitor_registry.fail = True

        with pytest.raises(InhibitorQueryFailed):
            executor.active_inhibitors()

    def test_check_can_suspend(self, executor, suspend_invoker):
        executor.check_can_suspend()

        suspend_invoker.supported = False
        with pytest.raises(SuspendUnsupported):
            executor.check_can_suspend()
