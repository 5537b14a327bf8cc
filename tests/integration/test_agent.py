"""Integration tests for the idle agent."""

import asyncio
import json
from dataclasses import replace

import pytest
from dormant.agent.agent import IdleAgent
from dormant.core.events import EventBus, IdleStateChanged, InhibitorsChanged
from dormant.idle.engine import IdleEngine
from dormant.idle.errors import PersistenceFailed
from dormant.idle.executor import SuspendExecutor
from dormant.idle.state import StateStore
from dormant.idle.types import IdleStatus


class FailingStore(StateStore):
    def save(self, state):
        raise PersistenceFailed("disk full")


@pytest.mark.asyncio
class TestIdleAgent:
    """Test tick processing and loop control."""

    @pytest.fixture
    def make_agent(self, test_config, metrics_source, inhibitor_registry, suspend_invoker, clock, temp_data_dir):
        def factory(**overrides):
            kwargs = dict(
                engine=IdleEngine(test_config.idle, clock=clock),
                executor=SuspendExecutor(test_config.idle, inhibitor_registry, suspend_invoker),
                metrics_log_path=temp_data_dir / "logs" / "metrics.log",
            )
            kwargs.update(overrides)
            return IdleAgent(test_config, metrics_source, asyncio.Event(), **kwargs)
        return factory

    async def test_tick_persists_state(self, make_agent, test_config):
        agent = make_agent()

        state = await agent.tick()

        assert state.status == IdleStatus.WARMING_UP
        loaded = StateStore(test_config.idle.state_file_path).load()
        assert loaded.status == IdleStatus.WARMING_UP
        assert loaded.gating_reasons.to_list() == ["warming_up"]

    async def test_warms_up_to_idle(self, make_agent, clock):
        agent = make_agent()

        for _ in range(3):
            state = await agent.tick()
            clock.advance(10)

        assert state.status == IdleStatus.IDLE
        assert state.gating_reasons.to_list() == ["below_timeout"]

    async def test_inhibit_merged_and_cleared(self, make_agent, inhibitor_registry, test_config):
        agent = make_agent()
        inhibitor_registry.inhibitors = ["backup"]

        state = await agent.tick()
        with open(test_config.idle.state_file_path) as f:
            on_disk = json.load(f)

        assert state.gating_reasons.to_list() == ["warming_up", "inhibit"]
        assert "inhibit" in on_disk["gating_reasons"]

        inhibitor_registry.inhibitors = []
        state = await agent.tick()

        assert "inhibit" not in state.gating_reasons.to_list()

    async def test_inhibitor_failure_does_not_abort(self, make_agent, inhibitor_registry, test_config):
        agent = make_agent()
        inhibitor_registry.fail = True

        state = await agent.tick()

        assert state is not None
        assert StateStore(test_config.idle.state_file_path).exists()
        assert agent.health_check()["inhibitor_check_failed"] is True

        inhibitor_registry.fail = False
        await agent.tick()
        assert agent.health_check()["inhibitor_check_failed"] is False

    async def test_sample_failure_skips_tick(self, make_agent, metrics_source, test_config):
        agent = make_agent()
        metrics_source.fail = True

        assert await agent.tick() is None
        assert agent.engine.window.sample_count() == 0
        assert not StateStore(test_config.idle.state_file_path).exists()

    async def test_persistence_failure_continues(self, make_agent, test_config):
        agent = make_agent(state_store=FailingStore(test_config.idle.state_file_path))

        first = await agent.tick()
        second = await agent.tick()

        assert first is not None
        assert second is not None
        assert agent.engine.window.sample_count() == 2

    async def test_metrics_log_written(self, make_agent, metrics_source, temp_data_dir):
        metrics_source.samples = [(12.5, 40.0)]
        agent = make_agent()

        await agent.tick()

        lines = (temp_data_dir / "logs" / "metrics.log").read_text().splitlines()
        assert len(lines) == 1
        record = json.loads(lines[0])
        assert record["cpu_util"] == 12.5
        assert record["gpu_util"] == 40.0
        assert "ts" in record

    async def test_publishes_transitions(self, make_agent, inhibitor_registry, clock):
        event_bus = EventBus()
        changes = []
        inhibitor_events = []
        event_bus.subscribe(IdleStateChanged, changes.append)
        event_bus.subscribe(InhibitorsChanged, inhibitor_events.append)
        agent = make_agent(event_bus=event_bus)
        inhibitor_registry.inhibitors = ["gdm"]

        for _ in range(3):
            await agent.tick()
            clock.advance(10)
        await event_bus.stop()

        assert [(c.old_status, c.new_status) for c in changes] == [
            ("", "warming_up"),
            ("warming_up", "idle"),
        ]
        assert len(inhibitor_events) == 1
        assert inhibitor_events[0].inhibitors == ["gdm"]

    async def test_run_stops_on_cancel(self, make_agent, metrics_source):
        agent = make_agent()

        task = asyncio.create_task(agent.run())
        await asyncio.sleep(0.05)
        agent.cancel_event.set()
        await asyncio.wait_for(task, timeout=1.0)

        assert metrics_source.call_count >= 1
        assert metrics_source.shutdown_called is True
        assert agent.health_check()["running"] is False

    async def test_run_survives_unexpected_error(self, make_agent, metrics_source):
        agent = make_agent()
        calls = []

        def broken():
            calls.append(1)
            raise RuntimeError("boom")

        metrics_source.collect_sample = broken

        task = asyncio.create_task(agent.run())
        await asyncio.sleep(0.05)
        agent.cancel_event.set()
        await asyncio.wait_for(task, timeout=1.0)

        assert len(calls) >= 2

    async def test_does_not_suspend(self, make_agent, suspend_invoker, test_config, clock):
        config = replace(test_config.idle, idle_timeout_seconds=10)
        agent = make_agent(engine=IdleEngine(config, clock=clock))

        for _ in range(5):
            await agent.tick()
            clock.advance(10)

        assert suspend_invoker.suspend_calls == 0
