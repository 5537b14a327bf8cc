"""Idle agent and checker entrypoints.

The agent is the long-lived loop that samples utilization and persists the
idle state every tick. The checker is run by a timer, reads that state and
suspends when it is due.

Usage:
    import asyncio
    from dormant.agent import IdleAgent, idle_check
    from dormant.sensors import ResourceMonitor

    stop = asyncio.Event()
    agent = IdleAgent(config, ResourceMonitor(config.metrics), stop)
    await agent.run()  # until stop.set()

    idle_check(config.idle, ignore_inhibitors=False)
"""

from dormant.agent.agent import IdleAgent
from dormant.agent.checker import idle_check
from dormant.agent.status import format_status, status_payload, time_remaining_seconds

__all__ = [
    "IdleAgent",
    "idle_check",
    "format_status",
    "status_payload",
    "time_remaining_seconds",
]
