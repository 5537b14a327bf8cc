"""
Dormant - idle suspend controller for single-node AI workload servers.

Watches CPU and GPU utilization and decides when the host has been idle long
enough to suspend, without suspending against an active sleep inhibitor or
while dry-run is set.

Usage:
    from dormant import load_config

    config = load_config()
    # The `dormant` command (dormant.cli) runs agent, idle-check and status
"""

__version__ = "1.0.0"
__license__ = "MIT"

from dormant.core import (
    SystemConfig,
    IdleConfig,
    load_config,
    validate_config,
)
from dormant.idle import (
    IdleEngine,
    IdleState,
    StateStore,
    SuspendExecutor,
)
from dormant.agent import IdleAgent, idle_check
from dormant.utils import setup_logging

__all__ = [
    "__version__",
    "__license__",
    "SystemConfig",
    "IdleConfig",
    "load_config",
    "validate_config",
    "IdleEngine",
    "IdleState",
    "StateStore",
    "SuspendExecutor",
    "IdleAgent",
    "idle_check",
    "setup_logging",
]


def get_version() -> str:
    """Get the current version of Dormant."""
    return __version__
