"""Core system components.

- Configuration loading and validation
- Event bus for idle/inhibitor notifications
- Interfaces for the metrics source, inhibitor registry and suspend facility

Usage:
    from dormant.core import load_config, validate_config, EventBus
"""

from dormant.core.config import (
    SystemConfig,
    IdleConfig,
    MetricsConfig,
    AgentConfig,
    load_config,
    validate_config,
    resolve_state_dir,
    set_suspend_enabled,
)
from dormant.core.events import (
    EventBus,
    Event,
    IdleStateChanged,
    InhibitorsChanged,
)
from dormant.core.interfaces import (
    IMetricsSource,
    IInhibitorRegistry,
    ISuspendInvoker,
)
from dormant.core.events_listener import (
    IdleEventLogger,
    register_event_listeners,
)

__all__ = [
    # Configuration
    "SystemConfig",
    "IdleConfig",
    "MetricsConfig",
    "AgentConfig",
    "load_config",
    "validate_config",
    "resolve_state_dir",
    "set_suspend_enabled",

    # Event System
    "EventBus",
    "Event",
    "IdleStateChanged",
    "InhibitorsChanged",

    # Interfaces
    "IMetricsSource",
    "IInhibitorRegistry",
    "ISuspendInvoker",

    # Listeners
    "IdleEventLogger",
    "register_event_listeners",
]
