"""systemd power backends (inhibitor listing and suspend)."""

from dormant.power.systemd import (
    SystemdInhibitorRegistry,
    SystemctlSuspendInvoker,
    parse_inhibitors,
)

__all__ = [
    "SystemdInhibitorRegistry",
    "SystemctlSuspendInvoker",
    "parse_inhibitors",
]
