"""systemd-backed inhibitor registry and suspend invoker."""

import logging
import shutil
import subprocess
from typing import List, Optional, Sequence, Tuple

from dormant.core.interfaces import IInhibitorRegistry, ISuspendInvoker
from dormant.idle.errors import (
    InhibitorQueryFailed,
    SuspendCommandFailed,
    SuspendUnsupported,
)

logger = logging.getLogger(__name__)

INHIBIT_LIST_COMMAND = ("systemd-inhibit", "--list", "--no-pager", "--no-legend")
SUSPEND_COMMAND = ("systemctl", "suspend")
CAN_SUSPEND_COMMAND = ("systemctl", "can-suspend")

# Inhibitor lock types that block suspend
BLOCKING_LOCK_TYPES = ("sleep", "shutdown")


def _split_inhibitor_line(line: str) -> Optional[Tuple[str, str, str]]:
    """Return (who, what, mode) from one `systemd-inhibit --list` row.

    Columns are WHO UID USER PID COMM WHAT WHY MODE; WHO and WHY may contain
    spaces, so WHO ends at the first field followed by numeric UID/PID.
    """
    parts = line.split()
    for i in range(1, len(parts) - 5):
        if parts[i].isdigit() and parts[i + 2].isdigit():
            return " ".join(parts[:i]), parts[i + 4], parts[-1]
    return None


def parse_inhibitors(output: str) -> List[str]:
    """Extract holders of blocking sleep/shutdown locks.

    Delay-mode locks only postpone sleep and are not reported.
    """
    inhibitors = []
    for line in output.strip().splitlines():
        row = _split_inhibitor_line(line)
        if row is None:
            continue
        who, what, mode = row
        if mode != "block":
            continue
        if any(kind in what.split(":") for kind in BLOCKING_LOCK_TYPES):
            inhibitors.append(who)
    return inhibitors


def _run(command: Sequence[str], timeout: float) -> subprocess.CompletedProcess:
    return subprocess.run(
        list(command),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        timeout=timeout,
        check=False,
    )


class SystemdInhibitorRegistry(IInhibitorRegistry):
    """Reads active sleep inhibitors via systemd-inhibit."""

    def __init__(self, timeout_seconds: float = 10.0):
        self.timeout_seconds = timeout_seconds

    def list_inhibitors(self) -> List[str]:
        try:
            result = _run(INHIBIT_LIST_COMMAND, self.timeout_seconds)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise InhibitorQueryFailed(f"systemd-inhibit failed: {e}") from e

        if result.returncode != 0:
            raise InhibitorQueryFailed(
                f"systemd-inhibit exited with {result.returncode}: {result.stdout.strip()}"
            )

        inhibitors = parse_inhibitors(result.stdout)
        logger.debug(f"Checked for inhibitors (found={inhibitors})")
        return inhibitors


class SystemctlSuspendInvoker(ISuspendInvoker):
    """Suspends the host with systemctl."""

    def __init__(self, timeout_seconds: float = 60.0):
        self.timeout_seconds = timeout_seconds

    def suspend(self) -> None:
        try:
            result = _run(SUSPEND_COMMAND, self.timeout_seconds)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise SuspendCommandFailed(f"systemctl suspend failed: {e}") from e

        if result.returncode != 0:
            raise SuspendCommandFailed(
                f"systemctl suspend exited with {result.returncode}",
                output=result.stdout,
            )

    def can_suspend(self) -> None:
        if shutil.which("systemctl") is None:
            raise SuspendUnsupported("systemctl not found")

        try:
            result = _run(CAN_SUSPEND_COMMAND, self.timeout_seconds)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise SuspendUnsupported(f"systemctl can-suspend failed: {e}") from e

        if result.returncode != 0:
            raise SuspendUnsupported(
                f"suspend not supported by system: {result.stdout.strip() or result.returncode}"
            )
