"""Idle detection and suspend errors."""

from typing import List, Optional


class IdleError(Exception):
    """Base class for idle/suspend errors."""
    pass


class SampleCollectionFailed(IdleError):
    """A utilization sample could not be collected."""
    pass


class InhibitorQueryFailed(IdleError):
    """The inhibitor registry could not be queried."""
    pass


class SuspendBlocked(IdleError):
    """Suspend did not run for an expected reason."""
    pass


class GatingBlocked(SuspendBlocked):
    """Suspend blocked by gating reasons."""

    def __init__(self, reasons: List[str]):
        self.reasons = list(reasons)
        super().__init__(f"suspend blocked by gating reasons: {', '.join(self.reasons)}")


class InhibitBlocked(SuspendBlocked):
    """Suspend blocked by active inhibitors."""

    def __init__(self, inhibitors: List[str]):
        self.inhibitors = list(inhibitors)
        super().__init__(f"suspend blocked by inhibitors: {', '.join(self.inhibitors)}")


class SuspendCommandFailed(IdleError):
    """The suspend command returned an error."""

    def __init__(self, message: str, output: Optional[str] = None):
        self.output = output or ""
        if self.output:
            message = f"{message} (output: {self.output.strip()})"
        super().__init__(message)


class SuspendUnsupported(IdleError):
    """Suspend is not available on this host."""
    pass


class PersistenceFailed(IdleError):
    """The idle state could not be written or removed."""
    pass


class StateLoadFailed(IdleError):
    """The idle state file could not be read or parsed."""
    pass


class StateNotFound(StateLoadFailed):
    """No idle state file exists yet."""
    pass
