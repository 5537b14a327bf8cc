"""Interface definitions for external collaborators."""

from abc import ABC, abstractmethod
from typing import List, Tuple


class IMetricsSource(ABC):
    """Source of CPU/GPU utilization samples."""

    @abstractmethod
    def collect_sample(self) -> Tuple[float, float]:
        """Return (cpu_util_pct, gpu_util_pct).

        Raises SampleCollectionFailed when no sample can be taken.
        """
        pass

    def shutdown(self) -> None:
        """Release any resources held by the source."""
        pass


class IInhibitorRegistry(ABC):
    """Registry of holders currently blocking sleep."""

    @abstractmethod
    def list_inhibitors(self) -> List[str]:
        """Return names of active sleep inhibitors.

        Raises InhibitorQueryFailed if the registry cannot be read.
        """
        pass


class ISuspendInvoker(ABC):
    """System suspend facility."""

    @abstractmethod
    def suspend(self) -> None:
        """Request system suspend. Raises SuspendCommandFailed on error."""
        pass

    @abstractmethod
    def can_suspend(self) -> None:
        """Preflight check. Raises SuspendUnsupported if suspend is unavailable."""
        pass
