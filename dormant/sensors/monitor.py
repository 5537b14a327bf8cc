"""System resource monitoring."""

import logging
import psutil
from typing import Tuple

try:
    import pynvml
    NVIDIA_AVAILABLE = True
except ImportError:
    NVIDIA_AVAILABLE = False

from dormant.core.config import MetricsConfig
from dormant.core.interfaces import IMetricsSource
from dormant.idle.errors import SampleCollectionFailed

logger = logging.getLogger(__name__)


class ResourceMonitor(IMetricsSource):
    """Samples CPU (psutil) and GPU (NVML) utilization."""

    def __init__(self, config: MetricsConfig):
        self.config = config
        self.gpu_handle = None
        self._nvml_initialized = False

        if not config.enable_gpu:
            logger.info("GPU monitoring disabled in config")
        elif NVIDIA_AVAILABLE:
            try:
                pynvml.nvmlInit()
                self._nvml_initialized = True
                self.gpu_handle = pynvml.nvmlDeviceGetHandleByIndex(config.gpu_index)
                name = pynvml.nvmlDeviceGetName(self.gpu_handle)
                logger.info(f"NVIDIA GPU detected: {name}")
            except pynvml.NVMLError as e:
                logger.warning(f"NVIDIA initialization failed: {e}")
                self.gpu_handle = None
        else:
            logger.warning("pynvml not available, GPU monitoring disabled")

    def get_gpu_utilization(self) -> float:
        """GPU utilization percentage, 0.0 when no GPU is monitored."""
        if not self.gpu_handle:
            return 0.0

        try:
            util = pynvml.nvmlDeviceGetUtilizationRates(self.gpu_handle)
            return float(util.gpu)
        except pynvml.NVMLError as e:
            logger.error(f"GPU stats error: {e}")
            return 0.0

    def get_gpu_memory_mb(self) -> float:
        if not self.gpu_handle:
            return 0.0

        try:
            mem = pynvml.nvmlDeviceGetMemoryInfo(self.gpu_handle)
            return mem.used / (1024 * 1024)
        except pynvml.NVMLError as e:
            logger.error(f"GPU memory error: {e}")
            return 0.0

    def get_cpu_utilization(self) -> float:
        """CPU utilization percentage over the configured sampling interval."""
        return psutil.cpu_percent(interval=self.config.cpu_sample_interval_seconds)

    def collect_sample(self) -> Tuple[float, float]:
        try:
            cpu_util = self.get_cpu_utilization()
        except (psutil.Error, OSError) as e:
            raise SampleCollectionFailed(f"Failed to read CPU utilization: {e}") from e

        return cpu_util, self.get_gpu_utilization()

    def get_system_summary(self) -> str:
        """Get human-readable system summary."""
        gpu_util = self.get_gpu_utilization()
        vram_mb = self.get_gpu_memory_mb()
        cpu_util = self.get_cpu_utilization()
        mem = psutil.virtual_memory()

        gpu_info = f"GPU: {gpu_util:.0f}%, VRAM: {vram_mb:.0f}MB" if self.gpu_handle else "GPU: N/A"

        return f"""System Resources:
- {gpu_info}
- CPU: {cpu_util:.0f}%
- RAM: {mem.percent:.0f}% ({mem.used / (1024**3):.1f}GB / {mem.total / (1024**3):.1f}GB)
"""

    def shutdown(self) -> None:
        if self._nvml_initialized:
            try:
                pynvml.nvmlShutdown()
            except pynvml.NVMLError as e:
                logger.warning(f"NVML shutdown failed: {e}")
            self._nvml_initialized = False
            self.gpu_handle = None
