"""Resource sensors.

- CPU utilization via psutil
- GPU utilization via NVML (pynvml), optional
- JSON-lines metrics log

Usage:
    from dormant.sensors import ResourceMonitor
    from dormant.core.config import MetricsConfig

    monitor = ResourceMonitor(MetricsConfig())
    cpu_util, gpu_util = monitor.collect_sample()
"""

from dormant.sensors.monitor import ResourceMonitor
from dormant.sensors.writer import MetricsWriter

__all__ = [
    "ResourceMonitor",
    "MetricsWriter",
]
