"""Time-based sliding window of utilization samples."""

import threading
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from dormant.idle.types import MetricSample, utc_now

Clock = Callable[[], datetime]


class SlidingWindow:
    """Samples within the last `window_seconds`, plus idle hysteresis.

    `is_idle` is a pure read of the current samples. `get_idle_duration`
    advances the "continuously idle since" tracker and must be called once
    per evaluation cycle.
    """

    def __init__(self, window_seconds: int, min_samples: int, clock: Optional[Clock] = None):
        self.window_size = timedelta(seconds=window_seconds)
        self.min_samples = min_samples
        self._clock = clock or utc_now

        self._lock = threading.Lock()
        self._samples: List[MetricSample] = []
        self._last_idle_time: Optional[datetime] = None
        self._idle_duration = timedelta(0)

    def add_sample(self, sample: MetricSample) -> None:
        """Append a sample and drop everything older than the window."""
        with self._lock:
            self._samples.append(sample)

            cutoff = self._clock() - self.window_size
            self._samples = [s for s in self._samples if s.timestamp >= cutoff]

            # Too few samples (e.g. after a suspend or sampling gap) breaks idle continuity
            if len(self._samples) < self.min_samples:
                self._last_idle_time = None
                self._idle_duration = timedelta(0)

    def is_idle(self, cpu_threshold: float, gpu_threshold: float) -> Tuple[bool, float, float]:
        """Return (idle, cpu_avg, gpu_avg) for the current window."""
        with self._lock:
            return self._is_idle_locked(cpu_threshold, gpu_threshold)

    def get_idle_duration(self, cpu_threshold: float, gpu_threshold: float) -> timedelta:
        """Advance idle tracking and return how long the window has been idle."""
        with self._lock:
            idle, _, _ = self._is_idle_locked(cpu_threshold, gpu_threshold)

            now = self._clock()
            if idle:
                if self._last_idle_time is None:
                    self._last_idle_time = now
                    self._idle_duration = timedelta(0)
                else:
                    self._idle_duration = now - self._last_idle_time
            else:
                self._last_idle_time = None
                self._idle_duration = timedelta(0)

            return self._idle_duration

    def _is_idle_locked(self, cpu_threshold: float, gpu_threshold: float) -> Tuple[bool, float, float]:
        # Caller must hold the lock
        if len(self._samples) < self.min_samples:
            return False, 0.0, 0.0

        count = len(self._samples)
        cpu_avg = sum(s.cpu_util_pct for s in self._samples) / count
        gpu_avg = sum(s.gpu_util_pct for s in self._samples) / count

        idle = cpu_avg < cpu_threshold and gpu_avg < gpu_threshold
        return idle, cpu_avg, gpu_avg

    def has_enough_samples(self) -> bool:
        with self._lock:
            return len(self._samples) >= self.min_samples

    def sample_count(self) -> int:
        with self._lock:
            return len(self._samples)

    def idle_since(self) -> Optional[datetime]:
        """When continuous idleness began, or None."""
        with self._lock:
            return self._last_idle_time

    def reset(self) -> None:
        """Clear samples and idle tracking."""
        with self._lock:
            self._samples = []
            self._last_idle_time = None
            self._idle_duration = timedelta(0)
