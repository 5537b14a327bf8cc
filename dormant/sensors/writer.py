"""JSONL metrics log."""

import json
import os
from datetime import datetime
from pathlib import Path


class MetricsWriter:
    """Appends utilization samples to a JSON-lines log."""

    def write(self, timestamp: datetime, cpu_util: float, gpu_util: float, log_path: Path) -> None:
        line = json.dumps({
            "ts": timestamp.isoformat(),
            "cpu_util": cpu_util,
            "gpu_util": gpu_util,
        })

        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        fd = os.open(log_path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(line + "\n")
