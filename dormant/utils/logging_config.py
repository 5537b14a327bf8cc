import logging
import sys
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

DEFAULT_LOG_DIR = "/var/log/dormant"


def _ensure_writable_dir(path: Path) -> bool:
    try:
        path.mkdir(mode=0o750, parents=True, exist_ok=True)
        probe = path / ".write-test"
        probe.touch()
        probe.unlink()
        return True
    except OSError:
        return False


def resolve_log_dir(preferred: Optional[str] = None) -> Path:
    """First writable of: preferred, /var/log/dormant, <tmp>/dormant."""
    candidates = []
    if preferred:
        candidates.append(Path(preferred))
    candidates.append(Path(DEFAULT_LOG_DIR))

    for candidate in candidates:
        if _ensure_writable_dir(candidate):
            return candidate

    fallback = Path(tempfile.gettempdir()) / "dormant"
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def setup_logging(debug_mode: bool = False, log_level: str = "INFO", log_dir: Optional[Path] = None):
    level = logging.DEBUG if debug_mode else getattr(logging, log_level.upper(), logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)-25s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        file_handler = RotatingFileHandler(
            Path(log_dir) / 'dormant.log',
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)-25s | %(funcName)-20s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger('pynvml').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured (level={logging.getLevelName(level)})")
