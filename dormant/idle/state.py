"""Idle state persistence."""

import json
import logging
import os
from pathlib import Path

from dormant.idle.errors import PersistenceFailed, StateLoadFailed, StateNotFound
from dormant.idle.types import GatingReason, IdleState

logger = logging.getLogger(__name__)


class StateStore:
    """Reads and writes idle_state.json.

    Writes go to a temp file that is then renamed over the target, so
    readers in other processes only ever see a complete record.
    """

    def __init__(self, file_path: str):
        self.file_path = Path(file_path)

    @property
    def _temp_path(self) -> Path:
        return self.file_path.with_name(self.file_path.name + ".tmp")

    def save(self, state: IdleState) -> None:
        """Atomically write the state file."""
        try:
            self.file_path.parent.mkdir(mode=0o750, parents=True, exist_ok=True)

            data = json.dumps(state.to_dict(), indent=2)

            fd = os.open(self._temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())

            os.replace(self._temp_path, self.file_path)
        except OSError as e:
            raise PersistenceFailed(f"Failed to save idle state to {self.file_path}: {e}") from e

        logger.debug(f"Idle state saved (path={self.file_path}, status={state.status.value})")

    def load(self) -> IdleState:
        """Read the state file. The inhibit reason never survives a load."""
        try:
            with open(self.file_path) as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise StateNotFound(f"State file not found: {self.file_path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise StateLoadFailed(f"Failed to read state file {self.file_path}: {e}") from e

        try:
            state = IdleState.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StateLoadFailed(f"Invalid state file {self.file_path}: {e}") from e

        # Inhibitors are re-checked fresh on every run
        state.gating_reasons.discard(GatingReason.INHIBIT)

        logger.debug(f"Idle state loaded (path={self.file_path}, status={state.status.value})")
        return state

    def exists(self) -> bool:
        return self.file_path.exists()

    def delete(self) -> None:
        """Remove the state file. Missing file is not an error."""
        try:
            self.file_path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise PersistenceFailed(f"Failed to delete state file {self.file_path}: {e}") from e

        logger.debug(f"Idle state file deleted (path={self.file_path})")
