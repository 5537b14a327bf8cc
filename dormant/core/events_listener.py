import json
import logging
from pathlib import Path

from dormant.core.events import EventBus, IdleStateChanged, InhibitorsChanged

logger = logging.getLogger(__name__)


class IdleEventLogger:
    def __init__(self, log_dir: str):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.events_file = self.log_dir / "events.jsonl"

    async def on_idle_state_changed(self, event: IdleStateChanged):
        logger.info(
            f"Idle transition: {event.old_status or 'none'} -> {event.new_status} "
            f"(idle_for={event.idle_for_seconds}s, gating={event.gating_reasons})"
        )

        self._write_event({
            "event": "idle_state_changed",
            "timestamp": event.timestamp.isoformat(),
            "old_status": event.old_status,
            "new_status": event.new_status,
            "idle_for_s": event.idle_for_seconds,
            "gating_reasons": event.gating_reasons,
        })

    async def on_inhibitors_changed(self, event: InhibitorsChanged):
        if event.active:
            logger.info(f"Sleep inhibited by: {', '.join(event.inhibitors)}")
        else:
            logger.info("No active sleep inhibitors")

        self._write_event({
            "event": "inhibitors_changed",
            "timestamp": event.timestamp.isoformat(),
            "active": event.active,
            "inhibitors": event.inhibitors,
        })

    def _write_event(self, data: dict):
        try:
            with open(self.events_file, 'a', encoding='utf-8') as f:
                f.write(json.dumps(data) + '\n')
        except OSError as e:
            logger.error(f"Failed to write event: {e}")


def register_event_listeners(event_bus: EventBus, log_dir: str) -> IdleEventLogger:
    event_logger = IdleEventLogger(log_dir)

    event_bus.subscribe(IdleStateChanged, event_logger.on_idle_state_changed)
    event_bus.subscribe(InhibitorsChanged, event_logger.on_inhibitors_changed)

    logger.info("Event listeners registered")
    return event_logger
