"""Human-readable idle status."""

from datetime import datetime
from typing import Any, Dict, Optional

from dormant.idle.types import IdleState, IdleStatus


def time_remaining_seconds(state: IdleState, now: datetime) -> Optional[int]:
    """Projected seconds until the idle threshold is reached.

    Only meaningful while idle; the snapshot's idle time is advanced by the
    time elapsed since it was written.
    """
    if state.status != IdleStatus.IDLE:
        return None

    elapsed = max(0, int((now - state.last_update).total_seconds()))
    projected_idle = state.idle_for_seconds + elapsed
    return max(0, state.threshold_seconds - projected_idle)


def _format_duration(seconds: int) -> str:
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h{minutes:02d}m{secs:02d}s"
    if minutes:
        return f"{minutes}m{secs:02d}s"
    return f"{secs}s"


def status_payload(state: IdleState, now: datetime) -> Dict[str, Any]:
    payload = state.to_dict()
    payload["time_remaining_s"] = time_remaining_seconds(state, now)
    return payload


def format_status(state: IdleState, now: datetime, suspend_enabled: bool = True) -> str:
    remaining = time_remaining_seconds(state, now)
    remaining_text = _format_duration(remaining) if remaining is not None else "n/a"
    gating = str(state.gating_reasons) or "none"

    lines = [
        "Idle Status:",
        "------------",
        f"Status:          {state.status.value}",
        f"Idle for:        {_format_duration(state.idle_for_seconds)}",
        f"Threshold:       {_format_duration(state.threshold_seconds)}",
        f"Time remaining:  {remaining_text}",
        f"CPU idle:        {state.cpu_idle_pct:.1f}%",
        f"GPU idle:        {state.gpu_idle_pct:.1f}%",
        f"Gating reasons:  {gating}",
        f"Last update:     {state.last_update.isoformat()}",
        f"Auto-suspend:    {'enabled' if suspend_enabled else 'disabled (dry-run)'}",
    ]
    return "\n".join(lines)
