"""Command-line interface for Dormant."""

import argparse
import asyncio
import json
import logging
import os
import signal
import sys
from datetime import datetime, timezone

import yaml

from dormant.core.config import load_config, validate_config, set_suspend_enabled, SystemConfig
from dormant.core.events import EventBus
from dormant.core.events_listener import register_event_listeners
from dormant.agent.agent import IdleAgent
from dormant.agent.checker import idle_check
from dormant.agent.status import format_status, status_payload
from dormant.idle.errors import (
    IdleError,
    InhibitorQueryFailed,
    StateLoadFailed,
    SuspendBlocked,
    SuspendUnsupported,
)
from dormant.idle.executor import SuspendExecutor
from dormant.idle.state import StateStore
from dormant.power.systemd import SystemctlSuspendInvoker, SystemdInhibitorRegistry
from dormant.sensors.monitor import ResourceMonitor
from dormant.utils.logging_config import resolve_log_dir, setup_logging

logger = logging.getLogger(__name__)


def build_executor(config: SystemConfig) -> SuspendExecutor:
    timeout = config.agent.command_timeout_seconds
    return SuspendExecutor(
        config.idle,
        inhibitor_registry=SystemdInhibitorRegistry(timeout_seconds=timeout),
        suspend_invoker=SystemctlSuspendInvoker(),
    )


async def run_agent(config: SystemConfig) -> int:
    """Run the idle agent until SIGINT/SIGTERM."""
    log_dir = resolve_log_dir(config.log_dir)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    logger.info("=" * 60)
    logger.info("Dormant idle agent starting")
    logger.info(
        f"window={config.idle.window_seconds}s timeout={config.idle.idle_timeout_seconds}s "
        f"cpu<{config.idle.cpu_threshold_pct}% gpu<{config.idle.gpu_threshold_pct}% "
        f"suspend={'enabled' if config.idle.enable_suspend else 'dry-run'}"
    )
    logger.info("=" * 60)

    event_bus = EventBus()
    await event_bus.start()
    register_event_listeners(event_bus, str(log_dir))

    monitor = ResourceMonitor(config.metrics)
    logger.info(monitor.get_system_summary().rstrip())
    agent = IdleAgent(
        config,
        monitor,
        stop,
        executor=build_executor(config),
        event_bus=event_bus,
        metrics_log_path=log_dir / "metrics.log" if config.metrics.write_metrics_log else None,
    )

    try:
        await agent.run()
    finally:
        logger.info("Shutting down...")
        await event_bus.stop()
        logger.info("Shutdown complete")
    return 0


def run_idle_check(config: SystemConfig, ignore_inhibitors: bool) -> int:
    try:
        idle_check(config.idle, ignore_inhibitors=ignore_inhibitors, executor=build_executor(config))
    except SuspendBlocked as e:
        logger.info(f"Suspend blocked: {e}")
        return 0
    except IdleError as e:
        logger.error(f"Idle check error: {e}")
        return 1
    return 0


def run_status(config: SystemConfig, as_json: bool) -> int:
    store = StateStore(config.idle.state_file_path)
    try:
        state = store.load()
    except StateLoadFailed as e:
        print(f"No idle state available: {e}", file=sys.stderr)
        return 1

    now = datetime.now(timezone.utc)
    executor = build_executor(config)
    try:
        _, inhibitors = executor.active_inhibitors()
        inhibitor_text = ", ".join(inhibitors) or "none"
    except InhibitorQueryFailed as e:
        inhibitors = None
        inhibitor_text = f"unknown ({e})"

    if as_json:
        payload = status_payload(state, now)
        payload["inhibitors"] = inhibitors
        payload["enable_suspend"] = config.idle.enable_suspend
        print(json.dumps(payload, indent=2))
    else:
        print(format_status(state, now, suspend_enabled=config.idle.enable_suspend))
        print(f"Inhibitors:      {inhibitor_text}")
    return 0


def run_suspend(config: SystemConfig, action: str) -> int:
    if action in ("enable", "disable"):
        set_suspend_enabled(config.config_file, action == "enable")
        print(f"Auto-suspend {action}d ({config.config_file})")
        env_value = os.getenv("DORMANT_ENABLE_SUSPEND")
        if env_value is not None:
            logger.warning(
                f"DORMANT_ENABLE_SUSPEND={env_value} is set and overrides {config.config_file}; "
                f"effective setting stays {'enabled' if config.idle.enable_suspend else 'disabled'}"
            )
        return 0

    try:
        build_executor(config).check_can_suspend()
    except SuspendUnsupported as e:
        print(f"Suspend unavailable: {e}", file=sys.stderr)
        return 1
    print("Suspend is supported on this host")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dormant", description="Idle suspend controller")
    parser.add_argument("--config", help="Path to YAML config file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("agent", help="Run the idle monitoring agent")

    check = subparsers.add_parser("idle-check", help="Evaluate idle state and suspend if due")
    check.add_argument(
        "--ignore-inhibitors",
        action="store_true",
        help="Suspend even if sleep inhibitors are active",
    )

    status = subparsers.add_parser("status", help="Show the current idle state")
    status.add_argument("--json", action="store_true", help="Print JSON")

    suspend = subparsers.add_parser("suspend", help="Manage auto-suspend")
    suspend.add_argument("action", choices=["enable", "disable", "preflight"])

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        return 1

    log_dir = resolve_log_dir(config.log_dir) if args.command in ("agent", "idle-check") else None
    setup_logging(config.debug_mode, config.log_level, log_dir)

    errors = validate_config(config)
    if errors:
        logger.error("Configuration errors:")
        for error in errors:
            logger.error(f"  - {error}")
        return 1

    try:
        if args.command == "agent":
            return asyncio.run(run_agent(config))
        if args.command == "idle-check":
            return run_idle_check(config, args.ignore_inhibitors)
        if args.command == "status":
            return run_status(config, args.json)
        return run_suspend(config, args.action)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1
