"""Configuration models and loading."""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional
from pathlib import Path
import logging
import os
import tempfile
import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = "/var/lib/dormant"
STATE_FILE_NAME = "idle_state.json"
CONFIG_FILE_NAME = "config.yaml"

# Idle timeout per deployment profile
PROFILE_IDLE_TIMEOUTS = {
    "standard-gpu": 300,
    "minimal": 1800,
}
DEFAULT_PROFILE = "standard-gpu"


def resolve_state_dir() -> str:
    """Resolve the state directory from environment and effective user."""
    env_dir = os.getenv("DORMANT_STATE_DIR")
    if env_dir:
        return env_dir

    if not hasattr(os, "geteuid") or os.geteuid() == 0:
        return DEFAULT_STATE_DIR

    try:
        return str(Path.home() / ".local" / "state" / "dormant")
    except RuntimeError:
        return str(Path(tempfile.gettempdir()) / "dormant")


@dataclass(frozen=True)
class IdleConfig:
    """Idle detection and suspend configuration.

    Frozen: computed once at startup and shared read-only by the window,
    engine, executor and state store.
    """
    window_seconds: int = 60
    idle_timeout_seconds: int = 300
    cpu_threshold_pct: float = 10.0
    gpu_threshold_pct: float = 5.0
    min_samples_required: int = 6  # 60s window / 10s tick
    enable_suspend: bool = True  # False = dry-run
    state_file_path: str = str(Path(DEFAULT_STATE_DIR) / STATE_FILE_NAME)


@dataclass
class MetricsConfig:
    """Resource sampling configuration."""
    enable_gpu: bool = True
    gpu_index: int = 0
    cpu_sample_interval_seconds: float = 0.5
    write_metrics_log: bool = True


@dataclass
class AgentConfig:
    """Control loop configuration."""
    tick_interval_seconds: float = 10.0
    command_timeout_seconds: float = 10.0


@dataclass
class SystemConfig:
    """Main system configuration."""
    debug_mode: bool = False
    log_level: str = "INFO"
    log_dir: Optional[str] = None
    profile: str = DEFAULT_PROFILE
    config_file: Optional[str] = None

    idle: IdleConfig = field(default_factory=IdleConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _known_keys(cls, section: Dict[str, Any], section_name: str) -> Dict[str, Any]:
    """Drop keys the dataclass does not define."""
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{section_name}' must be a mapping, got {type(section).__name__}")

    names = {f.name for f in fields(cls)}
    known = {}
    for key, value in section.items():
        if key in names:
            known[key] = value
        else:
            logger.warning(f"Ignoring unknown config key '{section_name}.{key}'")
    return known


def read_config_file(path: Path) -> Dict[str, Any]:
    """Read the YAML config file, returning an empty mapping if absent."""
    if not path.exists():
        return {}

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def load_config(config_file: Optional[str] = None) -> SystemConfig:
    """Load configuration from defaults, YAML file and environment."""
    load_dotenv()

    config = SystemConfig()

    config.debug_mode = _env_bool("DEBUG_MODE", False)
    config.log_level = os.getenv("LOG_LEVEL", "INFO")
    config.log_dir = os.getenv("DORMANT_LOG_DIR")
    config.profile = os.getenv("DORMANT_PROFILE", config.profile)

    state_dir = resolve_state_dir()
    config.config_file = (
        config_file
        or os.getenv("DORMANT_CONFIG_FILE")
        or str(Path(state_dir) / CONFIG_FILE_NAME)
    )

    file_data = read_config_file(Path(config.config_file))

    # Idle values start from the profile, then file, then environment
    idle_values: Dict[str, Any] = {
        "idle_timeout_seconds": PROFILE_IDLE_TIMEOUTS.get(
            config.profile, PROFILE_IDLE_TIMEOUTS[DEFAULT_PROFILE]
        ),
        "state_file_path": str(Path(state_dir) / STATE_FILE_NAME),
    }
    idle_values.update(_known_keys(IdleConfig, file_data.get("idle") or {}, "idle"))

    if file_data.get("metrics"):
        config.metrics = MetricsConfig(
            **_known_keys(MetricsConfig, file_data["metrics"], "metrics")
        )
    if file_data.get("agent"):
        config.agent = AgentConfig(
            **_known_keys(AgentConfig, file_data["agent"], "agent")
        )

    env_overrides = {
        "window_seconds": ("DORMANT_WINDOW_SECONDS", int),
        "idle_timeout_seconds": ("DORMANT_IDLE_TIMEOUT_SECONDS", int),
        "cpu_threshold_pct": ("DORMANT_CPU_THRESHOLD_PCT", float),
        "gpu_threshold_pct": ("DORMANT_GPU_THRESHOLD_PCT", float),
        "min_samples_required": ("DORMANT_MIN_SAMPLES", int),
        "state_file_path": ("DORMANT_STATE_FILE", str),
    }
    for key, (env_name, convert) in env_overrides.items():
        value = os.getenv(env_name)
        if value is not None:
            idle_values[key] = convert(value)

    idle_values["enable_suspend"] = _env_bool(
        "DORMANT_ENABLE_SUSPEND", bool(idle_values.get("enable_suspend", True))
    )

    config.idle = IdleConfig(**idle_values)
    return config


def validate_config(config: SystemConfig) -> List[str]:
    """Validate configuration and return errors."""
    errors = []
    idle = config.idle

    if config.profile not in PROFILE_IDLE_TIMEOUTS:
        errors.append(
            f"profile must be one of {sorted(PROFILE_IDLE_TIMEOUTS)}, got '{config.profile}'"
        )

    if not 0 <= idle.cpu_threshold_pct <= 100:
        errors.append("cpu_threshold_pct must be between 0 and 100")

    if not 0 <= idle.gpu_threshold_pct <= 100:
        errors.append("gpu_threshold_pct must be between 0 and 100")

    if idle.window_seconds <= 0:
        errors.append("window_seconds must be positive")

    if idle.idle_timeout_seconds <= 0:
        errors.append("idle_timeout_seconds must be positive")

    if idle.min_samples_required < 1:
        errors.append("min_samples_required must be at least 1")

    if not idle.state_file_path:
        errors.append("state_file_path must not be empty")

    if config.agent.tick_interval_seconds <= 0:
        errors.append("tick_interval_seconds must be positive")
    elif idle.window_seconds > 0:
        reachable = idle.window_seconds / config.agent.tick_interval_seconds
        if idle.min_samples_required > reachable + 1:
            errors.append(
                f"min_samples_required ({idle.min_samples_required}) can never be reached "
                f"with a {idle.window_seconds}s window at a "
                f"{config.agent.tick_interval_seconds}s tick"
            )

    if config.agent.command_timeout_seconds <= 0:
        errors.append("command_timeout_seconds must be positive")

    return errors


def set_suspend_enabled(config_file: str, enabled: bool) -> None:
    """Persist the auto-suspend switch into the YAML config file."""
    path = Path(config_file)
    data = read_config_file(path)

    idle_section = data.get("idle") or {}
    idle_section["enable_suspend"] = enabled
    data["idle"] = idle_section

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=True)

    logger.info(f"Auto-suspend {'enabled' if enabled else 'disabled'} in {path}")
