"""Pytest configuration and fixtures."""

import pytest
from pathlib import Path
import tempfile
import shutil

from dormant.core.config import AgentConfig, IdleConfig, SystemConfig
from tests.fixtures.mock_services import (
    FakeClock,
    MockInhibitorRegistry,
    MockMetricsSource,
    MockSuspendInvoker,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host environment out of config loading."""
    for name in (
        "DORMANT_STATE_DIR",
        "DORMANT_LOG_DIR",
        "DORMANT_CONFIG_FILE",
        "DORMANT_PROFILE",
        "DORMANT_WINDOW_SECONDS",
        "DORMANT_IDLE_TIMEOUT_SECONDS",
        "DORMANT_CPU_THRESHOLD_PCT",
        "DORMANT_GPU_THRESHOLD_PCT",
        "DORMANT_MIN_SAMPLES",
        "DORMANT_ENABLE_SUSPEND",
        "DORMANT_STATE_FILE",
        "DEBUG_MODE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_data_dir():
    """Create temporary data directory."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def idle_config(temp_data_dir):
    """Small window so tests warm up after three samples."""
    return IdleConfig(
        window_seconds=60,
        idle_timeout_seconds=300,
        cpu_threshold_pct=10.0,
        gpu_threshold_pct=5.0,
        min_samples_required=3,
        enable_suspend=True,
        state_file_path=str(temp_data_dir / "idle_state.json"),
    )


@pytest.fixture
def test_config(idle_config, temp_data_dir):
    """Create test configuration."""
    config = SystemConfig()
    config.debug_mode = True
    config.log_level = "DEBUG"
    config.log_dir = str(temp_data_dir / "logs")
    config.idle = idle_config
    config.agent = AgentConfig(tick_interval_seconds=0.01, command_timeout_seconds=1.0)
    return config


@pytest.fixture
def metrics_source():
    return MockMetricsSource()


@pytest.fixture
def inhibitor_registry():
    return MockInhibitorRegistry()


@pytest.fixture
def suspend_invoker():
    return MockSuspendInvoker()
