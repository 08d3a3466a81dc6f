"""Pytest configuration and shared fixtures."""
from __future__ import annotations

from pathlib import Path

import pytest

from temp_monitor.config import SensorConfig


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "linux: mark test as Linux sysfs-specific"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


@pytest.fixture
def sysfs(tmp_path):
    """Empty hwmon and thermal roots under a temporary directory."""
    hwmon = tmp_path / "hwmon"
    thermal = tmp_path / "thermal"
    hwmon.mkdir()
    thermal.mkdir()
    return hwmon, thermal


@pytest.fixture
def sensor_config(sysfs):
    hwmon, thermal = sysfs
    return SensorConfig(hwmon_path=str(hwmon), thermal_path=str(thermal))


@pytest.fixture
def coretemp(sysfs):
    """One coretemp chip with a single package channel (crit 100C)."""
    hwmon, _ = sysfs
    chip = hwmon / "hwmon0"
    write(chip / "name", "coretemp\n")
    write(chip / "temp1_input", "45000\n")
    write(chip / "temp1_label", "Package id 0\n")
    write(chip / "temp1_crit", "100000\n")
    return chip
