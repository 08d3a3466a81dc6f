"""Tests for hwmon / thermal-zone discovery and fan linking."""
from __future__ import annotations

import logging

import pytest

from temp_monitor.classifier import Category
from temp_monitor.config import SensorConfig
from temp_monitor.discovery import (
    DEFAULT_FAN_MAX_RPM,
    PWM_MAX_RPM,
    SensorDiscovery,
    discover,
    plausible_critical,
)
from temp_monitor.models import DEFAULT_CRITICAL
from temp_monitor.sysfs import SENTINEL


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


@pytest.mark.linux
class TestHwmonDiscovery:
    def test_coretemp_package(self, coretemp, sensor_config):
        """A coretemp package channel becomes one CPU sensor with its crit."""
        sensors = discover(sensor_config)

        assert len(sensors) == 1
        sensor = sensors[0]
        assert sensor.name == "coretemp"
        assert sensor.label == "Package id 0"
        assert sensor.category is Category.CPU
        assert sensor.critical == 100.0
        assert sensor.path == str(coretemp / "temp1_input")
        assert sensor.sample_count == 0
        assert sensor.current == SENTINEL
        assert sensor.min is None and sensor.max is None

    def test_missing_root_yields_nothing(self, tmp_path):
        """Missing hwmon and thermal roots give an empty list."""
        config = SensorConfig(
            hwmon_path=str(tmp_path / "absent"),
            thermal_path=str(tmp_path / "also-absent"),
        )
        assert discover(config) == []

    def test_missing_name_and_label_fall_back(self, sysfs, sensor_config):
        """Chips without name/label files get placeholder text."""
        hwmon, _ = sysfs
        _write(hwmon / "hwmon3" / "temp4_input", "30000")

        sensors = discover(sensor_config)

        assert [(s.name, s.label) for s in sensors] == [("Unknown", "Sensor 4")]

    def test_critical_falls_back_to_max_then_default(self, sysfs, sensor_config):
        """Critical comes from crit, then max, then the default."""
        hwmon, _ = sysfs
        chip = hwmon / "hwmon0"
        _write(chip / "name", "nct6798")
        _write(chip / "temp1_input", "30000")
        _write(chip / "temp1_max", "80000")
        _write(chip / "temp2_input", "30000")

        sensors = discover(sensor_config)

        assert [s.critical for s in sensors] == [80.0, DEFAULT_CRITICAL]

    @pytest.mark.parametrize("raw", ["20000", "255000", "garbage"])
    def test_implausible_critical_uses_default(self, sysfs, sensor_config, raw):
        """Out-of-range or garbled thresholds use the default."""
        hwmon, _ = sysfs
        chip = hwmon / "hwmon0"
        _write(chip / "name", "acpitz")
        _write(chip / "temp1_input", "30000")
        _write(chip / "temp1_crit", raw)

        sensors = discover(sensor_config)

        assert sensors[0].critical == DEFAULT_CRITICAL

    def test_non_channel_files_are_skipped(self, sysfs, sensor_config):
        """Only tempN_input files become sensors."""
        hwmon, _ = sysfs
        chip = hwmon / "hwmon0"
        _write(chip / "name", "k10temp")
        _write(chip / "temp1_input", "40000")
        _write(chip / "tempX_input", "40000")
        _write(chip / "temp1_max", "90000")
        _write(chip / "in0_input", "1200")

        sensors = discover(sensor_config)

        assert [s.path for s in sensors] == [str(chip / "temp1_input")]

    def test_hidden_entries_and_files_are_skipped(self, sysfs, sensor_config):
        """Dot entries and plain files under the root are ignored."""
        hwmon, _ = sysfs
        _write(hwmon / ".hidden" / "temp1_input", "40000")
        _write(hwmon / "hwmon0", "not a directory")

        assert discover(sensor_config) == []

    def test_channels_ordered_numerically(self, sysfs, sensor_config):
        """Chips and channels are sorted by their numeric suffix."""
        hwmon, _ = sysfs
        for idx in (10, 2, 1):
            _write(hwmon / "hwmon0" / f"temp{idx}_input", "40000")
        _write(hwmon / "hwmon10" / "temp1_input", "40000")
        _write(hwmon / "hwmon2" / "temp1_input", "40000")

        sensors = discover(sensor_config)

        assert [s.label for s in sensors] == [
            "Sensor 1", "Sensor 2", "Sensor 10", "Sensor 1", "Sensor 1",
        ]
        assert sensors[3].path.endswith("hwmon2/temp1_input")
        assert sensors[4].path.endswith("hwmon10/temp1_input")

    def test_sensor_cap(self, sysfs):
        """Discovery stops at max_sensors."""
        hwmon, thermal = sysfs
        for chip in range(3):
            for idx in range(1, 4):
                _write(hwmon / f"hwmon{chip}" / f"temp{idx}_input", "40000")
        config = SensorConfig(hwmon_path=str(hwmon), thermal_path=str(thermal), max_sensors=4)

        sensors = discover(config)

        assert len(sensors) == 4

    def test_cap_on_chip_boundary_is_logged(self, sysfs, caplog):
        """Hitting the limit exactly at the end of a chip still warns."""
        hwmon, thermal = sysfs
        for chip in range(2):
            for idx in (1, 2):
                _write(hwmon / f"hwmon{chip}" / f"temp{idx}_input", "40000")
        config = SensorConfig(hwmon_path=str(hwmon), thermal_path=str(thermal), max_sensors=2)

        with caplog.at_level(logging.WARNING):
            sensors = discover(config)

        assert [s.path for s in sensors] == [
            str(hwmon / "hwmon0" / "temp1_input"),
            str(hwmon / "hwmon0" / "temp2_input"),
        ]
        assert [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING] == [
            "Sensor limit of 2 reached; ignoring the rest."
        ]

    def test_exact_fit_is_not_logged(self, sysfs, caplog):
        """No warning when every channel fits under the limit."""
        hwmon, thermal = sysfs
        for idx in (1, 2):
            _write(hwmon / "hwmon0" / f"temp{idx}_input", "40000")
        config = SensorConfig(hwmon_path=str(hwmon), thermal_path=str(thermal), max_sensors=2)

        with caplog.at_level(logging.WARNING):
            assert len(discover(config)) == 2

        assert not [r for r in caplog.records if r.levelno == logging.WARNING]

    def test_over_long_directory_is_skipped(self, sysfs, sensor_config):
        """Paths at or past the length limit are not scanned."""
        hwmon, _ = sysfs
        _write(hwmon / ("h" * 200) / "temp1_input", "40000")
        _write(hwmon / "hwmon0" / "temp1_input", "40000")
        with pytest.MonkeyPatch.context() as mp:
            mp.setattr("temp_monitor.discovery.MAX_PATH_LENGTH", len(str(hwmon)) + 30)
            sensors = discover(sensor_config)

        assert [s.path for s in sensors] == [str(hwmon / "hwmon0" / "temp1_input")]


@pytest.mark.linux
class TestThermalFallback:
    def test_acpitz_zone(self, sysfs, sensor_config):
        """A thermal zone is used when hwmon has no channels."""
        _, thermal = sysfs
        _write(thermal / "thermal_zone0" / "type", "acpitz\n")
        _write(thermal / "thermal_zone0" / "temp", "27800\n")

        sensors = discover(sensor_config)

        assert len(sensors) == 1
        sensor = sensors[0]
        assert sensor.category is Category.CHIPSET
        assert sensor.critical == 100.0
        assert sensor.label == "acpitz"
        assert sensor.path == str(thermal / "thermal_zone0" / "temp")

    def test_zone_without_type_synthesizes_label(self, sysfs, sensor_config):
        """A zone without a type file is labelled by its index."""
        _, thermal = sysfs
        _write(thermal / "thermal_zone3" / "temp", "27800\n")
        _write(thermal / "cooling_device0" / "type", "Processor\n")

        sensors = discover(sensor_config)

        assert [s.label for s in sensors] == ["Zone 3"]

    def test_x86_pkg_temp_is_still_chipset(self, sysfs, sensor_config):
        """Thermal zones are always filed as Chipset."""
        _, thermal = sysfs
        _write(thermal / "thermal_zone1" / "type", "x86_pkg_temp\n")
        _write(thermal / "thermal_zone1" / "temp", "50000\n")

        sensors = discover(sensor_config)

        assert sensors[0].category is Category.CHIPSET

    def test_critical_trip_point(self, sysfs, sensor_config):
        """The critical trip point sets the zone threshold."""
        _, thermal = sysfs
        zone = thermal / "thermal_zone0"
        _write(zone / "type", "acpitz")
        _write(zone / "temp", "30000")
        _write(zone / "trip_point_0_type", "passive")
        _write(zone / "trip_point_0_temp", "85000")
        _write(zone / "trip_point_1_type", "critical")
        _write(zone / "trip_point_1_temp", "105000")

        sensors = discover(sensor_config)

        assert sensors[0].critical == 105.0

    def test_not_used_when_hwmon_has_channels(self, coretemp, sysfs, sensor_config):
        """Thermal zones are skipped once hwmon yields sensors."""
        _, thermal = sysfs
        _write(thermal / "thermal_zone0" / "type", "acpitz")
        _write(thermal / "thermal_zone0" / "temp", "30000")

        sensors = discover(sensor_config)

        assert [s.name for s in sensors] == ["coretemp"]


@pytest.mark.linux
class TestFanLinking:
    def test_first_fan_links_second_stays_unassociated(self, coretemp, sensor_config):
        """One fan per sensor; the surplus fan is kept unlinked."""
        _write(coretemp / "fan1_input", "1200")
        _write(coretemp / "fan1_max", "3000")
        _write(coretemp / "fan2_input", "900")

        discovery = SensorDiscovery(sensor_config)
        sensors = discovery.discover()

        sensor = sensors[0]
        assert sensor.has_fan is True
        assert sensor.fan_path == str(coretemp / "fan1_input")
        assert sensor.fan_max_rpm == 3000
        assert len(discovery.fans) == 2
        assert discovery.fans[0].sensor is sensor
        assert discovery.fans[1].sensor is None

    def test_unassociated_fan_logs_its_chip(self, coretemp, sensor_config, caplog):
        """A surplus fan is reported with the chip directory it came from."""
        _write(coretemp / "fan1_input", "1200")
        _write(coretemp / "fan2_input", "900")

        with caplog.at_level(logging.DEBUG, logger="SensorDiscovery"):
            discovery = SensorDiscovery(sensor_config)
            discovery.discover()

        assert [fan.directory for fan in discovery.fans] == [str(coretemp)] * 2
        messages = [r.getMessage() for r in caplog.records]
        assert (
            f"Fan {coretemp / 'fan2_input'} has no free sensor in {coretemp} to attach to."
            in messages
        )

    def test_fans_link_in_sensor_order(self, sysfs, sensor_config):
        """Fans attach to sensors in discovery order."""
        hwmon, _ = sysfs
        chip = hwmon / "hwmon0"
        _write(chip / "name", "nct6798")
        for idx in (1, 2, 3):
            _write(chip / f"temp{idx}_input", "40000")
        _write(chip / "fan1_input", "1000")
        _write(chip / "fan2_input", "1100")

        discovery = SensorDiscovery(sensor_config)
        sensors = discovery.discover()

        assert [s.has_fan for s in sensors] == [True, True, False]
        assert sensors[1].fan_path == str(chip / "fan2_input")

    def test_fan_only_links_within_same_directory(self, sysfs, sensor_config):
        """A fan never links to a sensor on another chip."""
        hwmon, _ = sysfs
        _write(hwmon / "hwmon0" / "temp1_input", "40000")
        _write(hwmon / "hwmon1" / "name", "dell_smm")
        _write(hwmon / "hwmon1" / "fan1_input", "2400")

        discovery = SensorDiscovery(sensor_config)
        sensors = discovery.discover()

        assert sensors[0].has_fan is False
        assert len(discovery.fans) == 1
        assert discovery.fans[0].sensor is None

    def test_max_rpm_fallbacks(self, sysfs, sensor_config):
        """Max RPM comes from fanN_max, pwmN_max or the default."""
        hwmon, _ = sysfs
        _write(hwmon / "hwmon0" / "temp1_input", "40000")
        _write(hwmon / "hwmon0" / "fan1_input", "100")
        _write(hwmon / "hwmon0" / "pwm1_max", "255")
        _write(hwmon / "hwmon1" / "temp1_input", "40000")
        _write(hwmon / "hwmon1" / "fan1_input", "1500")

        sensors = discover(sensor_config)

        assert [s.fan_max_rpm for s in sensors] == [PWM_MAX_RPM, DEFAULT_FAN_MAX_RPM]

    def test_no_fan_scan_without_sensors(self, sysfs, sensor_config):
        """Fans are not scanned when no sensor was found."""
        hwmon, _ = sysfs
        _write(hwmon / "hwmon0" / "fan1_input", "1500")

        discovery = SensorDiscovery(sensor_config)

        assert discovery.discover() == []
        assert discovery.fans == []


class TestPlausibleCritical:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (SENTINEL, DEFAULT_CRITICAL),
            (49.9, DEFAULT_CRITICAL),
            (50.0, 50.0),
            (150.0, 150.0),
            (150.1, DEFAULT_CRITICAL),
            (105.0, 105.0),
        ],
    )
    def test_clamp(self, value, expected):
        """Thresholds outside 50-150 C are replaced by the default."""
        assert plausible_critical(value) == expected
