"""Tests for the ordered sensor classification table."""
from __future__ import annotations

import pytest

from temp_monitor.classifier import CLASSIFICATION_RULES, Category, classify


class TestClassify:
    @pytest.mark.parametrize(
        "name, label, expected",
        [
            ("coretemp", "Package id 0", Category.CPU),
            ("k10temp", "Tctl", Category.CPU),
            ("zenpower", "Tdie", Category.CPU),
            ("unknown", "Core 3", Category.CPU),
            ("amdgpu", "edge", Category.GPU),
            ("nouveau", "temp1", Category.GPU),
            ("i915", "Sensor 1", Category.GPU),
            ("nvme", "Composite", Category.NVME),
            ("mystery", "Sensor 2", Category.NVME),
            ("jc42", "DIMM", Category.OTHER),
            ("spd5118", "Memory", Category.MEMORY),
            ("dimm_temp", "temp1", Category.MEMORY),
            ("asus_ec", "VRM", Category.VRM),
            ("asus_ec", "SoC", Category.VRM),
            ("acpitz", "temp1", Category.CHIPSET),
            ("nct6798", "SYSTIN", Category.CHIPSET),
            ("it8728", "temp3", Category.CHIPSET),
            ("pch_cannonlake", "temp1", Category.CHIPSET),
            ("asus_wmi", "Motherboard", Category.CHIPSET),
            ("drivetemp", "temp1", Category.DISK),
            ("ahci", "Disk 0", Category.DISK),
            ("iwlwifi_1", "temp1", Category.OTHER),
            ("", "", Category.OTHER),
        ],
    )
    def test_known_sensors(self, name, label, expected):
        """Common chip/label pairs land in the expected category."""
        assert classify(name, label) is expected

    def test_case_insensitive(self):
        """Matching ignores case in both name and label."""
        assert classify("CORETEMP", "PACKAGE ID 0") is Category.CPU
        assert classify("NVMe", "COMPOSITE") is Category.NVME

    def test_cpu_wins_over_gpu(self):
        """A CPU token beats a GPU token when both appear."""
        assert classify("k10temp", "gpu") is Category.CPU
        assert classify("amdgpu", "cpu core") is Category.CPU

    def test_gpu_wins_over_nvme(self):
        """GPU rules are checked before NVMe rules."""
        assert classify("radeon", "Composite") is Category.GPU

    def test_vrm_wins_over_chipset(self):
        """VRM labels are matched before chipset chip names."""
        assert classify("nct6775", "SoC VRM") is Category.VRM

    def test_deterministic(self):
        """Repeated calls return the same category."""
        results = {classify("nct6798", "CPUTIN") for _ in range(50)}
        assert results == {Category.CPU}

    def test_table_order(self):
        """Rules are evaluated in a fixed category order."""
        order = [category for category, _ in CLASSIFICATION_RULES]
        assert order == [
            Category.CPU,
            Category.GPU,
            Category.NVME,
            Category.MEMORY,
            Category.VRM,
            Category.CHIPSET,
            Category.DISK,
        ]

    def test_category_display_names(self):
        assert [c.value for c in Category] == [
            "CPU", "GPU", "NVMe", "Chipset", "Memory", "VRM", "Disk", "Other",
        ]
