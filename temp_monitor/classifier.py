"""Heuristic mapping of hwmon chip names and channel labels to categories."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Category(str, Enum):
    CPU = "CPU"
    GPU = "GPU"
    NVME = "NVMe"
    CHIPSET = "Chipset"
    MEMORY = "Memory"
    VRM = "VRM"
    DISK = "Disk"
    OTHER = "Other"


@dataclass(frozen=True)
class Rule:
    """Substring match against a lowercased chip name or channel label."""

    names: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()

    def matches(self, name: str, label: str) -> bool:
        return any(token in name for token in self.names) or any(
            token in label for token in self.labels
        )


# Evaluated top to bottom; the first matching rule wins. "soc" would also
# match some chipset labels, so VRM must stay ahead of Chipset.
CLASSIFICATION_RULES: tuple[tuple[Category, Rule], ...] = (
    (
        Category.CPU,
        Rule(
            names=("coretemp", "k10temp", "zenpower", "cpu", "tctl", "tccd"),
            labels=("core", "package", "cpu", "tctl", "tccd", "tdie"),
        ),
    ),
    (
        Category.GPU,
        Rule(
            names=("amdgpu", "nouveau", "radeon", "nvidia", "i915"),
            labels=("gpu", "edge", "junction"),
        ),
    ),
    (
        Category.NVME,
        Rule(names=("nvme",), labels=("composite", "sensor 1", "sensor 2")),
    ),
    (
        Category.MEMORY,
        Rule(names=("dimm",), labels=("memory", "ram")),
    ),
    (
        Category.VRM,
        Rule(labels=("vrm", "vcore", "soc")),
    ),
    (
        Category.CHIPSET,
        Rule(
            names=("acpitz", "pch", "nct", "it87"),
            labels=("motherboard", "chipset"),
        ),
    ),
    (
        Category.DISK,
        Rule(names=("drivetemp", "sata"), labels=("disk",)),
    ),
)


def classify(name: str, label: str) -> Category:
    name = (name or "").casefold()
    label = (label or "").casefold()
    for category, rule in CLASSIFICATION_RULES:
        if rule.matches(name, label):
            return category
    return Category.OTHER
