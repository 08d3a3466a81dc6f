"""Tolerant readers for the small text files exposed by sysfs.

Sensor values are published in milli-units (millidegrees Celsius for
temperatures) and a missing or garbled file must never abort a poll, so every
helper here degrades to ``None``, a default, or :data:`SENTINEL`.
"""
from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from temp_monitor.logging_utils import TRACE_LEVEL

SENTINEL = -999.0
MILLI = 1000.0

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

logger = logging.getLogger(__name__)


def _read_raw(path: str | Path) -> str | None:
    try:
        raw = Path(path).read_text(errors="replace")
    except OSError as exc:
        logger.log(TRACE_LEVEL, "Unable to read %s: %s", path, exc)
        return None
    return raw or None


def read_text(path: str | Path) -> str | None:
    """Read a sysfs file and return its contents stripped, or None if unreadable."""
    raw = _read_raw(path)
    if raw is None:
        return None
    return raw.strip() or None


def read_number(path: str | Path, divisor: float = MILLI) -> float:
    """Read a numeric sysfs value and scale it by ``divisor``.

    Only the leading integer is parsed, so trailing newlines or junk are
    ignored. A file that is missing, empty, or does not start with a number
    yields :data:`SENTINEL`. A parsed zero is only trusted when the raw text
    literally starts with ``"0"``.
    """
    raw = _read_raw(path)
    if raw is None:
        return SENTINEL
    match = _LEADING_INT.match(raw)
    value = int(match.group(1)) if match else 0
    if value == 0 and not raw.startswith("0"):
        logger.log(TRACE_LEVEL, "Rejecting unparseable value %r from %s", raw, path)
        return SENTINEL
    return value / divisor


def read_int(path: str | Path, default: int = -1) -> int:
    text = read_text(path)
    if text is None:
        return default
    try:
        return int(text)
    except ValueError:
        return default


def dir_exists(path: str | Path) -> bool:
    return os.path.isdir(path)
