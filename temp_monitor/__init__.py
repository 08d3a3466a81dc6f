"""Hardware temperature monitor for Linux hwmon/thermal sysfs."""

__version__ = "0.2.0"

from temp_monitor.classifier import Category, classify
from temp_monitor.config import AppConfig, load_config
from temp_monitor.discovery import SensorDiscovery, discover
from temp_monitor.models import Sensor, SensorStatus, SystemStats
from temp_monitor.stats import poll_once, summarize, update_sensor

__all__ = [
    "AppConfig",
    "Category",
    "Sensor",
    "SensorDiscovery",
    "SensorStatus",
    "SystemStats",
    "classify",
    "discover",
    "load_config",
    "poll_once",
    "summarize",
    "update_sensor",
]
