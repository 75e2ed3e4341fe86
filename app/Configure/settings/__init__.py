"""Settings package"""

from .Settings import SafeConfig, Settings, SettingsManager

__all__ = ["SafeConfig", "Settings", "SettingsManager"]
