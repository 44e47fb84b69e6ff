"""
Settings Manager - Handles markup settings persistence using QSettings
"""

import os
from dataclasses import dataclass
from typing import Optional

from PySide6.QtCore import QSettings

from calculations.geometry import is_valid_rotation_step


@dataclass(frozen=True)
class MarkupConfig:
    """Tunable markup behaviour; tolerances are screen pixels"""
    snapping_enabled: bool = True
    corner_tolerance_px: float = 10.0
    edge_tolerance_px: float = 10.0
    close_tolerance_px: float = 10.0
    rotation_step_degrees: float = 45.0

    def __post_init__(self):
        if not is_valid_rotation_step(self.rotation_step_degrees):
            raise ValueError(f"Rotation step must be a multiple of 45 dividing 360, got {self.rotation_step_degrees}")


class SettingsManager:
    """Manages application settings using QSettings"""

    ORGANIZATION = "Markup Solutions"
    APPLICATION = "Floor Plan Markup"

    # Settings keys
    KEY_DATABASE_CUSTOM_PATH = "database/custom_path"
    KEY_DATABASE_USE_CUSTOM_PATH = "database/use_custom_path"
    KEY_SNAPPING_ENABLED = "snapping/enabled"
    KEY_CORNER_TOLERANCE = "snapping/corner_tolerance_px"
    KEY_EDGE_TOLERANCE = "snapping/edge_tolerance_px"
    KEY_CLOSE_TOLERANCE = "drawing/close_tolerance_px"
    KEY_ROTATION_STEP = "placement/rotation_step_degrees"

    def __init__(self, ini_path: Optional[str] = None):
        """Initialize the settings manager

        Args:
            ini_path (str, optional): Store settings in this INI file instead of
                the platform location (used by tests and portable installs)
        """
        if ini_path:
            self.settings = QSettings(ini_path, QSettings.IniFormat)
        else:
            self.settings = QSettings(SettingsManager.ORGANIZATION, SettingsManager.APPLICATION)

    def get_database_path(self):
        """
        Get the custom database path from settings, or None if not set

        Returns:
            str or None: Custom database path, or None if using default
        """
        use_custom = self.settings.value(self.KEY_DATABASE_USE_CUSTOM_PATH, False, type=bool)
        if use_custom:
            custom_path = self.settings.value(self.KEY_DATABASE_CUSTOM_PATH, None, type=str)
            if custom_path and os.path.isdir(os.path.dirname(os.path.abspath(custom_path))):
                return custom_path
        return None

    def set_database_path(self, db_path):
        """Set (or with a falsy value, clear) the custom database path"""
        if db_path:
            self.settings.setValue(self.KEY_DATABASE_CUSTOM_PATH, db_path)
            self.settings.setValue(self.KEY_DATABASE_USE_CUSTOM_PATH, True)
        else:
            self.settings.remove(self.KEY_DATABASE_CUSTOM_PATH)
            self.settings.setValue(self.KEY_DATABASE_USE_CUSTOM_PATH, False)
        self.settings.sync()

    def is_snapping_enabled(self) -> bool:
        return self.settings.value(self.KEY_SNAPPING_ENABLED, True, type=bool)

    def set_snapping_enabled(self, enabled: bool):
        self.settings.setValue(self.KEY_SNAPPING_ENABLED, bool(enabled))
        self.settings.sync()

    def get_snap_tolerances(self):
        """
        Returns:
            tuple: (corner_tolerance_px, edge_tolerance_px)
        """
        return (
            self.settings.value(self.KEY_CORNER_TOLERANCE, MarkupConfig.corner_tolerance_px, type=float),
            self.settings.value(self.KEY_EDGE_TOLERANCE, MarkupConfig.edge_tolerance_px, type=float),
        )

    def set_snap_tolerances(self, corner_px: float, edge_px: float):
        if corner_px < 0 or edge_px < 0:
            raise ValueError("Snap tolerances must not be negative")
        self.settings.setValue(self.KEY_CORNER_TOLERANCE, float(corner_px))
        self.settings.setValue(self.KEY_EDGE_TOLERANCE, float(edge_px))
        self.settings.sync()

    def get_close_tolerance(self) -> float:
        return self.settings.value(self.KEY_CLOSE_TOLERANCE, MarkupConfig.close_tolerance_px, type=float)

    def set_close_tolerance(self, tolerance_px: float):
        self.settings.setValue(self.KEY_CLOSE_TOLERANCE, float(tolerance_px))
        self.settings.sync()

    def get_rotation_step(self) -> float:
        """Stored step, or the default when the stored value is off the 45 degree grid"""
        step = self.settings.value(self.KEY_ROTATION_STEP, MarkupConfig.rotation_step_degrees, type=float)
        if not is_valid_rotation_step(step):
            return MarkupConfig.rotation_step_degrees
        return step

    def set_rotation_step(self, degrees: float):
        if not is_valid_rotation_step(degrees):
            raise ValueError("Rotation step must be a multiple of 45 that divides 360")
        self.settings.setValue(self.KEY_ROTATION_STEP, float(degrees))
        self.settings.sync()

    def load_markup_config(self) -> MarkupConfig:
        """Snapshot of all markup settings"""
        corner, edge = self.get_snap_tolerances()
        return MarkupConfig(
            snapping_enabled=self.is_snapping_enabled(),
            corner_tolerance_px=corner,
            edge_tolerance_px=edge,
            close_tolerance_px=self.get_close_tolerance(),
            rotation_step_degrees=self.get_rotation_step(),
        )


# Global instance
_settings_manager = None


def get_settings_manager():
    """Get the global settings manager instance"""
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager
