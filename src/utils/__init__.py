"""
Utils package - Utility modules for the floor-plan markup tool
"""

from .general_utils import (
    is_bundled_executable,
    get_user_data_directory,
    ensure_user_data_directory,
    get_default_database_path,
    get_version_info,
    get_application_title
)
from .settings_manager import SettingsManager, MarkupConfig, get_settings_manager

__all__ = [
    'is_bundled_executable',
    'get_user_data_directory',
    'ensure_user_data_directory',
    'get_default_database_path',
    'get_version_info',
    'get_application_title',
    'SettingsManager',
    'MarkupConfig',
    'get_settings_manager'
]
