"""
Utility functions for the floor-plan markup tool
Includes deployment detection and user data locations
"""

import os
import sys

APPLICATION_NAME = "Floor Plan Markup"
VERSION = "1.0.0"
DATABASE_FILENAME = "markup.db"


def is_bundled_executable():
    """
    Detect if running as a bundled executable (PyInstaller)
    Returns True if bundled, False if running from source
    """
    return getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS')


def get_user_data_directory():
    """
    Get the user data directory for saved designs

    Returns:
        str: Absolute path to user data directory
    """
    return os.path.expanduser("~/Documents/FloorPlanMarkup")


def ensure_user_data_directory():
    """
    Ensure the user data directory exists

    Returns:
        str: Absolute path to created user data directory
    """
    user_dir = get_user_data_directory()
    os.makedirs(user_dir, exist_ok=True)
    return user_dir


def get_default_database_path():
    return os.path.join(get_user_data_directory(), DATABASE_FILENAME)


def get_version_info():
    return {
        'version': VERSION,
        'bundled': is_bundled_executable(),
        'python': sys.version.split()[0],
    }


def get_application_title():
    return f"{APPLICATION_NAME} v{VERSION}"
