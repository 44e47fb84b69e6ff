"""
Shared pytest fixtures for the markup engine
"""

import os
import sys

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import pytest
from PySide6.QtCore import QCoreApplication


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    """QObject signals need an application instance"""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def id_factory():
    """Deterministic ids: item-1, item-2, ..."""
    counter = {'n': 0}

    def next_id():
        counter['n'] += 1
        return f"item-{counter['n']}"
    return next_id


@pytest.fixture
def controller(id_factory):
    from drawing.markup_controller import MarkupController
    return MarkupController(id_factory=id_factory, confirm=lambda message: True)


@pytest.fixture
def memory_db():
    from models.database import close_database, initialize_database
    initialize_database(":memory:")
    yield
    close_database()


@pytest.fixture
def settings(tmp_path):
    from utils.settings_manager import SettingsManager
    return SettingsManager(str(tmp_path / "settings.ini"))
