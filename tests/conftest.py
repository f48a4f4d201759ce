"""
Shared pytest fixtures for Appearance Keeper tests.
"""
import os
import sys

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtWidgets import QApplication

from core.settings.errors import StoreUnavailableError
from core.settings.providers import ini_file_name
from core.settings.qsettings_store import QSettingsStore
from core.settings.schemas import ALL_ROLES, KEYBINDING_ROLES, SCHEMA_IDS


@pytest.fixture(scope='session')
def qt_app():
    """Create QApplication instance for tests."""
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    yield app
    # Don't quit - causes issues with pytest


class FixedStoreProvider:
    """Serves pre-built stores so tests and the engine share instances."""

    def __init__(self, stores):
        self.stores = stores
        self.opened = []

    def __call__(self, role):
        store = self.stores.get(role)
        if store is None:
            raise StoreUnavailableError(role, "not provided")
        self.opened.append(role)
        return store


@pytest.fixture
def stores(qt_app, tmp_path):
    """One QSettingsStore per role (keybinding roles included), backed by INI files under tmp_path."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return {
        role: QSettingsStore(SCHEMA_IDS[role], config_dir / ini_file_name(SCHEMA_IDS[role]))
        for role in ALL_ROLES + KEYBINDING_ROLES
    }


@pytest.fixture
def make_engine(stores):
    """Factory for started SyncEngine instances; stopped on teardown."""
    from engine.config import EngineConfig
    from engine.sync_engine import SyncEngine

    engines = []

    def _make(roles=None, start=True, shortcuts=None, file_ops=None, toggle_command=None, **config):
        provider = FixedStoreProvider({r: stores[r] for r in (roles or stores)})
        engine = SyncEngine(provider, config=EngineConfig(**config), file_ops=file_ops,
                            shortcuts=shortcuts, toggle_command=toggle_command)
        engines.append(engine)
        if start:
            engine.start()
        return engine

    yield _make

    for engine in engines:
        engine.stop()
