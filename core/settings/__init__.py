"""Settings stores for Appearance Keeper."""

from .errors import SettingsError, SettingsWriteError, StoreUnavailableError
from .gsettings_store import GSettingsStore
from .providers import GSettingsStoreProvider, QSettingsStoreProvider, StoreOpener
from .qsettings_store import QSettingsStore
from .settings_port import SettingsPort

__all__ = [
    'GSettingsStore',
    'GSettingsStoreProvider',
    'QSettingsStore',
    'QSettingsStoreProvider',
    'SettingsError',
    'SettingsPort',
    'SettingsWriteError',
    'StoreOpener',
    'StoreUnavailableError',
]
