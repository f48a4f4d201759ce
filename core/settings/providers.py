"""
Store providers: open the store backing a logical role.

A provider is any callable ``open_store(role) -> SettingsPort`` that raises
StoreUnavailableError when the role cannot be served. The engine calls it
from ``start()`` so store lifetime follows the engine lifecycle.
"""
import os
from pathlib import Path
from typing import Callable, Collection, Dict, Optional

from core.logging.logger import get_logger
from core.settings.errors import StoreUnavailableError
from core.settings.gsettings_store import GSettingsStore, Runner
from core.settings.qsettings_store import QSettingsStore
from core.settings.schemas import SCHEMA_IDS
from core.settings.settings_port import SettingsPort

logger = get_logger(__name__)

StoreOpener = Callable[[str], SettingsPort]


class QSettingsStoreProvider:
    """Opens QSettingsStore instances, one INI file per schema under ``config_dir``."""

    def __init__(self, config_dir: Path, roles: Optional[Collection[str]] = None):
        self._config_dir = Path(config_dir)
        self._roles = set(SCHEMA_IDS if roles is None else roles)

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    def __call__(self, role: str) -> SettingsPort:
        if role not in self._roles or role not in SCHEMA_IDS:
            raise StoreUnavailableError(role, "not provided by this backend")
        schema_id = SCHEMA_IDS[role]
        try:
            self._config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(role, str(e)) from e
        return QSettingsStore(schema_id, self._config_dir / ini_file_name(schema_id))


def ini_file_name(schema_id: str) -> str:
    """INI file name for a schema id; a relocatable ``SCHEMA:PATH`` keeps its last path segment."""
    schema, _, path = schema_id.partition(":")
    segment = path.strip("/").rsplit("/", 1)[-1]
    return f"{schema}.{segment}.ini" if segment else f"{schema}.ini"


class GSettingsStoreProvider:
    """Opens GSettingsStore instances for the installed GNOME schemas."""

    def __init__(self, schema_ids: Optional[Dict[str, str]] = None,
                 runner: Optional[Runner] = None):
        self._schema_ids = dict(SCHEMA_IDS)
        if schema_ids:
            self._schema_ids.update(schema_ids)
        self._runner = runner

    def __call__(self, role: str) -> SettingsPort:
        schema_id = self._schema_ids.get(role)
        if schema_id is None:
            raise StoreUnavailableError(role, "no schema configured")
        return GSettingsStore.open(role, schema_id, runner=self._runner)


def default_config_dir() -> Path:
    """Directory used by the QSettings backend (``~/.config/appearance-keeper``)."""
    config_home = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "appearance-keeper"
