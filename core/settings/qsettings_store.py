"""
QSettings-backed settings store.

One INI file per schema. Used when no GNOME session is available and as the
store behind the test suite.
"""
from pathlib import Path
from typing import Any, Dict, List, Optional

from PySide6.QtCore import QSettings

from core.logging.logger import get_logger, is_verbose_logging
from core.settings.errors import SettingsWriteError
from core.settings.schemas import get_schema_defaults
from core.settings.store_base import ObservableStore

logger = get_logger(__name__)


class QSettingsStore(ObservableStore):
    """
    Settings store persisted with QSettings in INI format.

    Unknown keys fall back to the schema defaults; ``reset`` removes the
    stored value so the default shows through again.
    """

    def __init__(self, schema_id: str, path: Path,
                 defaults: Optional[Dict[str, Any]] = None):
        """
        Initialize the store.

        Args:
            schema_id: Schema id this store stands in for
            path: INI file used for persistence
            defaults: Optional defaults overriding the built-in schema defaults
        """
        super().__init__(schema_id)
        self._path = Path(path)
        self._defaults = get_schema_defaults(schema_id)
        if defaults:
            self._defaults.update(defaults)
        self._settings = QSettings(str(self._path), QSettings.Format.IniFormat)
        logger.debug("QSettingsStore for %s at %s", schema_id, self._path)

    @property
    def path(self) -> Path:
        return self._path

    def keys(self) -> List[str]:
        return sorted(set(self._defaults) | set(self._settings.allKeys()))

    def get(self, key: str) -> str:
        value = self._settings.value(key, self._defaults.get(key, ''))
        if value is None:
            return ''
        if isinstance(value, list):
            return ','.join(str(v) for v in value)
        return str(value)

    def get_list(self, key: str) -> List[str]:
        default = self._defaults.get(key, [])
        value = self._settings.value(key, default)
        # INI round-trips a one-element list as a plain string and an empty
        # list as an invalid value
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value else []
        return [str(v) for v in value]

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise SettingsWriteError(self.schema_id, key, f"expected str, got {type(value).__name__}")
        self._write(key, value)

    def set_list(self, key: str, values: List[str]) -> None:
        self._write(key, [str(v) for v in values])

    def reset(self, key: str) -> None:
        self._settings.remove(key)
        self._sync(key)
        logger.debug("[%s] Reset %s", self.schema_id, key)
        self._notify(key)

    def _write(self, key: str, value: Any) -> None:
        old_value = self._settings.value(key) if is_verbose_logging() else None
        self._settings.setValue(key, value)
        self._sync(key)

        if is_verbose_logging():
            logger.debug("[%s] Setting changed: %s: %r -> %r", self.schema_id, key, old_value, value)
        else:
            logger.debug("[%s] Setting changed: %s", self.schema_id, key)
        self._notify(key)

    def _sync(self, key: str) -> None:
        self._settings.sync()
        if self._settings.status() != QSettings.Status.NoError:
            raise SettingsWriteError(self.schema_id, key, f"QSettings status {self._settings.status()}")
