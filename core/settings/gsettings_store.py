"""
GSettings-backed settings store driven through the ``gsettings`` CLI.

Reads and writes are synchronous ``gsettings get/set/reset`` calls. External
changes are picked up from a long-running ``gsettings monitor <schema>``
child process owned by a QProcess, so notifications arrive on the Qt event
loop like any other signal.

Writes made through the store notify subscribers before ``set()`` returns,
the same as the QSettings backend. The monitor reports those writes again a
little later; each write is remembered as an expected echo and the matching
monitor line is dropped.
"""
import ast
import shutil
import subprocess
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from PySide6.QtCore import QProcess

from core.logging.logger import get_logger, is_verbose_logging
from core.settings.errors import SettingsWriteError, StoreUnavailableError
from core.settings.store_base import ObservableStore

logger = get_logger(__name__)

GSETTINGS = 'gsettings'
_CLI_TIMEOUT_S = 5.0
# How long a write waits for its monitor echo before it is forgotten
_ECHO_TTL_S = 2.0

Runner = Callable[..., subprocess.CompletedProcess]


def parse_gvariant_string(text: str) -> str:
    """Parse a GVariant text-format string (as printed by ``gsettings get``).

    Unquoted output (enums, numbers) is returned stripped and unchanged.
    """
    raw = text.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ("'", '"'):
        try:
            value = ast.literal_eval(raw)
        except (ValueError, SyntaxError):
            return raw[1:-1]
        return value if isinstance(value, str) else raw
    return raw


def parse_gvariant_strv(text: str) -> List[str]:
    """Parse a GVariant ``as`` value such as ``['<Super>t']`` or ``@as []``."""
    raw = text.strip()
    if raw.startswith('@as'):
        raw = raw[3:].strip()
    if not raw:
        return []
    try:
        value = ast.literal_eval(raw)
    except (ValueError, SyntaxError):
        logger.warning("Could not parse string list value: %r", text)
        return []
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) for v in value]


def format_gvariant_string(value: str) -> str:
    """Quote ``value`` in GVariant text format."""
    escaped = value.replace('\\', '\\\\').replace("'", "\\'")
    return f"'{escaped}'"


def format_gvariant_strv(values: Sequence[str]) -> str:
    if not values:
        return '@as []'
    return '[' + ', '.join(format_gvariant_string(v) for v in values) + ']'


def split_monitor_line(line: str) -> Optional[Tuple[str, str]]:
    """Split a ``gsettings monitor`` output line into key and value text."""
    key, sep, value = line.strip().partition(':')
    key = key.strip()
    if not sep or not key or ' ' in key:
        return None
    return key, value.strip()


def parse_monitor_line(line: str) -> Optional[str]:
    """Return the key from a ``gsettings monitor`` output line (``key: value``)."""
    parts = split_monitor_line(line)
    return parts[0] if parts is not None else None


class GSettingsStore(ObservableStore):
    """
    Store for one GSettings schema.

    The monitor process only runs while the store has subscribers.
    """

    def __init__(self, schema_id: str, runner: Optional[Runner] = None):
        super().__init__(schema_id)
        self._run = runner or subprocess.run
        self._monitor: Optional[QProcess] = None
        self._monitor_buffer = ''
        # key -> [(deadline, value)] for writes the monitor has not echoed yet
        self._pending_echoes: Dict[str, List[Tuple[float, str]]] = {}

    @classmethod
    def open(cls, role: str, schema_id: str, runner: Optional[Runner] = None) -> 'GSettingsStore':
        """Open ``schema_id`` or raise StoreUnavailableError when it is not installed."""
        if runner is None and shutil.which(GSETTINGS) is None:
            raise StoreUnavailableError(role, f"'{GSETTINGS}' executable not found")
        store = cls(schema_id, runner=runner)
        result = store._gsettings('list-keys', schema_id)
        if result.returncode != 0:
            reason = (result.stderr or '').strip() or f"schema {schema_id} not installed"
            raise StoreUnavailableError(role, reason)
        logger.info("Opened GSettings schema %s", schema_id)
        return store

    def _gsettings(self, *args: str) -> subprocess.CompletedProcess:
        return self._run(
            [GSETTINGS, *args],
            capture_output=True,
            text=True,
            timeout=_CLI_TIMEOUT_S,
            check=False,
        )

    def _query(self, key: str) -> str:
        result = self._gsettings('get', self.schema_id, key)
        if result.returncode != 0:
            logger.warning("gsettings get %s %s failed: %s", self.schema_id, key, (result.stderr or '').strip())
            return ''
        return result.stdout

    def get(self, key: str) -> str:
        return parse_gvariant_string(self._query(key))

    def get_list(self, key: str) -> List[str]:
        return parse_gvariant_strv(self._query(key))

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise SettingsWriteError(self.schema_id, key, f"expected str, got {type(value).__name__}")
        self._write('set', key, format_gvariant_string(value))

    def set_list(self, key: str, values: List[str]) -> None:
        self._write('set', key, format_gvariant_strv(values))

    def reset(self, key: str) -> None:
        self._write('reset', key)

    def _write(self, command: str, key: str, *args: str) -> None:
        try:
            result = self._gsettings(command, self.schema_id, key, *args)
        except (OSError, subprocess.SubprocessError) as e:
            raise SettingsWriteError(self.schema_id, key, str(e)) from e
        if result.returncode != 0:
            raise SettingsWriteError(self.schema_id, key, (result.stderr or '').strip())

        if is_verbose_logging():
            logger.debug("[%s] gsettings %s %s %s", self.schema_id, command, key, ' '.join(args))
        else:
            logger.debug("[%s] gsettings %s %s", self.schema_id, command, key)

        if self._monitor is not None:
            written = args[0] if args else self._query(key)
            self._expect_echo(key, parse_gvariant_string(written))
        self._notify(key)

    def _expect_echo(self, key: str, value: str) -> None:
        deadline = time.monotonic() + _ECHO_TTL_S
        self._pending_echoes.setdefault(key, []).append((deadline, value))

    def _consume_echo(self, key: str, value: str) -> bool:
        """Drop the pending echo of ``key`` = ``value``; True if there was one."""
        now = time.monotonic()
        entries = [e for e in self._pending_echoes.pop(key, []) if e[0] > now]
        match = next((i for i, (_, expected) in enumerate(entries) if expected == value), None)
        if match is not None:
            del entries[match]
        if entries:
            self._pending_echoes[key] = entries
        return match is not None

    # ------------------------------------------------------------------
    # Change monitoring
    # ------------------------------------------------------------------

    def _on_first_subscription(self) -> None:
        self._start_monitor()

    def _on_last_unsubscribed(self) -> None:
        self._stop_monitor()

    def _start_monitor(self) -> None:
        if self._monitor is not None:
            return
        process = QProcess(self)
        process.setProgram(GSETTINGS)
        process.setArguments(['monitor', self.schema_id])
        process.readyReadStandardOutput.connect(self._on_monitor_output)
        process.errorOccurred.connect(self._on_monitor_error)
        process.start()
        self._monitor = process
        self._monitor_buffer = ''
        logger.debug("[%s] Monitor started", self.schema_id)

    def _stop_monitor(self) -> None:
        process = self._monitor
        if process is None:
            return
        self._monitor = None
        self._pending_echoes.clear()
        try:
            process.readyReadStandardOutput.disconnect(self._on_monitor_output)
            process.errorOccurred.disconnect(self._on_monitor_error)
        except (RuntimeError, TypeError):
            pass
        if process.state() != QProcess.ProcessState.NotRunning:
            process.kill()
            process.waitForFinished(1000)
        process.deleteLater()
        logger.debug("[%s] Monitor stopped", self.schema_id)

    def _on_monitor_output(self) -> None:
        if self._monitor is None:
            return
        data = bytes(self._monitor.readAllStandardOutput()).decode('utf-8', errors='replace')
        self._monitor_buffer += data
        lines = self._monitor_buffer.split('\n')
        self._monitor_buffer = lines.pop()
        for line in lines:
            self.feed_monitor_line(line)

    def feed_monitor_line(self, line: str) -> None:
        """Dispatch one line of monitor output as a change notification."""
        parts = split_monitor_line(line)
        if parts is None:
            return
        key, value_text = parts
        if self._consume_echo(key, parse_gvariant_string(value_text)):
            logger.debug("[%s] Dropped monitor echo of own write to %s", self.schema_id, key)
            return
        self._notify(key)

    def _on_monitor_error(self, error) -> None:
        logger.error("[%s] gsettings monitor failed: %s", self.schema_id, error)
