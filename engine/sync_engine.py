"""
Sync Engine - keeps one set of appearance parameters and one wallpaper per mode.

Watches the background, interface, user-theme and private stores and:
- saves theme parameter edits under ``${mode}-${parameter}`` in the private store
- re-applies the stored set whenever ``color-scheme`` changes
- keeps ``picture-uri`` / ``picture-uri-dark`` independent, reverting stray
  writes to the inactive key and splitting the mode-less background file
  into per-mode copies

Everything runs on the Qt event loop. Store writes notify synchronously, so a
write made from a handler can re-enter the engine before it returns; the
suspend flags stop apply-caused writes from being saved back (and vice versa).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from PySide6.QtCore import QObject, Signal

from core.logging.logger import get_logger
from core.settings.errors import SettingsError, StoreUnavailableError
from core.settings.providers import StoreOpener
from core.settings.schemas import (
    BACKGROUND,
    INTERFACE,
    MANDATORY_ROLES,
    OPTIONAL_ROLES,
    PRIVATE,
    TOGGLE_SHORTCUT_KEY,
    USER_THEME,
)
from core.settings.settings_port import ChangeCallback, SettingsPort
from core.shortcuts.desktop_binding import DesktopKeybinding, open_desktop_keybinding
from core.shortcuts.registry import ShortcutRegistry
from engine.config import EngineConfig
from engine.debounce import DebounceScheduler
from engine.errors import EngineStartError
from engine.file_ops import FileOps
from engine.modes import (
    COLOR_SCHEME_KEY,
    INTERFACE_THEME_KEYS,
    WALLPAPER_KEYS,
    Mode,
    Parameter,
    mode_for_wallpaper_key,
    parse_private_key,
)
from engine.toggle_action import ToggleAction
from engine.wallpaper import (
    WallpaperKind,
    classify,
    mode_variant_path,
    path_to_uri,
    uri_to_path,
)

logger = get_logger(__name__)

# Stored shell-theme value meaning "the stock Shell theme"
SHELL_THEME_DEFAULT = "Default"

TOGGLE_BINDING_NAME = "Toggle light/dark appearance"


@dataclass(frozen=True)
class HandlerRegistration:
    """A live store subscription owned by the engine."""
    role: str
    store: SettingsPort
    subscription_id: str


class SyncEngine(QObject):
    """
    Per-mode appearance synchronization.

    Signals:
        theme_applied(str): mode name after an apply batch finished
        wallpaper_updated(str, str): background key and its new cached URI
        parameter_saved(str, str): private key and the value saved under it
    """

    theme_applied = Signal(str)
    wallpaper_updated = Signal(str, str)
    parameter_saved = Signal(str, str)

    def __init__(
        self,
        open_store: StoreOpener,
        config: Optional[EngineConfig] = None,
        file_ops: Optional[FileOps] = None,
        shortcuts: Optional[ShortcutRegistry] = None,
        toggle_command: Optional[Sequence[str]] = None,
        parent: Optional[QObject] = None,
    ):
        """
        Args:
            open_store: Opens the store for a role; raises StoreUnavailableError
            config: Engine tunables
            file_ops: File operations for the background-file protocol
            shortcuts: Registry for the toggle shortcut (no shortcut when None)
            toggle_command: Command line the desktop keybinding runs to toggle;
                no desktop keybinding when None
            parent: Optional Qt parent
        """
        super().__init__(parent)
        self._open_store = open_store
        self._config = config or EngineConfig()
        self._file_ops = file_ops or FileOps()
        self._debouncer = DebounceScheduler(self)
        self._toggle_command = list(toggle_command) if toggle_command else None
        self._toggle_action: Optional[ToggleAction] = None
        if shortcuts is not None or self._toggle_command:
            self._toggle_action = ToggleAction(shortcuts, self.toggle_mode)
        self._desktop_binding: Optional[DesktopKeybinding] = None

        self._stores: Dict[str, SettingsPort] = {}
        self._registrations: List[HandlerRegistration] = []
        self._stored_wallpapers: Dict[Mode, Optional[str]] = {Mode.LIGHT: None, Mode.DARK: None}
        self._suspend_save = False
        self._suspend_apply = False
        self._running = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def suspend_save(self) -> bool:
        return self._suspend_save

    @property
    def suspend_apply(self) -> bool:
        return self._suspend_apply

    @property
    def toggle_action(self) -> Optional[ToggleAction]:
        return self._toggle_action

    @property
    def debouncer(self) -> DebounceScheduler:
        return self._debouncer

    @property
    def desktop_binding(self) -> Optional[DesktopKeybinding]:
        return self._desktop_binding

    def registrations(self) -> List[HandlerRegistration]:
        return list(self._registrations)

    def has_store(self, role: str) -> bool:
        return role in self._stores

    def stored_wallpaper(self, mode: Mode) -> Optional[str]:
        return self._stored_wallpapers.get(mode)

    def current_mode(self) -> Mode:
        """Mode derived from the live color-scheme; never cached."""
        interface = self._stores.get(INTERFACE)
        if interface is None:
            return Mode.LIGHT
        return Mode.from_color_scheme(interface.get(COLOR_SCHEME_KEY))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """
        Open stores, load the wallpaper cache and subscribe to changes.

        Raises:
            EngineStartError: If the background or interface store is unavailable
        """
        if self._running:
            logger.debug("[ENGINE] Already running")
            return

        logger.info("[ENGINE] Starting sync engine")
        try:
            self._open_stores()
            self._load_wallpapers()
            self._connect_handlers()
        except Exception:
            logger.error("[ENGINE] Start failed, tearing down")
            self.stop()
            raise

        self._running = True
        logger.info(
            "[ENGINE] Running (mode=%s, stores=%s, live_edit=%s)",
            self.current_mode().value,
            ", ".join(sorted(self._stores)),
            self._config.live_edit,
        )

    def stop(self) -> None:
        """Release every subscription and timer, then drop cached state.

        Safe after a partial or failed start() and on repeated calls.
        """
        was_running = self._running
        self._running = False

        if self._toggle_action is not None:
            self._toggle_action.disable()
            self._toggle_action.desktop_binding = None
        if self._desktop_binding is not None:
            try:
                self._desktop_binding.close()
            except Exception as e:
                logger.warning("[ENGINE] Failed to close desktop keybinding stores: %s", e)
            self._desktop_binding = None

        while self._registrations:
            registration = self._registrations.pop()
            try:
                registration.store.unsubscribe(registration.subscription_id)
            except Exception as e:
                logger.warning("[ENGINE] Failed to unsubscribe %s from %s: %s",
                               registration.subscription_id, registration.role, e)

        self._debouncer.cancel_all()

        for role, store in list(self._stores.items()):
            try:
                store.close()
            except Exception as e:
                logger.warning("[ENGINE] Failed to close %s store: %s", role, e)
        self._stores.clear()

        self._stored_wallpapers = {Mode.LIGHT: None, Mode.DARK: None}
        self._suspend_save = False
        self._suspend_apply = False

        if was_running:
            logger.info("[ENGINE] Stopped")

    def _open_stores(self) -> None:
        failures = []
        for role in MANDATORY_ROLES:
            try:
                self._stores[role] = self._open_store(role)
            except Exception as e:
                logger.error("[ENGINE] Required %s store unavailable: %s", role, e)
                failures.append((role, e))
        if failures:
            raise EngineStartError(failures)

        for role in OPTIONAL_ROLES:
            try:
                self._stores[role] = self._open_store(role)
            except StoreUnavailableError as e:
                logger.info("[ENGINE] Optional %s store not available: %s", role, e)
            except Exception as e:
                logger.warning("[ENGINE] Optional %s store failed to open: %s", role, e, exc_info=True)

        if USER_THEME not in self._stores:
            logger.info("[ENGINE] User themes not installed; shell theme will not be managed")

        # The accelerator lives in the private store; without it the binding is left as is
        if self._toggle_command and PRIVATE in self._stores:
            self._desktop_binding = open_desktop_keybinding(
                self._open_store, TOGGLE_BINDING_NAME, self._toggle_command)

    def _load_wallpapers(self) -> None:
        background = self._stores[BACKGROUND]
        for mode, key in WALLPAPER_KEYS.items():
            self._stored_wallpapers[mode] = background.get(key) or None
        logger.debug("[WALLPAPER] Cache loaded: light=%s dark=%s",
                     self._stored_wallpapers[Mode.LIGHT], self._stored_wallpapers[Mode.DARK])

    def _subscribe(self, role: str, key_pattern: str, callback: ChangeCallback) -> None:
        store = self._stores[role]
        subscription_id = store.subscribe(key_pattern, callback)
        self._registrations.append(HandlerRegistration(role, store, subscription_id))

    def _connect_handlers(self) -> None:
        for key in WALLPAPER_KEYS.values():
            self._subscribe(BACKGROUND, key, self._on_wallpaper_key_changed)

        self._subscribe(INTERFACE, COLOR_SCHEME_KEY, self._on_color_scheme_changed)
        for key in INTERFACE_THEME_KEYS:
            self._subscribe(INTERFACE, key, self._on_interface_theme_changed)

        if USER_THEME in self._stores:
            self._subscribe(USER_THEME, Parameter.SHELL_THEME.live_key, self._on_shell_theme_changed)

        private = self._stores.get(PRIVATE)
        if private is not None:
            if self._config.live_edit:
                for mode in Mode:
                    for parameter in Parameter:
                        self._subscribe(PRIVATE, parameter.private_key(mode), self.mirror_private_key)
            self._subscribe(PRIVATE, TOGGLE_SHORTCUT_KEY, self._on_toggle_binding_changed)

        if self._toggle_action is not None:
            self._toggle_action.desktop_binding = self._desktop_binding
            self._toggle_action.enable(self._toggle_accelerators())

    # ------------------------------------------------------------------
    # Store notifications
    # ------------------------------------------------------------------

    def _on_wallpaper_key_changed(self, key: str) -> None:
        self._debouncer.schedule(key, self._config.debounce_ms,
                                 lambda: self.process_wallpaper_change(key))

    def _on_color_scheme_changed(self, key: str) -> None:
        mode = self.current_mode()
        logger.info("[ENGINE] Color scheme changed, mode is now %s", mode.value)
        self.apply_theme(mode)

    def _on_interface_theme_changed(self, key: str) -> None:
        parameter = Parameter.from_live_key(INTERFACE, key)
        if parameter is not None:
            self.save_parameter(parameter)

    def _on_shell_theme_changed(self, key: str) -> None:
        self.save_parameter(Parameter.SHELL_THEME)

    def _on_toggle_binding_changed(self, key: str) -> None:
        if self._toggle_action is not None:
            self._toggle_action.rebind(self._toggle_accelerators())

    def _toggle_accelerators(self) -> List[str]:
        private = self._stores.get(PRIVATE)
        if private is None:
            return []
        try:
            return private.get_list(TOGGLE_SHORTCUT_KEY)
        except SettingsError as e:
            logger.warning("[ENGINE] Could not read %s: %s", TOGGLE_SHORTCUT_KEY, e)
            return []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate(self, key: str, value) -> bool:
        if not isinstance(value, str):
            logger.warning("Invalid value for %s (type %s), skipped", key, type(value).__name__)
            return False
        if len(value) > self._config.max_value_length:
            logger.warning("Value for %s too long (%d characters), skipped", key, len(value))
            return False
        return True

    @staticmethod
    def _write_if_different(store: SettingsPort, key: str, value: str) -> bool:
        current = store.get(key)
        if current == value:
            return False
        store.set(key, value)
        return True

    # ------------------------------------------------------------------
    # Wallpapers
    # ------------------------------------------------------------------

    def process_wallpaper_change(self, key: str) -> None:
        """Reconcile a (debounced) change of ``picture-uri`` or ``picture-uri-dark``."""
        background = self._stores.get(BACKGROUND)
        if background is None:
            return

        key_mode = mode_for_wallpaper_key(key)
        try:
            value = background.get(key) or ''
            mode = self.current_mode()
        except SettingsError as e:
            logger.warning("[WALLPAPER] Could not read %s: %s", key, e)
            return

        if (value or None) == self._stored_wallpapers[key_mode]:
            # Our own write coming back, or nothing changed
            return

        kind = classify(value)
        logger.debug("[WALLPAPER] %s = %s (%s, mode=%s)", key, value, kind.value, mode.value)

        try:
            if kind is WallpaperKind.SPECIAL:
                self._handle_special_background(key, value, mode)
            elif kind is WallpaperKind.PAIRED:
                self._store_wallpaper(key_mode, value)
            elif key_mode is not mode:
                logger.info("[WALLPAPER] %s changed while %s mode is active, reverting", key, mode.value)
                self._revert_wallpaper(key, value)
            else:
                self._store_wallpaper(key_mode, value)
        except SettingsError as e:
            logger.warning("[WALLPAPER] Failed to update %s: %s", key, e)

    def _store_wallpaper(self, mode: Mode, uri: str) -> None:
        self._stored_wallpapers[mode] = uri
        logger.info("[WALLPAPER] %s wallpaper is now %s", mode.value, uri)
        self.wallpaper_updated.emit(mode.wallpaper_key, uri)

    def _revert_wallpaper(self, key: str, value: str) -> None:
        mode = mode_for_wallpaper_key(key)
        cached = self._stored_wallpapers[mode]
        if not cached:
            # Nothing to restore; adopt the new value instead of clearing the key
            self._store_wallpaper(mode, value)
            return
        if self._write_if_different(self._stores[BACKGROUND], key, cached):
            logger.debug("[WALLPAPER] Restored %s to %s", key, cached)

    def _handle_special_background(self, key: str, value: str, mode: Mode) -> None:
        """Split a write of the mode-less background file into a per-mode copy."""
        key_mode = mode_for_wallpaper_key(key)
        if key_mode is mode:
            logger.debug("[WALLPAPER] Background file written to active key %s, reverting", key)
            self._revert_wallpaper(key, value)
            return

        source = uri_to_path(value) or self._config.background_path
        if not self._file_ops.exists(source):
            logger.debug("[WALLPAPER] Background file %s missing, skipped", source)
            return

        target = mode_variant_path(source, mode.value)
        try:
            self._file_ops.copy(source, target, overwrite=True)
        except OSError as e:
            logger.warning("[WALLPAPER] Could not copy %s to %s: %s", source, target, e)
            return

        background = self._stores[BACKGROUND]
        new_uri = path_to_uri(target)
        previous = self._stored_wallpapers[mode]
        # Cache first so the notification for our own write is recognised
        self._stored_wallpapers[mode] = new_uri
        try:
            self._write_if_different(background, mode.wallpaper_key, new_uri)
        except SettingsError as e:
            self._stored_wallpapers[mode] = previous
            logger.warning("[WALLPAPER] Could not point %s at %s: %s", mode.wallpaper_key, new_uri, e)
            return

        logger.info("[WALLPAPER] Background file copied to %s for %s mode", target, mode.value)
        self.wallpaper_updated.emit(mode.wallpaper_key, new_uri)
        self._revert_wallpaper(key, value)

    # ------------------------------------------------------------------
    # Theme parameters
    # ------------------------------------------------------------------

    def save_parameter(self, parameter: Parameter) -> bool:
        """
        Save the live value of ``parameter`` for the current mode.

        Returns:
            bool: True if the private store was written
        """
        if self._suspend_save:
            logger.debug("[SAVE] Ignored %s during apply", parameter.value)
            return False

        private = self._stores.get(PRIVATE)
        live = self._stores.get(parameter.live_role)
        if private is None or live is None:
            logger.debug("[SAVE] No store for %s, skipped", parameter.value)
            return False

        try:
            value = live.get(parameter.live_key)
        except SettingsError as e:
            logger.warning("[SAVE] Could not read %s: %s", parameter.live_key, e)
            return False
        if not self._validate(parameter.value, value):
            return False

        if parameter is Parameter.SHELL_THEME:
            value = value or SHELL_THEME_DEFAULT
        elif not value:
            logger.debug("[SAVE] Empty value for %s, skipped", parameter.value)
            return False

        key = parameter.private_key(self.current_mode())
        try:
            written = self._write_if_different(private, key, value)
        except SettingsError as e:
            logger.warning("[SAVE] Failed to save %s: %s", key, e)
            return False
        if written:
            logger.info("[SAVE] %s = %s", key, value)
            self.parameter_saved.emit(key, value)
        return written

    def apply_theme(self, mode: Optional[Mode] = None) -> int:
        """
        Apply every stored parameter for ``mode`` to the live stores.

        Parameters with no stored value are left alone. A failure on one
        parameter does not stop the others.

        Returns:
            int: Number of live keys written
        """
        if mode is None:
            mode = self.current_mode()
        if PRIVATE not in self._stores:
            logger.info("[APPLY] No private store, nothing to apply for %s", mode.value)
            return 0

        writes = 0
        self._suspend_save = True
        if self._config.live_edit:
            self._suspend_apply = True
        try:
            for parameter in Parameter:
                try:
                    if self._apply_parameter(mode, parameter):
                        writes += 1
                except Exception as e:
                    logger.error("[APPLY] Failed to apply %s for %s: %s",
                                 parameter.value, mode.value, e, exc_info=True)
        finally:
            self._suspend_save = False
            self._suspend_apply = False

        logger.info("[APPLY] %s theme applied (%d change(s))", mode.value, writes)
        self.theme_applied.emit(mode.value)
        return writes

    def _apply_parameter(self, mode: Mode, parameter: Parameter) -> bool:
        private_key = parameter.private_key(mode)
        stored = self._stores[PRIVATE].get(private_key)
        if not stored:
            logger.debug("[APPLY] No stored %s, live value kept", private_key)
            return False
        if not self._validate(private_key, stored):
            return False

        live = self._stores.get(parameter.live_role)
        if live is None:
            return False

        if parameter is Parameter.SHELL_THEME and stored == SHELL_THEME_DEFAULT:
            if not live.get(parameter.live_key):
                return False
            live.reset(parameter.live_key)
            logger.debug("[APPLY] Shell theme reset to default")
            return True

        written = self._write_if_different(live, parameter.live_key, stored)
        if written:
            logger.debug("[APPLY] %s -> %s", parameter.live_key, stored)
        return written

    def mirror_private_key(self, key: str) -> None:
        """Push a private-store edit for the active mode straight to the live store."""
        if self._suspend_apply:
            return
        parsed = parse_private_key(key)
        if parsed is None:
            return
        mode, parameter = parsed
        if mode is not self.current_mode():
            return

        self._suspend_save = True
        try:
            self._apply_parameter(mode, parameter)
        except Exception as e:
            logger.error("[APPLY] Failed to mirror %s: %s", key, e, exc_info=True)
        finally:
            self._suspend_save = False

    # ------------------------------------------------------------------
    # Mode toggle and inspection
    # ------------------------------------------------------------------

    def toggle_mode(self) -> Optional[Mode]:
        """Flip color-scheme between the dark scheme and its default.

        Returns:
            Mode after the flip, or None when the interface store is missing
        """
        interface = self._stores.get(INTERFACE)
        if interface is None:
            logger.warning("[ENGINE] Cannot toggle mode, engine not started")
            return None
        if self.current_mode() is Mode.DARK:
            interface.reset(COLOR_SCHEME_KEY)
        else:
            interface.set(COLOR_SCHEME_KEY, self._config.dark_scheme)
        mode = self.current_mode()
        logger.info("[ENGINE] Toggled to %s mode", mode.value)
        return mode

    def snapshot(self) -> Dict[str, Dict[str, str]]:
        """Stored parameters and cached wallpaper per mode."""
        private = self._stores.get(PRIVATE)
        result: Dict[str, Dict[str, str]] = {}
        for mode in Mode:
            entry: Dict[str, str] = {}
            for parameter in Parameter:
                entry[parameter.value] = private.get(parameter.private_key(mode)) if private else ''
            entry['wallpaper'] = self._stored_wallpapers[mode] or ''
            result[mode.value] = entry
        return result
