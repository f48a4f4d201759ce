"""
GNOME custom keybinding.

The desktop grabs the accelerator and runs a command, so the toggle works
without this process reading the keyboard. The binding lives in the
relocatable ``custom-keybinding`` schema at a fixed path, and the path is
listed in the media-keys ``custom-keybindings`` key so gnome-settings-daemon
picks it up.
"""
from __future__ import annotations

import shlex
from typing import List, Optional, Sequence

from core.logging.logger import get_logger
from core.settings.errors import StoreUnavailableError
from core.settings.providers import StoreOpener
from core.settings.schemas import (
    CUSTOM_KEYBINDING,
    CUSTOM_KEYBINDINGS_KEY,
    KEYBINDING_PATH,
    MEDIA_KEYS,
)
from core.settings.settings_port import SettingsPort

logger = get_logger(__name__)

NAME_KEY = 'name'
COMMAND_KEY = 'command'
BINDING_KEY = 'binding'


class DesktopKeybinding:
    """One custom keybinding entry owned by this application."""

    def __init__(self, media_keys: SettingsPort, binding: SettingsPort,
                 name: str, command: Sequence[str], path: str = KEYBINDING_PATH):
        self._media_keys = media_keys
        self._binding = binding
        self._name = name
        self._command = shlex.join(command)
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    @property
    def command(self) -> str:
        return self._command

    def is_installed(self) -> bool:
        return self._path in self._listed_paths()

    def accelerator(self) -> str:
        """Accelerator currently bound, or '' when not installed."""
        if not self.is_installed():
            return ''
        return self._binding.get(BINDING_KEY)

    def install(self, accelerator: str) -> bool:
        """
        Bind ``accelerator`` to the command; an empty accelerator removes the entry.

        Returns:
            bool: True if the entry is installed afterwards
        """
        if not accelerator:
            self.remove()
            return False

        for key, value in ((NAME_KEY, self._name), (COMMAND_KEY, self._command),
                           (BINDING_KEY, accelerator)):
            if self._binding.get(key) != value:
                self._binding.set(key, value)

        paths = self._listed_paths()
        if self._path not in paths:
            self._media_keys.set_list(CUSTOM_KEYBINDINGS_KEY, paths + [self._path])
        logger.info("Desktop keybinding %s runs %r", accelerator, self._command)
        return True

    def remove(self) -> None:
        paths = self._listed_paths()
        if self._path not in paths:
            return
        self._media_keys.set_list(CUSTOM_KEYBINDINGS_KEY, [p for p in paths if p != self._path])
        for key in (NAME_KEY, COMMAND_KEY, BINDING_KEY):
            self._binding.reset(key)
        logger.info("Desktop keybinding removed")

    def close(self) -> None:
        self._binding.close()
        self._media_keys.close()

    def _listed_paths(self) -> List[str]:
        return list(self._media_keys.get_list(CUSTOM_KEYBINDINGS_KEY))


def open_desktop_keybinding(open_store: StoreOpener, name: str,
                            command: Sequence[str]) -> Optional[DesktopKeybinding]:
    """Open the keybinding stores; None when the desktop does not provide them."""
    stores = []
    for role in (MEDIA_KEYS, CUSTOM_KEYBINDING):
        try:
            stores.append(open_store(role))
        except StoreUnavailableError as e:
            logger.info("Custom keybindings not available: %s", e)
        except Exception as e:
            logger.warning("Custom keybinding store %s failed to open: %s", role, e)
        else:
            continue
        for store in stores:
            store.close()
        return None
    media_keys, binding = stores
    return DesktopKeybinding(media_keys, binding, name, command)
