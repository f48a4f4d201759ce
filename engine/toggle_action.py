"""
Global shortcut that flips between light and dark mode.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from core.logging.logger import get_logger
from core.shortcuts.desktop_binding import DesktopKeybinding
from core.shortcuts.registry import ShortcutRegistry
from core.utils.decorators import suppress_exceptions

logger = get_logger(__name__)


class ToggleAction:
    """Binds the ``dark-light-toggle`` accelerator to a mode flip.

    All behaviour lives in the ``on_activate`` callable (the engine's
    ``toggle_mode``); this class only manages the bindings. The in-process
    registry handles key sequences dispatched to it. The desktop keybinding,
    when attached, makes the desktop run the toggle command on the same
    accelerator; it stays installed after ``disable()`` because the command
    works without the daemon.
    """

    ACTION_NAME = 'toggle-dark-light'

    def __init__(self, registry: Optional[ShortcutRegistry], on_activate: Callable[[], object],
                 desktop_binding: Optional[DesktopKeybinding] = None):
        self._registry = registry
        self._on_activate = on_activate
        self._desktop_binding = desktop_binding
        self._bound: List[str] = []
        self._enabled = False

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def desktop_binding(self) -> Optional[DesktopKeybinding]:
        return self._desktop_binding

    @desktop_binding.setter
    def desktop_binding(self, binding: Optional[DesktopKeybinding]) -> None:
        self._desktop_binding = binding

    def enable(self, accelerators: Sequence[str]) -> None:
        if self._enabled:
            self.rebind(accelerators)
            return
        bound = self._first(accelerators)
        if self._registry is not None and not self._registry.register(self.ACTION_NAME, bound, self.activate):
            return
        self._enabled = True
        self._bound = bound
        self._sync_desktop_binding()
        logger.info("Toggle shortcut enabled: %s", self.accelerators() or '(unbound)')

    def rebind(self, accelerators: Sequence[str]) -> None:
        if not self._enabled:
            return
        self._bound = self._first(accelerators)
        if self._registry is not None:
            self._registry.rebind(self.ACTION_NAME, self._bound)
        self._sync_desktop_binding()

    def disable(self) -> None:
        if not self._enabled:
            return
        if self._registry is not None:
            self._registry.unregister(self.ACTION_NAME)
        self._enabled = False
        logger.debug("Toggle shortcut disabled")

    def accelerators(self) -> List[str]:
        if self._registry is not None:
            return self._registry.accelerators(self.ACTION_NAME)
        return list(self._bound)

    @suppress_exceptions(logger, "Toggle action failed", log_level="warning")
    def activate(self) -> None:
        logger.debug("Toggle shortcut activated")
        self._on_activate()

    @suppress_exceptions(logger, "Could not update the desktop keybinding", log_level="warning")
    def _sync_desktop_binding(self) -> None:
        if self._desktop_binding is None:
            return
        self._desktop_binding.install(self._bound[0] if self._bound else '')

    @staticmethod
    def _first(accelerators: Optional[Sequence[str]]) -> List[str]:
        # The key holds at most one binding; extra entries are ignored
        if not accelerators:
            return []
        return [accelerators[0]]
