"""Named keyboard shortcuts."""

from .desktop_binding import DesktopKeybinding, open_desktop_keybinding
from .registry import ShortcutRegistry, parse_accelerator

__all__ = ['DesktopKeybinding', 'ShortcutRegistry', 'open_desktop_keybinding', 'parse_accelerator']
