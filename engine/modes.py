"""
Appearance modes and the per-mode parameters the engine keeps.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from core.settings.schemas import INTERFACE, USER_THEME


class Mode(Enum):
    """Light or dark appearance, derived from the color-scheme string."""
    LIGHT = "light"
    DARK = "dark"

    @classmethod
    def from_color_scheme(cls, color_scheme: Optional[str]) -> 'Mode':
        """Dark iff the scheme contains ``dark`` (case-sensitive)."""
        if color_scheme and "dark" in color_scheme:
            return cls.DARK
        return cls.LIGHT

    @property
    def opposite(self) -> 'Mode':
        return Mode.LIGHT if self is Mode.DARK else Mode.DARK

    @property
    def wallpaper_key(self) -> str:
        return WALLPAPER_KEYS[self]


class Parameter(Enum):
    """Appearance parameters stored once per mode."""
    GTK_THEME = "gtk-theme"
    ICON_THEME = "icon-theme"
    CURSOR_THEME = "cursor-theme"
    ACCENT_COLOR = "accent-color"
    SHELL_THEME = "shell-theme"

    @property
    def live_role(self) -> str:
        """Store role holding the live value."""
        return USER_THEME if self is Parameter.SHELL_THEME else INTERFACE

    @property
    def live_key(self) -> str:
        """Key of the live value inside ``live_role``."""
        return "name" if self is Parameter.SHELL_THEME else self.value

    def private_key(self, mode: Mode) -> str:
        """Private-store key for this parameter in ``mode``."""
        return f"{mode.value}-{self.value}"

    @classmethod
    def from_live_key(cls, role: str, key: str) -> Optional['Parameter']:
        for parameter in cls:
            if parameter.live_role == role and parameter.live_key == key:
                return parameter
        return None


COLOR_SCHEME_KEY = "color-scheme"
LIGHT_WALLPAPER_KEY = "picture-uri"
DARK_WALLPAPER_KEY = "picture-uri-dark"

WALLPAPER_KEYS = {
    Mode.LIGHT: LIGHT_WALLPAPER_KEY,
    Mode.DARK: DARK_WALLPAPER_KEY,
}

INTERFACE_THEME_KEYS = tuple(p.live_key for p in Parameter if p.live_role == INTERFACE)


def mode_for_wallpaper_key(key: str) -> Mode:
    """Nominal mode of a background key."""
    if key == DARK_WALLPAPER_KEY:
        return Mode.DARK
    if key == LIGHT_WALLPAPER_KEY:
        return Mode.LIGHT
    raise ValueError(f"Not a wallpaper key: {key}")


def parse_private_key(key: str) -> Optional[tuple[Mode, Parameter]]:
    """Split ``${mode}-${parameter}`` into its parts, or None for other keys."""
    mode_name, sep, parameter_name = key.partition("-")
    if not sep:
        return None
    try:
        return Mode(mode_name), Parameter(parameter_name)
    except ValueError:
        return None
