"""
Store roles, schema ids and schema defaults.

The defaults mirror the GNOME schemas closely enough that the QSettings
backend behaves like a fresh desktop session.
"""
from typing import Any, Dict

# Logical store roles used by the sync engine
BACKGROUND = 'background'
INTERFACE = 'interface'
USER_THEME = 'user-theme'
PRIVATE = 'private'

MANDATORY_ROLES = (BACKGROUND, INTERFACE)
OPTIONAL_ROLES = (USER_THEME, PRIVATE)
ALL_ROLES = MANDATORY_ROLES + OPTIONAL_ROLES

# Desktop custom keybinding that runs the toggle command outside the daemon
MEDIA_KEYS = 'media-keys'
CUSTOM_KEYBINDING = 'custom-keybinding'
KEYBINDING_ROLES = (MEDIA_KEYS, CUSTOM_KEYBINDING)

CUSTOM_KEYBINDINGS_KEY = 'custom-keybindings'
KEYBINDING_PATH = '/org/gnome/settings-daemon/plugins/media-keys/custom-keybindings/appearance-keeper/'

SCHEMA_IDS: Dict[str, str] = {
    BACKGROUND: 'org.gnome.desktop.background',
    INTERFACE: 'org.gnome.desktop.interface',
    USER_THEME: 'org.gnome.shell.extensions.user-theme',
    PRIVATE: 'org.gnome.shell.extensions.appearance-keeper',
    MEDIA_KEYS: 'org.gnome.settings-daemon.plugins.media-keys',
    # Relocatable schema, addressed as SCHEMA:PATH
    CUSTOM_KEYBINDING: f'org.gnome.settings-daemon.plugins.media-keys.custom-keybinding:{KEYBINDING_PATH}',
}

# Private-store key holding the toggle accelerator(s)
TOGGLE_SHORTCUT_KEY = 'dark-light-toggle'

_PARAMETER_NAMES = ('gtk-theme', 'icon-theme', 'cursor-theme', 'accent-color', 'shell-theme')


def _private_defaults() -> Dict[str, Any]:
    defaults: Dict[str, Any] = {}
    for mode in ('light', 'dark'):
        for name in _PARAMETER_NAMES:
            defaults[f'{mode}-{name}'] = ''
    defaults[TOGGLE_SHORTCUT_KEY] = []
    return defaults


SCHEMA_DEFAULTS: Dict[str, Dict[str, Any]] = {
    SCHEMA_IDS[BACKGROUND]: {
        'picture-uri': 'file:///usr/share/backgrounds/gnome/adwaita-l.jxl',
        'picture-uri-dark': 'file:///usr/share/backgrounds/gnome/adwaita-d.jxl',
    },
    SCHEMA_IDS[INTERFACE]: {
        'color-scheme': 'default',
        'gtk-theme': 'Adwaita',
        'icon-theme': 'Adwaita',
        'cursor-theme': 'Adwaita',
        'accent-color': 'blue',
    },
    SCHEMA_IDS[USER_THEME]: {
        # Empty name means the stock Shell theme
        'name': '',
    },
    SCHEMA_IDS[PRIVATE]: _private_defaults(),
    SCHEMA_IDS[MEDIA_KEYS]: {
        CUSTOM_KEYBINDINGS_KEY: [],
    },
    SCHEMA_IDS[CUSTOM_KEYBINDING]: {
        'name': '',
        'command': '',
        'binding': '',
    },
}


def get_schema_defaults(schema_id: str) -> Dict[str, Any]:
    """Return a copy of the defaults for ``schema_id`` (empty when unknown)."""
    defaults = SCHEMA_DEFAULTS.get(schema_id, {})
    return {k: (list(v) if isinstance(v, list) else v) for k, v in defaults.items()}
