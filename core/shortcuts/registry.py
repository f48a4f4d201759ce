"""
Shortcut registry.

Holds named actions bound to GTK-style accelerators (``<Super><Shift>t``, as
stored in GSettings string lists) and dispatches key sequences to them.
The registry never grabs the keyboard: key presses that reach the
application are handed to ``dispatch()``, and system-wide presses go through
the desktop keybinding in ``desktop_binding.py``, which runs the toggle
command.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QKeySequence

from core.logging.logger import get_logger

logger = get_logger(__name__)

_MODIFIER_RE = re.compile(r"<([^>]+)>")

# GTK modifier names -> Qt portable names
_MODIFIERS = {
    'super': 'Meta',
    'meta': 'Meta',
    'hyper': 'Meta',
    'primary': 'Ctrl',
    'control': 'Ctrl',
    'ctrl': 'Ctrl',
    'ctl': 'Ctrl',
    'alt': 'Alt',
    'mod1': 'Alt',
    'shift': 'Shift',
}
_MODIFIER_ORDER = ('Ctrl', 'Alt', 'Shift', 'Meta')


def _portable(sequence: QKeySequence) -> str:
    return sequence.toString(QKeySequence.SequenceFormat.PortableText)


def parse_accelerator(accelerator: str) -> Optional[QKeySequence]:
    """
    Convert a GTK accelerator string into a QKeySequence.

    Returns:
        QKeySequence, or None when the accelerator is empty or not understood
    """
    if not accelerator or not accelerator.strip():
        return None

    text = accelerator.strip()
    modifiers = []
    for name in _MODIFIER_RE.findall(text):
        qt_name = _MODIFIERS.get(name.lower())
        if qt_name is None:
            logger.warning("Unknown modifier <%s> in accelerator %r", name, accelerator)
            return None
        if qt_name not in modifiers:
            modifiers.append(qt_name)

    key = _MODIFIER_RE.sub('', text).strip()
    if not key:
        return None
    if len(key) == 1:
        key = key.upper()

    ordered = [m for m in _MODIFIER_ORDER if m in modifiers]
    sequence = QKeySequence.fromString('+'.join(ordered + [key]), QKeySequence.SequenceFormat.PortableText)
    if sequence.isEmpty():
        logger.warning("Could not parse accelerator %r", accelerator)
        return None
    return sequence


@dataclass
class ShortcutBinding:
    name: str
    callback: Callable[[], None]
    sequences: List[QKeySequence] = field(default_factory=list)

    def matches(self, portable_text: str) -> bool:
        return any(_portable(s) == portable_text for s in self.sequences)


class ShortcutRegistry(QObject):
    """
    Named shortcut actions.

    Signals:
        activated(str): name of the action that was triggered
    """

    activated = Signal(str)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._bindings: Dict[str, ShortcutBinding] = {}

    def register(self, name: str, accelerators: Sequence[str], callback: Callable[[], None]) -> bool:
        """
        Register ``name`` bound to ``accelerators``.

        Returns:
            bool: False if an action with this name is already registered
        """
        if name in self._bindings:
            logger.warning("Shortcut action %s already registered", name)
            return False
        binding = ShortcutBinding(name, callback, self._parse_all(accelerators))
        self._bindings[name] = binding
        logger.debug("Registered shortcut action %s (%s)", name, self.accelerators(name))
        return True

    def rebind(self, name: str, accelerators: Sequence[str]) -> None:
        binding = self._bindings.get(name)
        if binding is None:
            logger.warning("Cannot rebind unknown shortcut action %s", name)
            return
        binding.sequences = self._parse_all(accelerators)
        logger.info("Shortcut %s bound to %s", name, self.accelerators(name) or '(none)')

    def unregister(self, name: str) -> None:
        if self._bindings.pop(name, None) is not None:
            logger.debug("Unregistered shortcut action %s", name)

    def is_registered(self, name: str) -> bool:
        return name in self._bindings

    def accelerators(self, name: str) -> List[str]:
        binding = self._bindings.get(name)
        if binding is None:
            return []
        return [_portable(s) for s in binding.sequences]

    def dispatch(self, sequence) -> bool:
        """
        Trigger the action bound to ``sequence``.

        Args:
            sequence: QKeySequence or portable text such as ``Meta+T``

        Returns:
            bool: True if an action handled the sequence
        """
        if isinstance(sequence, str):
            sequence = QKeySequence.fromString(sequence, QKeySequence.SequenceFormat.PortableText)
        text = _portable(sequence)
        if not text:
            return False
        for binding in list(self._bindings.values()):
            if binding.matches(text):
                logger.debug("Shortcut %s -> %s", text, binding.name)
                binding.callback()
                self.activated.emit(binding.name)
                return True
        return False

    def clear(self) -> None:
        self._bindings.clear()

    @staticmethod
    def _parse_all(accelerators: Sequence[str]) -> List[QKeySequence]:
        sequences = []
        for accelerator in accelerators:
            sequence = parse_accelerator(accelerator)
            if sequence is not None:
                sequences.append(sequence)
        return sequences
