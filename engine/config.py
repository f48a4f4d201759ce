"""
Engine configuration.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


def _default_background_path() -> Path:
    return Path.home() / ".config" / "background"


@dataclass
class EngineConfig:
    """Tunables for SyncEngine.

    Attributes:
        debounce_ms: Quiet period for wallpaper key notifications
        max_value_length: Longest theme value accepted for save/apply
        live_edit: Mirror private-store edits for the active mode immediately
        background_path: Conventional mode-less background file
        dark_scheme: color-scheme value written when toggling to dark
    """
    debounce_ms: int = 50
    max_value_length: int = 100
    live_edit: bool = True
    background_path: Path = field(default_factory=_default_background_path)
    dark_scheme: str = "prefer-dark"
