"""Sync engine: per-mode appearance and wallpaper synchronization."""

from .config import EngineConfig
from .errors import EngineStartError
from .modes import Mode, Parameter
from .sync_engine import SyncEngine
from .wallpaper import WallpaperKind, classify

__all__ = ['EngineConfig', 'EngineStartError', 'Mode', 'Parameter', 'SyncEngine', 'WallpaperKind', 'classify']
