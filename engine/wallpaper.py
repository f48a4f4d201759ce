"""
Wallpaper URI classification and path helpers.

Paired wallpapers already encode their mode in the file name and are never
touched. Plain wallpapers may be stray writes to the inactive key. The
special background file is a mode-less file other tools write to a fixed
path under ``~/.config``.
"""
from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote, urlparse

SPECIAL_SEGMENT = "/.config/background"
DEFAULT_EXTENSION = ".png"

# Mode-suffix naming convention: name-l.jpg, name-dark.png, name-night.webp, ...
_PAIRED_SUFFIX_RE = re.compile(r"-(?:l|d|light|dark|day|night)\.[A-Za-z0-9]+$")
_DYNAMIC_SUFFIX = ".xml"


class WallpaperKind(Enum):
    SPECIAL = "special"
    PAIRED = "paired"
    PLAIN = "plain"


def _file_name(uri: str) -> str:
    path = uri[len("file://"):] if uri.startswith("file://") else uri
    return path.rstrip("/").rsplit("/", 1)[-1]


def classify(uri: Optional[str]) -> WallpaperKind:
    """Classify a wallpaper URI.

    Dynamic ``.xml`` descriptors count as paired so they are never promoted
    or reverted.
    """
    if not uri:
        return WallpaperKind.PLAIN
    if SPECIAL_SEGMENT in uri:
        return WallpaperKind.SPECIAL
    name = _file_name(uri)
    if _PAIRED_SUFFIX_RE.search(name) or name.endswith(_DYNAMIC_SUFFIX):
        return WallpaperKind.PAIRED
    return WallpaperKind.PLAIN


def uri_to_path(uri: str) -> Optional[Path]:
    """Local path for a ``file://`` URI (or a bare absolute path)."""
    if not uri:
        return None
    if uri.startswith("/"):
        return Path(uri)
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return None
    return Path(unquote(parsed.path))


def path_to_uri(path: Path) -> str:
    return "file://" + quote(str(path), safe="/")


def file_extension(path: Path) -> str:
    """Extension of ``path`` including the dot, ``.png`` when there is none."""
    return path.suffix or DEFAULT_EXTENSION


def mode_variant_path(path: Path, mode_name: str) -> Path:
    """Sibling of ``path`` carrying a ``-light``/``-dark`` suffix.

    ``~/.config/background.jpg`` becomes ``~/.config/background-dark.jpg``;
    an extensionless source gets the default extension.
    """
    stem = path.stem if path.suffix else path.name
    for suffix in ("-light", "-dark"):
        if stem.endswith(suffix) and len(stem) > len(suffix):
            stem = stem[:-len(suffix)]
            break
    return path.with_name(f"{stem}-{mode_name}{file_extension(path)}")
