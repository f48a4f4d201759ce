"""
File-system operations used by the special background-file protocol.
"""
from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from core.logging.logger import get_logger
from core.utils.decorators import suppress_exceptions

logger = get_logger(__name__)


class FileOps:
    """Local file operations. Swappable so tests can inject failures."""

    @suppress_exceptions(logger, "Existence check failed", return_value=False,
                         log_level="warning", exceptions=(OSError,))
    def exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def copy(self, src: Path, dst: Path, overwrite: bool = True) -> None:
        """
        Copy ``src`` to ``dst``.

        The copy goes to a temporary sibling first and is renamed into place,
        so a failure never leaves a truncated ``dst`` behind.

        Raises:
            FileExistsError: If ``dst`` exists and overwrite is False
            OSError: If the copy fails
        """
        src = Path(src)
        dst = Path(dst)
        if not overwrite and dst.exists():
            raise FileExistsError(str(dst))

        fd, tmp_name = tempfile.mkstemp(prefix=f".{dst.name}.", dir=str(dst.parent))
        os.close(fd)
        try:
            shutil.copyfile(src, tmp_name)
            shutil.copymode(src, tmp_name)
            os.replace(tmp_name, dst)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
        logger.debug("Copied %s -> %s", src, dst)
