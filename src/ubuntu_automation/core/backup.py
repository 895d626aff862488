"""
Directory backups with restore on failure
"""

import shutil
import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from .errors import RollbackError

logger = logging.getLogger(__name__)


def backup_directory(path: Path, now: Optional[datetime] = None) -> Path:
    """Copy path to <path>.bak.YYYYmmdd_HHMMSS, symlinks preserved"""
    path = Path(path)
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    backup = path.with_name(f"{path.name}.bak.{stamp}")
    shutil.copytree(path, backup, symlinks=True)
    logger.info("Backed up %s to %s", path, backup)
    return backup


def restore_directory(backup: Path, target: Path):
    """Replace target with the contents of backup"""
    backup, target = Path(backup), Path(target)
    if not backup.is_dir():
        raise RollbackError(f"Backup directory {backup} not found, {target} was not restored")

    try:
        if target.is_symlink() or target.is_file():
            target.unlink()
        elif target.exists():
            shutil.rmtree(target)
        shutil.move(str(backup), str(target))
    except OSError as e:
        raise RollbackError(f"Failed to restore {target} from {backup}: {e}")
    logger.warning("Restored %s from %s", target, backup)


@contextmanager
def guarded_directory(path: Path) -> Iterator[Path]:
    """Back up path and restore it if the block raises"""
    backup = backup_directory(path)
    try:
        yield backup
    except Exception:
        logger.error("Operation failed, restoring %s", path)
        restore_directory(backup, path)
        raise
