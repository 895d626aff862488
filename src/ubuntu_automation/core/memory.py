"""
Memory checks for the InnoDB buffer pool
"""

import logging
from typing import Callable, Optional

import psutil

from .errors import PreconditionError
from .validation import validate_buffer_pool_size

logger = logging.getLogger(__name__)

RECOMMENDED_MARGIN_GB = 2


def parse_size_to_gb(size: str) -> int:
    """Whole gigabytes in a size such as 4G or 512M (M is floored)"""
    size = validate_buffer_pool_size(size)
    number, unit = int(size[:-1]), size[-1].upper()
    if unit == "G":
        return number
    return number // 1024


def total_memory_gb() -> int:
    """Installed RAM in whole gigabytes"""
    return psutil.virtual_memory().total // (1024 ** 3)


def check_buffer_pool(
    size: str,
    confirm: Optional[Callable[[str], bool]] = None,
    margin_gb: int = RECOMMENDED_MARGIN_GB,
    total_gb: Optional[int] = None,
) -> bool:
    """Warn when RAM is below buffer pool + margin

    Args:
        size: innodb_buffer_pool_size value (e.g. 4G)
        confirm: asked whether to continue when memory looks insufficient;
            None continues without asking
        margin_gb: RAM to keep free for the OS and connections
        total_gb: override for the detected RAM

    Returns True when memory is sufficient, False when the user chose to
    continue anyway. Raises PreconditionError when the user declined.
    """
    buffer_gb = parse_size_to_gb(size)
    if total_gb is None:
        total_gb = total_memory_gb()
    recommended = buffer_gb + margin_gb

    logger.info("Total RAM detected: %dGB, innodb_buffer_pool_size: %s", total_gb, size)

    if total_gb >= recommended:
        logger.info("Total RAM (%dGB) looks sufficient", total_gb)
        return True

    message = (
        f"RAM: {total_gb}GB. A buffer pool of {size} may be risky; "
        f"about {recommended}GB of total RAM is recommended"
    )
    logger.warning(message)

    if confirm is not None and not confirm("Continue anyway?"):
        raise PreconditionError("Installation cancelled (insufficient RAM)")
    return False
