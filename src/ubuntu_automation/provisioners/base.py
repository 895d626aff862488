"""
Provisioner base class
Gives every product provisioner shortcuts to the host services it drives
"""

import logging
import os
from typing import Optional

from ..core.system import Host, require_root
from ..utils.display import console

logger = logging.getLogger(__name__)


class Provisioner:
    """Common plumbing for the product provisioners

    Subclasses get the host's runner, package and service managers as
    attributes and report progress through the shared console.
    """

    name = "provisioner"

    def __init__(self, host: Optional[Host] = None, check_root: bool = True):
        self.host = host or Host()
        self.check_root = check_root

    @property
    def settings(self):
        return self.host.settings

    @property
    def runner(self):
        return self.host.runner

    @property
    def packages(self):
        return self.host.packages

    @property
    def services(self):
        return self.host.services

    @property
    def templates(self):
        return self.host.templates

    def preflight(self):
        """Privilege checks shared by every operation"""
        if self.check_root:
            require_root()

    def step(self, message: str):
        logger.debug("[%s] %s", self.name, message)
        console.print(f"[cyan]→ {message}[/cyan]")

    def ok(self, message: str):
        logger.debug("[%s] %s", self.name, message)
        console.print(f"[green]✓ {message}[/green]")

    def warn(self, message: str):
        logger.warning(message)


def invoking_user() -> Optional[str]:
    """User that ran sudo, None when run directly as root"""
    user = os.environ.get("SUDO_USER")
    if user and user != "root":
        return user
    return None
