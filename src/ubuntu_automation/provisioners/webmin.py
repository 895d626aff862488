"""Webmin installation from the upstream apt repository"""

import socket
import logging
from pathlib import Path
from typing import Dict, Optional

from ..core.downloads import Downloader, temporary_directory
from ..core.errors import PreconditionError
from .base import Provisioner

logger = logging.getLogger(__name__)

DEPENDENCIES = [
    "curl",
    "gnupg2",
    "software-properties-common",
    "apt-transport-https",
    "ca-certificates",
    "lsb-release",
]


def read_miniserv(path: Path) -> Dict[str, str]:
    """key=value pairs of miniserv.conf"""
    values = {}
    if not Path(path).exists():
        return values
    for line in Path(path).read_text().splitlines():
        key, sep, value = line.partition("=")
        if sep and key and not key.startswith("#"):
            values[key.strip()] = value.strip()
    return values


def primary_address() -> str:
    """First non-loopback IPv4 of this host, 'localhost' if none"""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("192.0.2.1", 9))
            return s.getsockname()[0]
    except OSError:
        return "localhost"


class WebminProvisioner(Provisioner):
    name = "webmin"

    def __init__(self, host=None, downloader: Optional[Downloader] = None, **kwargs):
        super().__init__(host, **kwargs)
        self.downloader = downloader or Downloader()

    def install(self) -> Optional[str]:
        """Install Webmin and return its URL when the service is active"""
        self.preflight()
        if not self.runner.which("apt-get"):
            raise PreconditionError("Unsupported system (apt-get not found)")

        self.step("Installing dependencies")
        self.packages.update()
        self.packages.install(DEPENDENCIES, no_recommends=True)

        self.step("Configuring the Webmin repository")
        with temporary_directory() as tmp:
            script = self.downloader.download(self.settings.webmin_setup_url, tmp / "webmin-setup-repo.sh")
            self.runner.run(["sh", script], input="y\n")

        self.step("Installing Webmin")
        self.packages.install(["webmin"], install_recommends=True)

        conf = read_miniserv(self.settings.webmin_miniserv_conf)
        port = conf.get("port", "10000")
        protocol = "https" if conf.get("ssl") == "1" else "http"
        if protocol == "http":
            self.warn("Webmin is configured without SSL (not recommended for production)")

        if not self.services.is_active("webmin"):
            self.warn("Webmin installed but the service is not running; try 'systemctl start webmin'")
            return None

        url = f"{protocol}://{primary_address()}:{port}"
        self.ok(f"Webmin available at {url}")
        return url
