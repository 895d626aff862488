"""
Docker Engine installation
Official apt repository, services held back until daemon.json is in place
"""

import grp
import json
import shlex
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from ..core.downloads import Downloader
from ..core.errors import PreconditionError, ProvisionError
from .base import Provisioner, invoking_user

logger = logging.getLogger(__name__)

DOCKER_UNITS = ("docker", "docker.socket", "containerd")
DOCKER_PACKAGES = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]

DAEMON_CONFIG = {
    "iptables": False,
    "log-driver": "json-file",
    "log-opts": {
        "max-size": "10m",
        "max-file": "3",
    },
}


def read_os_release(path: Path) -> Dict[str, str]:
    """Parse /etc/os-release into a dict"""
    values = {}
    for line in Path(path).read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw = line.partition("=")
        try:
            parsed = shlex.split(raw)
        except ValueError:
            parsed = [raw]
        values[key] = parsed[0] if parsed else ""
    return values


def ubuntu_codename(os_release: Dict[str, str]) -> str:
    codename = os_release.get("UBUNTU_CODENAME") or os_release.get("VERSION_CODENAME")
    if not codename:
        raise PreconditionError("Could not determine the distribution codename from os-release")
    return codename


@dataclass
class DockerOptions:
    user: Optional[str] = None

    def __post_init__(self):
        if self.user is None:
            self.user = invoking_user()


class DockerProvisioner(Provisioner):
    name = "docker"

    def __init__(self, host=None, downloader: Optional[Downloader] = None, **kwargs):
        super().__init__(host, **kwargs)
        self.downloader = downloader or Downloader()

    def repository_line(self, arch: str, codename: str) -> str:
        keyring = self.settings.apt_keyrings_dir / "docker.asc"
        return f"deb [arch={arch} signed-by={keyring}] {self.settings.docker_repo_url} {codename} stable\n"

    def install(self, options: DockerOptions) -> str:
        """Install Docker Engine and return the installed version string"""
        self.preflight()
        if not self.runner.which("apt-get"):
            raise PreconditionError("Unsupported system (apt-get not found)")

        if self.services.is_active("docker"):
            self.step("Stopping running Docker services")
            self.services.stop(*DOCKER_UNITS)

        self.step("Masking Docker services during installation")
        if not self.services.mask(*DOCKER_UNITS):
            self.warn("Could not mask Docker services (first installation?)")

        self.step("Installing repository prerequisites")
        self.packages.update()
        self.packages.install(["ca-certificates", "curl", "gnupg"], no_recommends=True)

        self.step("Configuring the Docker apt repository")
        self.configure_repository()
        self.packages.update()

        self.step("Installing Docker packages (services held back)")
        with self.packages.prevent_service_start():
            self.packages.install(DOCKER_PACKAGES)

        self.step("Writing daemon.json")
        self.write_daemon_config()

        self.step("Enabling Docker services")
        self.services.unmask(*DOCKER_UNITS)
        self.services.enable("docker", "containerd", now=True)

        if options.user:
            self.add_user_to_group(options.user)

        return self.verify()

    def configure_repository(self):
        keyrings = self.settings.apt_keyrings_dir
        keyrings.mkdir(parents=True, exist_ok=True)
        keyrings.chmod(0o755)

        key = self.downloader.download(f"{self.settings.docker_repo_url}/gpg", keyrings / "docker.asc")
        key.chmod(0o644)

        arch = self.packages.print_architecture()
        codename = ubuntu_codename(read_os_release(self.settings.os_release_file))

        sources = self.settings.apt_sources_dir / "docker.list"
        sources.parent.mkdir(parents=True, exist_ok=True)
        sources.write_text(self.repository_line(arch, codename))
        logger.info("Wrote %s", sources)

    def write_daemon_config(self) -> Path:
        config_dir = self.settings.docker_config_dir
        config_dir.mkdir(parents=True, exist_ok=True)
        path = config_dir / "daemon.json"
        path.write_text(json.dumps(DAEMON_CONFIG, indent=2) + "\n")
        return path

    def add_user_to_group(self, user: str):
        try:
            grp.getgrnam("docker")
        except KeyError:
            self.runner.run(["groupadd", "docker"])

        if self.runner.succeeds(["usermod", "-aG", "docker", user]):
            self.ok(f"User {user} added to the docker group")
        else:
            self.warn(f"Could not add {user} to the docker group")

    def verify(self) -> str:
        result = self.runner.run(["docker", "--version"], check=False)
        if not result.ok:
            raise ProvisionError("Final Docker verification failed ('docker --version')")

        version = result.stdout.strip()
        self.ok(f"Docker installed: {version}")
        return version
