"""Base operating system packages"""

from dataclasses import dataclass, field
from typing import List

from .base import Provisioner

PREREQUISITES = ["software-properties-common", "iptables-persistent"]

BASE_PACKAGES = [
    "language-pack-gnome-pt", "language-pack-gnome-pt-base",
    "language-pack-pt", "language-pack-pt-base",
    "libssl-dev",
    "libreadline-dev",
    "zlib1g-dev",
    "libbz2-dev",
    "libsqlite3-dev",
    "libffi-dev",
    "liblzma-dev",
    "uuid-dev",
    "libxml2-dev",
    "libxmlsec1-dev",
    "build-essential",
    "curl",
    "wget",
    "git",
    "vim",
    "nano",
    "apt-transport-https",
    "ca-certificates",
    "gnupg",
    "lsb-release",
    "net-tools", "zip", "tar", "cgroup-tools", "dnsutils",
]


@dataclass
class BaseOptions:
    upgrade: bool = True
    extra_packages: List[str] = field(default_factory=list)


class BaseProvisioner(Provisioner):
    name = "base"

    def install(self, options: BaseOptions) -> List[str]:
        """Upgrade the system and install the base toolchain"""
        self.preflight()

        self.step("Updating package lists")
        self.packages.update(quiet=False)
        if options.upgrade:
            self.step("Upgrading installed packages")
            self.packages.upgrade()

        self.packages.install(PREREQUISITES)

        packages = BASE_PACKAGES + [p for p in options.extra_packages if p not in BASE_PACKAGES]
        self.step(f"Installing {len(packages)} base packages")
        self.packages.install(packages)

        self.ok("Base dependencies installed")
        return packages
