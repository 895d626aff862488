"""LXD installation via snap with a preseeded bridge, storage pool and default profile"""

from dataclasses import dataclass
from typing import Optional

from ..core.errors import ValidationError
from ..core.validation import validate_ipv4, validate_port
from .base import Provisioner

BRIDGE = "lxdbr0"
STORAGE_POOL = "storage"


@dataclass
class LxdOptions:
    https_address: Optional[str] = None
    bridge_address: Optional[str] = None

    def validate(self, defaults):
        """Fill defaults from settings and check address formats"""
        self.https_address = self.https_address or defaults.lxd_https_address
        self.bridge_address = self.bridge_address or defaults.lxd_bridge_address

        ip, sep, port = self.https_address.rpartition(":")
        if not sep:
            raise ValidationError(f"Invalid LXD listen address {self.https_address!r}. Use IP:PORT")
        validate_ipv4(ip)
        validate_port(port, "LXD listen port")

        network, sep, prefix = self.bridge_address.partition("/")
        validate_ipv4(network)
        if not sep or not prefix.isascii() or not prefix.isdigit() or not 0 < int(prefix) <= 32:
            raise ValidationError(f"Invalid bridge address {self.bridge_address!r}. Use X.X.X.X/NN")
        return self


class LxdProvisioner(Provisioner):
    name = "lxd"

    def install(self, options: LxdOptions):
        options.validate(self.settings)
        self.preflight()
        runner = self.runner

        self.step("Installing the LXD snap")
        runner.run(["snap", "install", "lxd"])

        self.step("Initializing LXD")
        preseed = self.templates.render(
            "lxd_preseed.yaml.j2",
            https_address=options.https_address,
            bridge=BRIDGE,
        )
        runner.run(["lxd", "init", "--preseed"], input=preseed)

        runner.run(["lxc", "network", "set", BRIDGE, "ipv4.address", options.bridge_address])
        runner.run(["lxc", "storage", "create", STORAGE_POOL, "dir"])

        self.step("Configuring the default profile")
        runner.run(["lxc", "profile", "set", "default", "security.privileged", "true"])
        runner.run(["lxc", "profile", "set", "default", "security.nesting", "true"])
        runner.run(["lxc", "profile", "device", "add", "default", "eth0", "nic",
                    "name=eth0", f"network={BRIDGE}", "type=nic"])
        runner.run(["lxc", "profile", "device", "add", "default", "root", "disk",
                    "path=/", f"pool={STORAGE_POOL}"])

        self.ok(f"LXD ready on {options.https_address}, bridge {BRIDGE} at {options.bridge_address}")
