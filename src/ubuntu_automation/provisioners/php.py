"""PHP-FPM from the ondrej PPA, with the PECL pam extension"""

from dataclasses import dataclass
from typing import List, Optional

from ..core.validation import validate_php_version
from .base import Provisioner

EXTENSIONS = [
    "cli", "fpm", "dev", "common", "bcmath", "imap", "redis", "snmp", "zip",
    "curl", "bz2", "intl", "gd", "mbstring", "mysql", "xml", "sqlite3", "pgsql",
]


@dataclass
class PhpOptions:
    version: Optional[str] = None

    def validate(self, settings):
        self.version = validate_php_version(self.version or settings.php_version)
        return self

    def packages(self) -> List[str]:
        return [f"php{self.version}-{ext}" for ext in EXTENSIONS]


class PhpProvisioner(Provisioner):
    name = "php"

    def install(self, options: PhpOptions) -> bool:
        """Install PHP; False when it was already installed"""
        options.validate(self.settings)
        self.preflight()
        version = options.version

        if self.packages.is_installed(f"php{version}-cli"):
            self.ok(f"PHP {version} is already installed")
            return False

        self.step(f"Adding {self.settings.php_ppa}")
        self.packages.update(quiet=False)
        self.packages.install(["software-properties-common"])
        self.runner.run(["add-apt-repository", "-y", self.settings.php_ppa])
        self.packages.update(quiet=False)

        self.step(f"Installing PHP {version} and extensions")
        self.packages.install(options.packages())

        self.step("Building the pam extension with PECL")
        self.packages.install(["libpam0g-dev", "php-pear"])
        self.runner.run(["pecl", "install", "pam"], input="\n")

        pam_ini = self.settings.php_etc_dir / version / "mods-available" / "pam.ini"
        if not pam_ini.exists():
            pam_ini.parent.mkdir(parents=True, exist_ok=True)
            pam_ini.write_text("extension=pam.so\n")
        self.runner.run(["phpenmod", "pam"])

        self.packages.clean()
        self.services.restart(f"php{version}-fpm")

        banner = self.runner.run(["php", "-v"], check=False).stdout.partition("\n")[0]
        self.ok(f"PHP {version} installed" + (f": {banner}" if banner else ""))
        return True
