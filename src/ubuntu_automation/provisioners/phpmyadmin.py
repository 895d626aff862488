"""phpMyAdmin from the upstream all-languages release"""

import os
import re
import shutil
import secrets
import logging
from pathlib import Path
from typing import List, Optional

from ..core.downloads import Downloader, extract_archive, temporary_directory
from ..core.errors import PreconditionError
from ..core.system import require_commands
from .base import Provisioner

logger = logging.getLogger(__name__)

REQUIRED_EXTENSIONS = ["json", "mbstring", "session", "openssl", "xml", "zip", "gd"]
MYSQL_EXTENSIONS = ["mysqli", "pdo_mysql"]
TMP_DIR_NAME = "tmp"
CONFIG_NAME = "config.inc.php"


def missing_php_extensions(modules_output: str) -> List[str]:
    """Required extensions absent from `php -m` output"""
    loaded = {
        line.strip().lower()
        for line in modules_output.splitlines()
        if line.strip() and not re.match(r'^\[.*\]$', line.strip())
    }
    missing = [ext for ext in REQUIRED_EXTENSIONS if ext not in loaded]
    if not any(ext in loaded for ext in MYSQL_EXTENSIONS):
        missing.append(" or ".join(MYSQL_EXTENSIONS))
    return missing


class PhpMyAdminProvisioner(Provisioner):
    name = "phpmyadmin"

    def __init__(self, host=None, downloader: Optional[Downloader] = None, **kwargs):
        super().__init__(host, **kwargs)
        self.downloader = downloader or Downloader()

    @property
    def install_dir(self) -> Path:
        return self.settings.phpmyadmin_dir

    @property
    def archive_name(self) -> str:
        return f"phpMyAdmin-{self.settings.phpmyadmin_version}-all-languages"

    @property
    def download_url(self) -> str:
        return f"{self.settings.phpmyadmin_base_url}/{self.settings.phpmyadmin_version}/{self.archive_name}.zip"

    def install(self) -> Path:
        """Install phpMyAdmin, or re-apply config and permissions to an existing install"""
        self.preflight()
        self.check_php_extensions()

        pma_dir = self.install_dir
        if pma_dir.is_dir():
            if not (pma_dir / "index.php").is_file():
                raise PreconditionError(
                    f"{pma_dir} exists but does not look like a phpMyAdmin installation",
                    tip=f"Remove or rename {pma_dir} and run the installation again",
                )
            self.warn(f"{pma_dir} already contains phpMyAdmin; skipping the download")
        else:
            self.download_and_extract()

        self.configure()
        self.set_permissions()
        self.ok(f"phpMyAdmin {self.settings.phpmyadmin_version} ready in {pma_dir}")
        return pma_dir

    def check_php_extensions(self):
        require_commands(self.runner, "php")
        self.step("Checking required PHP extensions")
        output = self.runner.run(["php", "-m"], check=False).stdout
        missing = missing_php_extensions(output)
        if missing:
            raise PreconditionError(
                f"Missing PHP extensions: {', '.join(missing)}",
                tip="Install them, e.g. apt install php-json php-mbstring php-mysql php-xml php-zip php-gd",
            )

    def download_and_extract(self):
        self.step(f"Downloading phpMyAdmin {self.settings.phpmyadmin_version}")
        with temporary_directory() as tmp:
            archive = self.downloader.download(self.download_url, tmp / f"{self.archive_name}.zip")
            extract_archive(archive, tmp)
            extracted = tmp / self.archive_name
            if not extracted.is_dir():
                raise PreconditionError(f"Directory {self.archive_name} not found in the downloaded archive")
            self.install_dir.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(extracted), str(self.install_dir))

    def configure(self) -> Path:
        """Write config.inc.php with a fresh blowfish secret unless one exists"""
        config = self.install_dir / CONFIG_NAME
        temp_dir = self.install_dir / TMP_DIR_NAME
        temp_dir.mkdir(parents=True, exist_ok=True)

        if config.exists():
            self.warn(f"{config} already exists; leaving it untouched")
            return config

        self.step(f"Writing {config}")
        return self.templates.write(
            "phpmyadmin_config.inc.php.j2",
            config,
            blowfish_secret=secrets.token_hex(16),
            temp_dir=temp_dir,
            host="localhost",
        )

    def set_permissions(self):
        pma_dir = self.install_dir
        owner = f"{self.settings.web_user}:{self.settings.web_group}"
        self.step(f"Setting ownership {owner} and permissions on {pma_dir}")

        self.runner.run(["chown", "-R", owner, pma_dir])
        for root, dirs, files in os.walk(pma_dir):
            for name in dirs:
                os.chmod(os.path.join(root, name), 0o755)
            for name in files:
                os.chmod(os.path.join(root, name), 0o644)
        os.chmod(pma_dir, 0o755)

        (pma_dir / CONFIG_NAME).chmod(0o640)
        (pma_dir / TMP_DIR_NAME).chmod(0o770)
