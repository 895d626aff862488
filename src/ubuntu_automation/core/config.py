"""
Configuration management for the CLI
Layered loading: built-in defaults, config.yml, config.d/*.yml and an explicit --config file
"""

import os
import yaml
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Any, List, Optional

from .errors import ValidationError

logger = logging.getLogger(__name__)

# Paths
CONFIG_HOME = Path("/etc/ubuntu-automation")
CONFIG_FILE = CONFIG_HOME / "config.yml"
CONFIG_DIR = CONFIG_HOME / "config.d"
CONFIG_ENV_VAR = "UBUNTU_AUTOMATION_CONFIG"

RAW_BASE_URL = "https://supremesolid.github.io/ubuntu-automation-tools"


@dataclass
class Settings:
    """Filesystem locations, remote URLs and defaults used by the provisioners"""

    log_file: Path = Path("/var/log/ubuntu-automation.log")
    policy_rc_path: Path = Path("/usr/sbin/policy-rc.d")

    # Nginx / Apache
    nginx_dir: Path = Path("/etc/nginx")
    nginx_log_dir: Path = Path("/var/log/nginx")
    www_root: Path = Path("/var/www/html")
    apache_dir: Path = Path("/etc/apache2")

    # Docker / Portainer
    docker_config_dir: Path = Path("/etc/docker")
    apt_keyrings_dir: Path = Path("/etc/apt/keyrings")
    apt_sources_dir: Path = Path("/etc/apt/sources.list.d")
    os_release_file: Path = Path("/etc/os-release")
    docker_repo_url: str = "https://download.docker.com/linux/ubuntu"
    portainer_image: str = "portainer/portainer-ce:latest"
    portainer_name: str = "portainer"
    portainer_volume: str = "portainer_data"
    docker_socket: str = "/var/run/docker.sock"

    # MTA:SA
    mtasa_home: Path = Path("/home/mtasa")
    mtasa_entrypoints_dir: Path = Path("/docker/mtasa")
    mtasa_user: str = "mtasa"
    mtasa_image: str = "supremesolid/mtasa:lts"
    mtasa_server_url: str = "https://linux.multitheftauto.com/dl/multitheftauto_linux_x64.tar.gz"
    mtasa_baseconfig_url: str = "https://linux.multitheftauto.com/dl/baseconfig.tar.gz"
    mtasa_resources_url: str = "https://mirror-cdn.multitheftauto.com/mtasa/resources/mtasa-resources-latest.zip"
    mtasa_lxd_image_url: str = "https://github.com/supremesolid/ubuntu-automation-tools/raw/master/LXD/mtasa.lxc.tar.gz"
    mtasa_lxd_address: str = "10.0.0.2"

    # LXD
    lxd_https_address: str = "192.168.0.230:9999"
    lxd_bridge_address: str = "10.0.0.1/24"

    # MariaDB / MySQL
    mariadb_config_file: Path = Path("/etc/mysql/mariadb.conf.d/50-server.cnf")
    mysql_config_file: Path = Path("/etc/mysql/mysql.conf.d/mysqld.cnf")
    mysql_data_dir: Path = Path("/var/lib/mysql")
    mysql_error_log: Path = Path("/var/log/mysql/error.log")
    mysql_default_socket: str = "/run/mysqld/mysqld.sock"
    root_my_cnf: Path = Path("/root/.my.cnf")
    db_ready_attempts: int = 15
    db_ready_delay: float = 1.0

    # phpMyAdmin
    phpmyadmin_version: str = "5.2.2"
    phpmyadmin_base_url: str = "https://files.phpmyadmin.net/phpMyAdmin"
    phpmyadmin_dir: Path = Path("/usr/share/phpmyadmin")
    web_user: str = "www-data"
    web_group: str = "www-data"

    # ProFTPD
    proftpd_config_dir: Path = Path("/etc/proftpd")
    proftpd_config_base_url: str = f"{RAW_BASE_URL}/ProFTPD/configs"
    proftpd_database: str = "proftpd"
    ftp_home_base: Path = Path("/home")

    # Webmin
    webmin_setup_url: str = "https://raw.githubusercontent.com/webmin/webmin/master/webmin-setup-repo.sh"
    webmin_miniserv_conf: Path = Path("/etc/webmin/miniserv.conf")

    # PHP
    php_version: str = "8.2"
    php_ppa: str = "ppa:ondrej/php"
    php_etc_dir: Path = Path("/etc/php")
    php_run_dir: Path = Path("/run/php")

    @property
    def nginx_sites_available(self) -> Path:
        return self.nginx_dir / "sites-available"

    @property
    def nginx_sites_enabled(self) -> Path:
        return self.nginx_dir / "sites-enabled"

    @property
    def apache_sites_available(self) -> Path:
        return self.apache_dir / "sites-available"

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional['Settings'] = None) -> 'Settings':
        """Create Settings from a config dict, layered over base"""
        settings = cls() if base is None else cls(**{f.name: getattr(base, f.name) for f in fields(cls)})
        known = {f.name: f for f in fields(cls)}

        for key, value in (data or {}).items():
            if key not in known:
                logger.warning("Ignoring unknown setting: %s", key)
                continue
            default = getattr(settings, key)
            if isinstance(default, Path):
                value = Path(str(value))
            elif isinstance(default, bool):
                value = bool(value)
            elif isinstance(default, int):
                try:
                    value = type(default)(value)
                except (TypeError, ValueError):
                    raise ValidationError(f"Setting '{key}' must be numeric, got {value!r}")
            elif isinstance(default, float):
                value = float(value)
            else:
                value = str(value)
            setattr(settings, key, value)

        return settings


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Read a YAML mapping, returning {} for empty files"""
    with path.open("r") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(f"Configuration file {path} must contain a mapping")
    # Settings may be nested under a top-level "settings" key
    if "settings" in data and isinstance(data["settings"], dict):
        return data["settings"]
    return data


def config_sources(config_path: Optional[Path] = None) -> List[Path]:
    """Ordered list of configuration files that exist"""
    sources = []

    if CONFIG_FILE.exists():
        sources.append(CONFIG_FILE)

    if CONFIG_DIR.exists():
        sources.extend(sorted(CONFIG_DIR.glob("*.yml")))

    explicit = config_path or os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        explicit = Path(explicit)
        if not explicit.exists():
            raise ValidationError(f"Configuration file not found: {explicit}")
        sources.append(explicit)

    return sources


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from all configuration sources"""
    settings = Settings()

    for source in config_sources(config_path):
        try:
            data = _read_yaml(source)
        except yaml.YAMLError as e:
            # Drop-ins are optional, the main and explicit files are not
            if source.parent == CONFIG_DIR:
                logger.warning("Failed to parse %s: %s", source.name, e)
                continue
            raise ValidationError(f"Failed to parse {source}: {e}")

        logger.debug("Loaded settings from %s", source)
        settings = Settings.from_dict(data, base=settings)

    return settings
