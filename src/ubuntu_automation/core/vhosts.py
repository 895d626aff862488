"""
Virtual host records and deployment
Nginx sites-available/sites-enabled handling and Apache a2ensite flow
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import ProvisionError
from .system import Host
from .validation import (
    validate_domain,
    validate_ipv4,
    validate_php_version,
    validate_port,
    validate_proxy_target,
)

logger = logging.getLogger(__name__)

Port = Union[int, str]


def access_url(domain: str, port: int) -> str:
    """URL a browser would use to reach the vhost"""
    scheme = "https" if port == 443 else "http"
    if (scheme == "http" and port == 80) or (scheme == "https" and port == 443):
        return f"{scheme}://{domain}"
    return f"{scheme}://{domain}:{port}"


@dataclass
class NginxDefaultSite:
    """Catch-all server block written by 'nginx install'"""
    ip: str
    port: Port
    root: Path = Path("/var/www/html")
    name: str = "default"

    template = "nginx_default.conf.j2"

    def __post_init__(self):
        self.ip = validate_ipv4(self.ip)
        self.port = validate_port(self.port, "--vhost-server-port")

    @property
    def file_name(self) -> str:
        return self.name

    def context(self, host: Host) -> Dict[str, Any]:
        return {
            "ip": self.ip,
            "port": self.port,
            "root": self.root,
            "name": self.name,
            "log_dir": host.settings.nginx_log_dir,
        }


@dataclass
class NginxMtasaVhost:
    """Front for the Apache MTA:SA file server on 127.0.0.1:8080"""
    ip: str
    port: Port
    domain: str
    backend: str = "127.0.0.1:8080"

    template = "nginx_mtasa.conf.j2"

    def __post_init__(self):
        self.ip = validate_ipv4(self.ip)
        self.port = validate_port(self.port, "--vhost-server-port")
        self.domain = validate_domain(self.domain)

    @property
    def file_name(self) -> str:
        return f"{self.domain}.conf"

    def context(self, host: Host) -> Dict[str, Any]:
        return {"ip": self.ip, "port": self.port, "domain": self.domain, "backend": self.backend}


@dataclass
class NginxProxyVhost:
    """Reverse proxy in front of an HTTP(S) backend

    The proxy, portainer and webmin vhosts share this record and differ in
    body size, timeouts and backend TLS handling.
    """
    ip: str
    port: Port
    domain: str
    target: str
    backend_ssl: bool = False
    max_body_size: str = "20m"
    timeout: int = 60
    deny_hidden: bool = True
    label: str = ""
    ssl_directives: Optional[bool] = None
    missing_port: str = "reject"

    template = "nginx_proxy.conf.j2"

    def __post_init__(self):
        self.ip = validate_ipv4(self.ip)
        self.port = validate_port(self.port, "--vhost-server-port")
        self.domain = validate_domain(self.domain)
        self.target = validate_proxy_target(self.target, self.missing_port)

    @property
    def protocol(self) -> str:
        return "https" if self.backend_ssl else "http"

    @property
    def file_name(self) -> str:
        return f"{self.domain}.conf"

    def context(self, host: Host) -> Dict[str, Any]:
        return {
            "ip": self.ip,
            "port": self.port,
            "domain": self.domain,
            "target": self.target,
            "protocol": self.protocol,
            "ssl_directives": self.backend_ssl if self.ssl_directives is None else self.ssl_directives,
            "max_body_size": self.max_body_size,
            "timeout": self.timeout,
            "deny_hidden": self.deny_hidden,
            "label": self.label,
            "log_dir": host.settings.nginx_log_dir,
        }


@dataclass
class NginxPhpVhost:
    """PHP-FPM site (phpMyAdmin and friends)"""
    ip: str
    port: Port
    domain: str
    root: Path
    php_version: str

    template = "nginx_php.conf.j2"

    def __post_init__(self):
        self.ip = validate_ipv4(self.ip)
        self.port = validate_port(self.port, "--vhost-server-port")
        self.domain = validate_domain(self.domain)
        self.php_version = validate_php_version(self.php_version)
        self.root = Path(self.root)

    @property
    def file_name(self) -> str:
        return f"{self.domain}.conf"

    def fpm_socket(self, host: Host) -> Path:
        return host.settings.php_run_dir / f"php{self.php_version}-fpm.sock"

    def context(self, host: Host) -> Dict[str, Any]:
        return {
            "ip": self.ip,
            "port": self.port,
            "domain": self.domain,
            "root": self.root,
            "fpm_socket": self.fpm_socket(host),
            "log_dir": host.settings.nginx_log_dir,
        }


@dataclass
class ApacheVhost:
    """mpm-itk vhost serving MTA:SA files as downloads"""
    domain: str
    document_root: Path
    listen_ip: str = "127.0.0.1"
    listen_port: int = 8080
    user: str = "mtasa"
    group: str = "mtasa"

    template = "apache_mtasa.conf.j2"

    def __post_init__(self):
        self.domain = validate_domain(self.domain)
        self.document_root = Path(self.document_root)

    @property
    def file_name(self) -> str:
        return f"{self.domain}.conf"

    def context(self, host: Host) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "document_root": self.document_root,
            "listen_ip": self.listen_ip,
            "listen_port": self.listen_port,
            "user": self.user,
            "group": self.group,
        }


@dataclass
class DeployResult:
    """Where a vhost ended up"""
    config_path: Path
    link_path: Optional[Path] = None
    overwritten: bool = False


class NginxSites:
    """sites-available / sites-enabled manager"""

    def __init__(self, host: Host):
        self.host = host

    @property
    def available(self) -> Path:
        return self.host.settings.nginx_sites_available

    @property
    def enabled(self) -> Path:
        return self.host.settings.nginx_sites_enabled

    def render(self, vhost) -> str:
        return self.host.templates.render(vhost.template, **vhost.context(self.host))

    def deploy(self, vhost, restart_fallback: bool = True, reload: bool = True) -> DeployResult:
        """Write, enable, test and reload a vhost

        When 'nginx -t' rejects the configuration the previous file content
        is put back and a symlink created by this call is removed again;
        nginx is not reloaded in that case.
        """
        content = self.render(vhost)
        config_path = self.available / vhost.file_name
        link_path = self.enabled / vhost.file_name

        overwritten = config_path.exists()
        previous = config_path.read_text() if overwritten else None
        previous_link = Path(os.readlink(link_path)) if link_path.is_symlink() else None
        if overwritten:
            logger.warning("Configuration %s already exists and will be overwritten", config_path)

        self.host.settings.nginx_log_dir.mkdir(parents=True, exist_ok=True)
        self.available.mkdir(parents=True, exist_ok=True)
        self.enabled.mkdir(parents=True, exist_ok=True)
        config_path.write_text(content)
        logger.info("Wrote %s", config_path)

        self._link(config_path, link_path)

        test = self.host.runner.run(["nginx", "-t"], check=False)
        if not test.ok:
            self._rollback(config_path, previous, link_path, previous_link)
            raise ProvisionError(
                f"Nginx configuration test failed for {config_path}: {test.stderr.strip()}",
                tip="Nginx was not reloaded. Fix the configuration and run the command again",
            )

        if reload:
            self.reload(restart_fallback)

        return DeployResult(config_path=config_path, link_path=link_path, overwritten=overwritten)

    def reload(self, restart_fallback: bool = True):
        """Reload nginx, restarting it when reload fails"""
        try:
            self.host.services.reload("nginx")
        except ProvisionError:
            if not restart_fallback:
                raise
            logger.warning("Reload of nginx failed, trying restart")
            self.host.services.restart("nginx")

    @staticmethod
    def _rollback(config_path: Path, previous: Optional[str], link: Path, previous_link: Optional[Path]):
        if previous is not None:
            logger.error("nginx -t failed, restoring previous %s", config_path)
            config_path.write_text(previous)
        if previous_link is None:
            logger.error("nginx -t failed, removing %s", link)
            link.unlink(missing_ok=True)
        elif not link.is_symlink() or Path(os.readlink(link)) != previous_link:
            link.unlink(missing_ok=True)
            link.symlink_to(previous_link)

    @staticmethod
    def _link(target: Path, link: Path):
        """ln -sf target link"""
        if link.is_symlink() and link.resolve() == target.resolve():
            return
        if link.is_symlink() or link.exists():
            link.unlink()
        link.symlink_to(target)


class ApacheSites:
    """a2ensite / configtest / reload flow"""

    def __init__(self, host: Host):
        self.host = host

    def deploy(self, vhost: ApacheVhost) -> DeployResult:
        """Write and enable a vhost, disabling it again when configtest fails"""
        config_path = self.host.settings.apache_sites_available / vhost.file_name
        overwritten = config_path.exists()
        if overwritten:
            logger.warning("Configuration %s already exists and will be overwritten", config_path)

        self.host.templates.write(vhost.template, config_path, **vhost.context(self.host))
        logger.info("Wrote %s", config_path)

        runner = self.host.runner
        runner.run(["a2ensite", vhost.file_name])

        test = runner.run(["apache2ctl", "configtest"], check=False)
        if not test.ok:
            logger.error("apache2ctl configtest failed, disabling %s", vhost.file_name)
            runner.run(["a2dissite", vhost.file_name], check=False)
            raise ProvisionError(
                f"Apache configuration test failed for {config_path}: {test.stderr.strip()}",
                tip="The site was disabled and Apache was not reloaded",
            )

        self.host.services.reload("apache2")
        return DeployResult(config_path=config_path, overwritten=overwritten)
