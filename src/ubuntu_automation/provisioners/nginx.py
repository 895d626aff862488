"""
Nginx installation and virtual hosts
Default server block plus proxy, MTA:SA and PHP-FPM vhosts
"""

import logging
from pathlib import Path

from ..core.errors import PreconditionError
from ..core.system import require_commands
from ..core.validation import is_mtasa_udp_target
from ..core.vhosts import (
    DeployResult,
    NginxDefaultSite,
    NginxMtasaVhost,
    NginxPhpVhost,
    NginxProxyVhost,
    NginxSites,
    access_url,
)
from .base import Provisioner

logger = logging.getLogger(__name__)

DEBIAN_PLACEHOLDER = "index.nginx-debian.html"


def proxy_vhost(ip, port, domain, target, backend_ssl=False) -> NginxProxyVhost:
    """Generic reverse proxy"""
    return NginxProxyVhost(ip, port, domain, target, backend_ssl=backend_ssl)


def portainer_vhost(ip, port, domain, target, backend_ssl=False) -> NginxProxyVhost:
    """Portainer front: large uploads, WebSocket, no backend TLS directives"""
    return NginxProxyVhost(
        ip, port, domain, target,
        backend_ssl=backend_ssl,
        max_body_size="100m",
        deny_hidden=False,
        ssl_directives=False,
        label="Portainer",
        missing_port="accept",
    )


def webmin_vhost(ip, port, domain, target, backend_ssl=True) -> NginxProxyVhost:
    """Webmin front: self-signed HTTPS backend, slower timeouts"""
    return NginxProxyVhost(
        ip, port, domain, target,
        backend_ssl=backend_ssl,
        max_body_size="100m",
        timeout=90,
        ssl_directives=True,
        label="Webmin",
        missing_port="warn",
    )


class NginxProvisioner(Provisioner):
    name = "nginx"

    @property
    def sites(self) -> NginxSites:
        return NginxSites(self.host)

    def install(self, site: NginxDefaultSite) -> DeployResult:
        """Install nginx and serve the default site on ip:port"""
        self.preflight()

        self.step("Installing nginx")
        self.packages.update(quiet=False)
        self.packages.install(["nginx"])

        site.root = self.settings.www_root
        self.step(f"Writing default server block for {site.ip}:{site.port}")
        result = self.sites.deploy(site, reload=False)

        self.services.restart("nginx")
        self.services.enable("nginx")

        placeholder = self.settings.www_root / DEBIAN_PLACEHOLDER
        placeholder.unlink(missing_ok=True)

        self.ok(f"Nginx listening on {site.ip}:{site.port}")
        return result

    def _require_nginx(self):
        self.preflight()
        require_commands(self.runner, "nginx")

    def add_mtasa_vhost(self, vhost: NginxMtasaVhost) -> DeployResult:
        """Proxy a domain to the local Apache MTA:SA file server"""
        self._require_nginx()
        result = self.sites.deploy(vhost, restart_fallback=False)
        self.ok(f"Virtual host {vhost.domain} enabled")
        return result

    def add_proxy_vhost(self, vhost: NginxProxyVhost) -> DeployResult:
        """Reverse proxy vhost (generic, Portainer or Webmin flavour)"""
        self._require_nginx()
        result = self.sites.deploy(vhost)

        self.ok(f"Reverse proxy {vhost.domain} -> {vhost.protocol}://{vhost.target} enabled")
        if vhost.port == 443:
            self.warn(
                "Port 443 configured without TLS certificates in this vhost; "
                "add ssl_certificate directives (e.g. with certbot) before serving HTTPS"
            )
        if is_mtasa_udp_target(vhost.target):
            self.warn(
                f"Target {vhost.target} uses a port usually bound to MTA:SA UDP traffic; "
                "this proxy only works for HTTP/HTTPS backends"
            )
        return result

    def add_php_vhost(self, vhost: NginxPhpVhost) -> DeployResult:
        """PHP-FPM vhost; document root and FPM socket must exist"""
        self._require_nginx()

        if not Path(vhost.root).is_dir():
            raise PreconditionError(f"Document root {vhost.root} does not exist or is not a directory")

        socket = vhost.fpm_socket(self.host)
        if not socket.is_socket():
            raise PreconditionError(
                f"PHP-FPM socket {socket} not found",
                tip=f"Is php{vhost.php_version}-fpm installed and running?",
            )

        result = self.sites.deploy(vhost, restart_fallback=False)
        self.ok(f"PHP site {vhost.domain} enabled (php{vhost.php_version}-fpm)")
        return result

    @staticmethod
    def url_for(vhost) -> str:
        return access_url(vhost.domain, vhost.port)
