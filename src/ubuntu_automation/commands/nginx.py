"""
Nginx commands
Installation plus the proxy, MTA:SA, Portainer, Webmin and PHP virtual hosts
"""

import typer
from typing import Optional

from ..core.validation import parse_yes_no, require
from ..core.vhosts import NginxDefaultSite, NginxMtasaVhost, NginxPhpVhost
from ..provisioners.nginx import NginxProvisioner, portainer_vhost, proxy_vhost, webmin_vhost
from ..utils.display import console, show_info_table
from ..utils.logger import handle_errors
from .common import get_host

app = typer.Typer(help="🌐 Nginx web server and virtual hosts")

IP_OPTION = typer.Option(None, "--vhost-server-ip", help="IP nginx listens on")
PORT_OPTION = typer.Option(None, "--vhost-server-port", help="Port nginx listens on")
DOMAIN_OPTION = typer.Option(None, "--vhost-server-domain", help="server_name of the vhost")
TARGET_OPTION = typer.Option(None, "--vhost-proxy-target", help="Backend as IP:PORT or HOST:PORT")


def _show_result(result, vhost):
    info = {"Config": result.config_path}
    if result.link_path is not None:
        info["Enabled"] = result.link_path
    info["URL"] = NginxProvisioner.url_for(vhost)
    show_info_table(info, f"Virtual host {vhost.domain}")


@app.command()
def install(
    ctx: typer.Context,
    ip: Optional[str] = IP_OPTION,
    port: Optional[str] = PORT_OPTION,
):
    """🌐 Install nginx with a default server block on IP:PORT"""
    with handle_errors("Nginx installation failed"):
        site = NginxDefaultSite(require(ip, "--vhost-server-ip"), require(port, "--vhost-server-port"))
        result = NginxProvisioner(get_host(ctx)).install(site)

    console.print(f"[dim]Default site: {result.config_path}[/dim]")


@app.command("vhost-mtasa")
def vhost_mtasa(
    ctx: typer.Context,
    ip: Optional[str] = IP_OPTION,
    port: Optional[str] = PORT_OPTION,
    domain: Optional[str] = DOMAIN_OPTION,
):
    """🎮 Front the Apache MTA:SA file server (127.0.0.1:8080)"""
    with handle_errors("Failed to create the MTA:SA vhost"):
        vhost = NginxMtasaVhost(
            require(ip, "--vhost-server-ip"),
            require(port, "--vhost-server-port"),
            require(domain, "--vhost-server-domain"),
        )
        result = NginxProvisioner(get_host(ctx)).add_mtasa_vhost(vhost)

    _show_result(result, vhost)


def _proxy_command(ctx, factory, context, ip, port, domain, target, ssl, ssl_option_default):
    with handle_errors(context):
        backend_ssl = parse_yes_no(ssl or ssl_option_default)
        vhost = factory(
            require(ip, "--vhost-server-ip"),
            require(port, "--vhost-server-port"),
            require(domain, "--vhost-server-domain"),
            require(target, "--vhost-proxy-target"),
            backend_ssl=backend_ssl,
        )
        result = NginxProvisioner(get_host(ctx)).add_proxy_vhost(vhost)

    _show_result(result, vhost)


@app.command("vhost-proxy")
def vhost_proxy(
    ctx: typer.Context,
    ip: Optional[str] = IP_OPTION,
    port: Optional[str] = PORT_OPTION,
    domain: Optional[str] = DOMAIN_OPTION,
    target: Optional[str] = TARGET_OPTION,
    ssl: Optional[str] = typer.Option(None, "--vhost-proxy-ssl", help="Backend speaks HTTPS (yes/no, default no)"),
):
    """🔀 Generic reverse-proxy vhost"""
    _proxy_command(ctx, proxy_vhost, "Failed to create the proxy vhost", ip, port, domain, target, ssl, "no")


@app.command("vhost-portainer")
def vhost_portainer(
    ctx: typer.Context,
    ip: Optional[str] = IP_OPTION,
    port: Optional[str] = PORT_OPTION,
    domain: Optional[str] = DOMAIN_OPTION,
    target: Optional[str] = TARGET_OPTION,
    ssl: Optional[str] = typer.Option(None, "--vhost-proxy-ssl", help="Backend speaks HTTPS (yes/no, default no)"),
):
    """🧭 Reverse-proxy vhost for Portainer"""
    _proxy_command(ctx, portainer_vhost, "Failed to create the Portainer vhost", ip, port, domain, target, ssl, "no")


@app.command("vhost-webmin")
def vhost_webmin(
    ctx: typer.Context,
    ip: Optional[str] = IP_OPTION,
    port: Optional[str] = PORT_OPTION,
    domain: Optional[str] = DOMAIN_OPTION,
    target: Optional[str] = TARGET_OPTION,
    ssl: Optional[str] = typer.Option(None, "--vhost-proxy-ssl", help="Backend speaks HTTPS (yes/no, default yes)"),
):
    """🛠 Reverse-proxy vhost for Webmin"""
    _proxy_command(ctx, webmin_vhost, "Failed to create the Webmin vhost", ip, port, domain, target, ssl, "yes")


@app.command("vhost-php")
def vhost_php(
    ctx: typer.Context,
    ip: Optional[str] = IP_OPTION,
    port: Optional[str] = PORT_OPTION,
    domain: Optional[str] = DOMAIN_OPTION,
    path: Optional[str] = typer.Option(None, "--vhost-server-path", help="Document root"),
    php_version: Optional[str] = typer.Option(None, "--vhost-php-version", help="PHP-FPM version (X.Y)"),
):
    """🐘 PHP-FPM vhost (phpMyAdmin and other PHP sites)"""
    with handle_errors("Failed to create the PHP vhost"):
        vhost = NginxPhpVhost(
            require(ip, "--vhost-server-ip"),
            require(port, "--vhost-server-port"),
            require(domain, "--vhost-server-domain"),
            require(path, "--vhost-server-path"),
            require(php_version, "--vhost-php-version"),
        )
        result = NginxProvisioner(get_host(ctx)).add_php_vhost(vhost)

    _show_result(result, vhost)
