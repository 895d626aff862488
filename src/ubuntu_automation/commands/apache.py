"""
Apache commands
mpm-itk backend for MTA:SA client downloads
"""

import typer
from typing import Optional

from ..core.validation import require
from ..core.vhosts import ApacheVhost
from ..provisioners.apache import ApacheProvisioner
from ..utils.display import show_info_table
from ..utils.logger import handle_errors
from .common import get_host

app = typer.Typer(help="🪶 Apache (mpm-itk) backend")


@app.command()
def install(ctx: typer.Context):
    """🪶 Install apache2 with mpm-itk on 127.0.0.1:8080"""
    with handle_errors("Apache installation failed"):
        ApacheProvisioner(get_host(ctx)).install()


@app.command("vhost-mtasa")
def vhost_mtasa(
    ctx: typer.Context,
    domain: Optional[str] = typer.Option(None, "--vhost-server-domain", help="ServerName of the vhost"),
    document_root: Optional[str] = typer.Option(None, "--vhost-document-root", help="Directory with the client files"),
):
    """🎮 Serve MTA:SA client files as downloads"""
    with handle_errors("Failed to create the Apache MTA:SA vhost"):
        vhost = ApacheVhost(
            require(domain, "--vhost-server-domain"),
            require(document_root, "--vhost-document-root"),
        )
        result = ApacheProvisioner(get_host(ctx)).add_mtasa_vhost(vhost)

    show_info_table(
        {"Config": result.config_path, "Document root": vhost.document_root},
        f"Apache vhost {vhost.domain}",
    )
