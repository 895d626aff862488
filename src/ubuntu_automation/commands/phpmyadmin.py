"""
phpMyAdmin commands
"""

import typer

from ..provisioners.phpmyadmin import PhpMyAdminProvisioner
from ..utils.display import console
from ..utils.logger import handle_errors
from .common import get_host

app = typer.Typer(help="🗄 phpMyAdmin")


@app.command()
def install(ctx: typer.Context):
    """🗄 Download phpMyAdmin and write its configuration"""
    with handle_errors("phpMyAdmin installation failed"):
        path = PhpMyAdminProvisioner(get_host(ctx)).install()

    console.print(
        f"\n[cyan]Publish it with:[/cyan] ubuntu-automation nginx vhost-php --vhost-server-path={path} ..."
    )
