"""
Webmin commands
"""

import typer

from ..provisioners.webmin import WebminProvisioner
from ..utils.display import console
from ..utils.logger import handle_errors
from .common import get_host

app = typer.Typer(help="🛠 Webmin administration panel")


@app.command()
def install(ctx: typer.Context):
    """🛠 Install Webmin from the upstream repository"""
    with handle_errors("Webmin installation failed"):
        url = WebminProvisioner(get_host(ctx)).install()

    if url:
        console.print(f"\n[cyan]Open {url} and log in with a system user that has sudo rights[/cyan]")
