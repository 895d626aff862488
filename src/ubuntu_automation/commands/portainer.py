"""
Portainer CE commands
"""

import typer

from ..provisioners.portainer import PortainerOptions, PortainerProvisioner
from ..utils.display import show_info_table
from ..utils.logger import handle_errors
from .common import get_host

app = typer.Typer(help="🧭 Portainer CE container")


@app.command()
def install(
    ctx: typer.Context,
    ip: str = typer.Option("0.0.0.0", "--ip", help="Host IP the Portainer ports bind to"),
):
    """🧭 (Re)create the Portainer container, keeping its data volume"""
    with handle_errors("Portainer installation failed"):
        options = PortainerOptions(ip=ip)
        urls = PortainerProvisioner(get_host(ctx)).install(options)

    show_info_table({"HTTPS": urls["https"], "HTTP (edge)": urls["http"]}, "Portainer")
