"""
MTA:SA server commands
Docker container per server, or a single LXD instance
"""

import typer

from ..provisioners.mtasa import MtasaOptions, MtasaProvisioner
from ..utils.display import console, create_progress_context
from ..utils.logger import handle_errors
from .common import get_host

app = typer.Typer(help="🎮 Multi Theft Auto: San Andreas servers")


@app.command()
def create(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Server / container name"),
    start: bool = typer.Option(False, "--start/--no-start", help="Start the container once created"),
):
    """🎮 Download a server and create its container"""
    with handle_errors(f"Failed to create MTA:SA server '{name}'"):
        options = MtasaOptions(name=name, start=start)
        provisioner = MtasaProvisioner(get_host(ctx))
        with create_progress_context() as progress:
            progress.add_task(f"Setting up {name}...", total=None)
            provisioner.create(options)

    console.print(f"[dim]Server files: {provisioner.server_dir(name)}[/dim]")


@app.command()
def lxd(ctx: typer.Context):
    """📦 Import the MTA:SA LXD image and start the 'mtasa' instance"""
    with handle_errors("Failed to set up the MTA:SA LXD instance"):
        MtasaProvisioner(get_host(ctx)).lxd()
