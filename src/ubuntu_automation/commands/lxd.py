"""
LXD commands
"""

import typer
from typing import Optional

from ..provisioners.lxd import LxdOptions, LxdProvisioner
from ..utils.logger import handle_errors
from .common import get_host

app = typer.Typer(help="📦 LXD containers")


@app.command()
def install(
    ctx: typer.Context,
    https_address: Optional[str] = typer.Option(None, "--https-address", help="core.https_address (IP:PORT)"),
    bridge_address: Optional[str] = typer.Option(None, "--bridge-address", help="lxdbr0 IPv4 address (X.X.X.X/NN)"),
):
    """📦 Install LXD and preseed network, storage and the default profile"""
    with handle_errors("LXD installation failed"):
        options = LxdOptions(https_address=https_address, bridge_address=bridge_address)
        LxdProvisioner(get_host(ctx)).install(options)
