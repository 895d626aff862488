"""
Docker Engine commands
"""

import typer
from typing import Optional

from ..provisioners.docker_engine import DockerOptions, DockerProvisioner
from ..utils.display import show_info_table
from ..utils.logger import handle_errors
from .common import get_host

app = typer.Typer(help="🐳 Docker Engine")


@app.command()
def install(
    ctx: typer.Context,
    user: Optional[str] = typer.Option(None, "--user", "-u", help="User to add to the docker group (default: $SUDO_USER)"),
):
    """🐳 Install Docker Engine from the official repository"""
    with handle_errors("Docker installation failed"):
        options = DockerOptions(user=user)
        version = DockerProvisioner(get_host(ctx)).install(options)

    info = {"Version": version}
    if options.user:
        info["docker group"] = f"{options.user} (log out and back in to apply)"
    show_info_table(info, "Docker Engine")
