"""
Base system commands
apt update/upgrade and the base toolchain
"""

import typer
from typing import List, Optional

from ..provisioners.dependencies import BaseOptions, BaseProvisioner
from ..utils.display import console
from ..utils.logger import handle_errors
from .common import get_host

app = typer.Typer(help="📦 Base operating system packages")


@app.command()
def install(
    ctx: typer.Context,
    upgrade: bool = typer.Option(True, "--upgrade/--no-upgrade", help="Run apt-get upgrade first"),
    package: Optional[List[str]] = typer.Option(None, "--package", "-p", help="Extra package (repeatable)"),
):
    """📦 Update the system and install the base packages"""
    with handle_errors("Base installation failed"):
        options = BaseOptions(upgrade=upgrade, extra_packages=list(package or []))
        installed = BaseProvisioner(get_host(ctx)).install(options)

    console.print(f"\n[green]✓ {len(installed)} packages installed or already present[/green]")
