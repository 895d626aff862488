#!/usr/bin/env python3
"""
Ubuntu Automation CLI - Main Entry Point
One command group per product
"""

import typer
from pathlib import Path
from typing import Optional

from . import __version__
from .commands import (
    apache,
    base,
    docker_engine,
    lxd,
    mariadb,
    mtasa,
    mysql,
    nginx,
    php,
    phpmyadmin,
    portainer,
    proftpd,
    webmin,
)
from .core.config import CONFIG_ENV_VAR, load_settings
from .core.system import Host
from .utils.display import console, show_banner, show_quick_help
from .utils.logger import debug_print, handle_errors, setup_logging

# Main app
app = typer.Typer(
    name="ubuntu-automation",
    help="🛠 Ubuntu Automation Tools - Provision Debian/Ubuntu servers",
    add_completion=True,
    no_args_is_help=False
)

# Register command groups
app.add_typer(base.app, name="base")
app.add_typer(docker_engine.app, name="docker")
app.add_typer(portainer.app, name="portainer")
app.add_typer(mtasa.app, name="mtasa")
app.add_typer(lxd.app, name="lxd")
app.add_typer(nginx.app, name="nginx")
app.add_typer(apache.app, name="apache")
app.add_typer(webmin.app, name="webmin")
app.add_typer(mariadb.app, name="mariadb")
app.add_typer(mysql.app, name="mysql")
app.add_typer(phpmyadmin.app, name="phpmyadmin")
app.add_typer(proftpd.app, name="proftpd")
app.add_typer(php.app, name="php")


@app.command()
def version():
    """ℹ Show version"""
    console.print(f"[cyan]ubuntu-automation[/cyan] version [bold]{__version__}[/bold]")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Verbose logging and stack traces"),
    config: Optional[Path] = typer.Option(
        None, "--config", envvar=CONFIG_ENV_VAR, help="YAML settings file layered over the defaults"
    ),
):
    """
    Ubuntu Automation Tools

    Install and configure server software on Debian/Ubuntu hosts.
    """
    if ctx.obj is None:
        with handle_errors("Failed to load configuration"):
            ctx.obj = Host(settings=load_settings(config))

    setup_logging(debug=debug, log_file=ctx.obj.settings.log_file)
    debug_print(f"Logging to {ctx.obj.settings.log_file}")

    if ctx.invoked_subcommand is None:
        # No command specified, show help
        show_banner()
        show_quick_help()


if __name__ == "__main__":
    app()
