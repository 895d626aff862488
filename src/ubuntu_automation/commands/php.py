"""
PHP commands
"""

import typer
from typing import Optional

from ..provisioners.php import PhpOptions, PhpProvisioner
from ..utils.logger import handle_errors
from .common import get_host

app = typer.Typer(help="🐘 PHP-FPM")


@app.command()
def install(
    ctx: typer.Context,
    version: Optional[str] = typer.Option(None, "--version", "-v", help="PHP version (default from settings, 8.2)"),
):
    """🐘 Install PHP-FPM, common extensions and PECL pam"""
    with handle_errors("PHP installation failed"):
        PhpProvisioner(get_host(ctx)).install(PhpOptions(version=version))
