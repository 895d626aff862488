"""
MariaDB commands
Server installation and user creation
"""

import logging
import typer
from typing import Optional

from ..core.database import MARIADB, UserRecord
from ..provisioners.mariadb import MariadbInstallOptions, MariadbProvisioner
from ..utils.display import console, show_info_table
from ..utils.logger import handle_errors
from .common import confirm_or_yes, get_host

logger = logging.getLogger(__name__)

app = typer.Typer(help="🦭 MariaDB server")


def _legacy(value: Optional[str], legacy: Optional[str], name: str) -> Optional[str]:
    """Prefer --mariadb-NAME, falling back to the old --mysql-NAME spelling"""
    if legacy is not None:
        console.print(f"[yellow]⚠ Use --mariadb-{name} instead of --mysql-{name} for MariaDB[/yellow]")
        if value is None:
            return legacy
    return value


@app.command()
def install(
    ctx: typer.Context,
    port: Optional[str] = typer.Option(None, "--port", help="TCP port MariaDB listens on"),
    bind_address: Optional[str] = typer.Option(None, "--bind-address", help="IP MariaDB binds to"),
    buffer_pool_size: str = typer.Option("1G", "--innodb_buffer_pool_size", help="InnoDB buffer pool size (e.g. 4G, 512M)"),
    mysqlx_bind_address: Optional[str] = typer.Option(None, "--mysqlx-bind-address", hidden=True),
    mysqlx_port: Optional[str] = typer.Option(None, "--mysqlx_port", hidden=True),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask when memory looks insufficient"),
):
    """🦭 Install and configure MariaDB (root via unix_socket)"""
    if mysqlx_bind_address is not None or mysqlx_port is not None:
        logger.info("--mysqlx-bind-address/--mysqlx_port have no effect on MariaDB and are ignored")

    with handle_errors("MariaDB installation failed"):
        options = MariadbInstallOptions(port=port, bind_address=bind_address, buffer_pool_size=buffer_pool_size)
        host = get_host(ctx)
        socket = MariadbProvisioner(host, confirm=confirm_or_yes(yes)).install(options)

    show_info_table(
        {
            "Listen": f"{options.bind_address}:{options.port}",
            "Socket": socket,
            "Buffer pool": options.buffer_pool_size,
            "Config": host.settings.mariadb_config_file,
            "Root login": "sudo mariadb",
        },
        "MariaDB",
    )


@app.command("create-user")
def create_user(
    ctx: typer.Context,
    user: Optional[str] = typer.Option(None, "--mariadb-user", help="User to create"),
    password: Optional[str] = typer.Option(None, "--mariadb-password", help="Password (not needed for unix_socket)"),
    user_host: Optional[str] = typer.Option(None, "--mariadb-host", help="Host part of the account (default localhost)"),
    permission_level: Optional[str] = typer.Option(None, "--permission-level", help="administrator or default"),
    database: Optional[str] = typer.Option(None, "--database", help="Database for the default level"),
    auth_plugin: str = typer.Option("mysql_native_password", "--auth-plugin", help="mysql_native_password, unix_socket, ..."),
    mysql_user: Optional[str] = typer.Option(None, "--mysql-user", hidden=True),
    mysql_password: Optional[str] = typer.Option(None, "--mysql-password", hidden=True),
    mysql_host: Optional[str] = typer.Option(None, "--mysql-host", hidden=True),
):
    """👤 Create a MariaDB user and grant a permission tier"""
    user = _legacy(user, mysql_user, "user")
    password = _legacy(password, mysql_password, "password")
    user_host = _legacy(user_host, mysql_host, "host")

    with handle_errors("Failed to create the MariaDB user"):
        record = UserRecord(
            user=user,
            permission_level=permission_level,
            flavor=MARIADB,
            password=password,
            database=database,
            host=user_host or "localhost",
            auth_plugin=auth_plugin,
        )
        MariadbProvisioner(get_host(ctx)).create_user(record)
