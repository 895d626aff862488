"""
MySQL commands
Server installation, user creation and password changes
"""

import typer
from typing import Optional

from ..core.database import MYSQL, UserRecord
from ..provisioners.mysql import DEFAULT_MYSQLX_PORT, MysqlInstallOptions, MysqlProvisioner, PasswordChange
from ..utils.logger import handle_errors
from .common import get_host

app = typer.Typer(help="🐬 MySQL server")


@app.command()
def install(
    ctx: typer.Context,
    ip: Optional[str] = typer.Option(None, "--ip", help="bind-address"),
    port: Optional[str] = typer.Option(None, "--port", help="TCP port MySQL listens on"),
    mysqlx_port: str = typer.Option(str(DEFAULT_MYSQLX_PORT), "--mysqlx_port", help="X Plugin port"),
):
    """🐬 Install MySQL and set bind-address, port and mysqlx-port"""
    with handle_errors("MySQL installation failed"):
        options = MysqlInstallOptions(ip=ip, port=port, mysqlx_port=mysqlx_port)
        MysqlProvisioner(get_host(ctx)).install(options)


@app.command("create-user")
def create_user(
    ctx: typer.Context,
    user: Optional[str] = typer.Option(None, "--mysql-user", help="User to create"),
    password: Optional[str] = typer.Option(None, "--mysql-password", help="Password (not needed for auth_socket)"),
    user_host: str = typer.Option("localhost", "--mysql-host", help="Host part of the account"),
    permission_level: Optional[str] = typer.Option(None, "--permission-level", help="administrator or default"),
    database: Optional[str] = typer.Option(None, "--database", help="Database for the default level"),
    auth_plugin: str = typer.Option("mysql_native_password", "--auth-plugin", help="mysql_native_password, caching_sha2_password, auth_socket"),
):
    """👤 Create a MySQL user and grant a permission tier"""
    with handle_errors("Failed to create the MySQL user"):
        record = UserRecord(
            user=user,
            permission_level=permission_level,
            flavor=MYSQL,
            password=password,
            database=database,
            host=user_host,
            auth_plugin=auth_plugin,
        )
        MysqlProvisioner(get_host(ctx)).create_user(record)


@app.command("change-password")
def change_password(
    ctx: typer.Context,
    user: Optional[str] = typer.Option(None, "--mysql-user", help="Existing user"),
    password: Optional[str] = typer.Option(None, "--mysql-password", help="New password"),
    user_host: str = typer.Option("localhost", "--mysql-host", help="Host part of the account"),
    auth_plugin: str = typer.Option("mysql_native_password", "--auth-plugin", help="Authentication plugin"),
):
    """🔑 Change a MySQL user's password (syncs /root/.my.cnf for root)"""
    with handle_errors("Failed to change the MySQL password"):
        change = PasswordChange(user=user, password=password, host=user_host, auth_plugin=auth_plugin)
        MysqlProvisioner(get_host(ctx)).change_password(change)
