"""
ProFTPD commands
SQL-backed virtual FTP users
"""

import typer
from typing import Optional

from ..provisioners.proftpd import DEFAULT_SHELL, FtpUser, ProftpdProvisioner
from ..utils.logger import handle_errors
from .common import get_host

app = typer.Typer(help="📁 ProFTPD with MySQL authentication")


@app.command()
def install(
    ctx: typer.Context,
    username: Optional[str] = typer.Option(None, "--username", help="MySQL user ProFTPD connects as (auth_socket)"),
):
    """📁 Install ProFTPD modules, database and configuration"""
    with handle_errors("ProFTPD installation failed"):
        ProftpdProvisioner(get_host(ctx)).install(username)


@app.command("create-user")
def create_user(
    ctx: typer.Context,
    user: Optional[str] = typer.Option(None, "--user", help="FTP username"),
    password: Optional[str] = typer.Option(None, "--password", help="FTP password"),
    uid: Optional[str] = typer.Option(None, "--uid", help="Numeric user ID"),
    gid: Optional[str] = typer.Option(None, "--gid", help="Numeric group ID"),
    groupname: Optional[str] = typer.Option(None, "--groupname", help="Group name in ftpgroup"),
    members: Optional[str] = typer.Option(None, "--members", help="ftpgroup members column"),
    homedir: Optional[str] = typer.Option(None, "--homedir", help="Home directory (default /home/USER)"),
    shell: str = typer.Option(DEFAULT_SHELL, "--shell", help="Login shell"),
):
    """👤 Add a virtual FTP user"""
    with handle_errors("Failed to create the FTP user"):
        ftp_user = FtpUser(
            user=user,
            password=password,
            uid=uid,
            gid=gid,
            groupname=groupname,
            members=members,
            homedir=homedir,
            shell=shell,
        )
        ProftpdProvisioner(get_host(ctx)).create_user(ftp_user)
