"""
MySQL server installation, user creation and password changes
"""

import re
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from ..core.database import (
    INSTALL_AUTH_SOCKET_PLUGIN,
    MYSQL,
    DatabaseClient,
    UserRecord,
    alter_password_sql,
    alter_root_socket_auth,
    create_user_sql,
    grant_sql,
    update_client_password,
)
from ..core.errors import PreconditionError, ProvisionError, ValidationError
from ..core.validation import require, validate_ipv4, validate_port
from .base import Provisioner

logger = logging.getLogger(__name__)

SERVICE = "mysql"
DEFAULT_MYSQLX_PORT = 33060

SECTION_RE = re.compile(r'^\s*\[([^\]]+)\]')
PATCHED_KEYS_RE = re.compile(r'^(\s*(?:bind-address|port|mysqlx-port)\s*=)')


@dataclass
class MysqlInstallOptions:
    ip: str
    port: int
    mysqlx_port: int = DEFAULT_MYSQLX_PORT

    def __post_init__(self):
        self.ip = validate_ipv4(require(self.ip, "--ip"))
        self.port = validate_port(require(self.port, "--port"), "MySQL port")
        self.mysqlx_port = validate_port(self.mysqlx_port, "MySQL X Plugin port")


@dataclass
class PasswordChange:
    user: str
    password: str
    host: str = "localhost"
    auth_plugin: str = "mysql_native_password"

    def __post_init__(self):
        self.user = require(self.user, "--mysql-user")
        self.password = require(self.password, "--mysql-password")
        self.host = self.host or "localhost"

    @property
    def is_local_root(self) -> bool:
        return self.user == "root" and self.host == "localhost"


def patch_mysqld_config(content: str, options: MysqlInstallOptions) -> str:
    """Comment out bind-address/port/mysqlx-port in [mysqld] and add ours after the header"""
    lines = content.splitlines()
    out: List[str] = []
    in_mysqld = False
    inserted = False

    for line in lines:
        match = SECTION_RE.match(line)
        if match:
            in_mysqld = match.group(1).strip() == "mysqld"
            out.append(line)
            if in_mysqld and not inserted:
                out += [
                    f"bind-address = {options.ip}",
                    f"port         = {options.port}",
                    f"mysqlx-port  = {options.mysqlx_port}",
                ]
                inserted = True
            continue
        if in_mysqld and PATCHED_KEYS_RE.match(line):
            line = PATCHED_KEYS_RE.sub(r'#\1', line, count=1)
        out.append(line)

    if not inserted:
        raise ValidationError("No [mysqld] section found in the MySQL configuration")
    return "\n".join(out) + "\n"


class MysqlProvisioner(Provisioner):
    name = "mysql"

    def client(self) -> DatabaseClient:
        return DatabaseClient(self.runner, flavor=MYSQL)

    def install(self, options: MysqlInstallOptions):
        self.preflight()
        config = Path(self.settings.mysql_config_file)

        self.step("Installing mysql-server")
        self.packages.update(quiet=False)
        self.packages.install(["mysql-server"])

        if not config.is_file():
            raise PreconditionError(f"MySQL configuration file not found: {config}")

        self.step(f"Setting bind-address, port and mysqlx-port in {config}")
        config.write_text(patch_mysqld_config(config.read_text(), options))

        self.step("Restarting MySQL")
        self.services.restart(SERVICE)
        logger.debug(self.services.status(SERVICE))

        self.step("Switching root@localhost to auth_socket authentication")
        client = self.client()
        plugin = client.execute(INSTALL_AUTH_SOCKET_PLUGIN, check=False)
        if not plugin.ok:
            self.warn(f"INSTALL PLUGIN auth_socket failed, assuming it is already loaded: {plugin.stderr.strip()}")
        try:
            client.execute(alter_root_socket_auth(MYSQL))
        except ProvisionError as e:
            raise ProvisionError(
                f"Failed to configure auth_socket for root: {e}",
                tip=f"Check {self.settings.mysql_error_log}",
            )

        self.ok(f"MySQL listening on {options.ip}:{options.port} (X Plugin on {options.mysqlx_port})")
        self.ok("Connect as root with: sudo mysql")

    def create_user(self, record: UserRecord):
        """CREATE USER + GRANT + FLUSH PRIVILEGES"""
        if record.flavor != MYSQL:
            raise ValidationError("Expected a MySQL user record")
        self.preflight()

        client = self.client()
        target = f"'{record.user}'@'{record.host}'"

        self.step(f"Creating user {target}")
        client.execute(create_user_sql(record))
        client.execute(grant_sql(record))
        client.execute("FLUSH PRIVILEGES;")

        self.ok(f"User {target} created with {record.permission_level} privileges")

    def change_password(self, change: PasswordChange) -> bool:
        """ALTER USER, syncing /root/.my.cnf when root@localhost changes

        Returns whether the client configuration was updated.
        """
        self.preflight()
        my_cnf = self.settings.root_my_cnf
        if not my_cnf.exists():
            self.warn(f"{my_cnf} not found; authentication may fail if the server requires a password")

        target = f"'{change.user}'@'{change.host}'"
        self.step(f"Changing the password of {target}")
        try:
            self.client().execute(alter_password_sql(change.user, change.host, change.password, change.auth_plugin))
        except ProvisionError as e:
            raise ProvisionError(
                f"Failed to change the password of {target}: {e}",
                tip=f"Check that the user exists and that {my_cnf} holds valid admin credentials",
            )
        self.ok(f"Password of {target} changed (plugin {change.auth_plugin})")

        if not change.is_local_root:
            return False
        updated = update_client_password(my_cnf, change.password)
        if updated:
            self.ok(f"Updated the [client] password in {my_cnf} (backup at {my_cnf}.bak)")
        return updated
