"""
Database helpers for MariaDB and MySQL
SQL statement builders with quoting and a client that drives the mysql/mariadb CLI
"""

import re
import time
import shutil
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .errors import CommandError, ValidationError
from .runner import CommandResult, CommandRunner
from .validation import validate_permission_level

logger = logging.getLogger(__name__)

MARIADB = "mariadb"
MYSQL = "mysql"
FLAVORS = (MARIADB, MYSQL)

# Password-less authentication through the unix socket peer credentials
SOCKET_PLUGINS = {MARIADB: "unix_socket", MYSQL: "auth_socket"}
INSTALL_AUTH_SOCKET_PLUGIN = "INSTALL PLUGIN auth_socket SONAME 'auth_socket.so';"

DEFAULT_PRIVILEGES = {
    MARIADB: "SELECT, INSERT, UPDATE, DELETE, EXECUTE, CREATE TEMPORARY TABLES",
    MYSQL: "SELECT, INSERT, UPDATE, DELETE, CREATE, ALTER, DROP, INDEX, EXECUTE, CREATE TEMPORARY TABLES",
}

PLUGIN_RE = re.compile(r'^[A-Za-z0-9_]+$')
SECTION_RE = re.compile(r'^\s*\[([^\]]+)\]')
PASSWORD_LINE_RE = re.compile(r'^\s*password\s*=')


def quote_string(value: str) -> str:
    """Quote a SQL string literal"""
    escaped = str(value).replace("\\", "\\\\").replace("'", "''")
    return f"'{escaped}'"


def quote_identifier(name: str) -> str:
    """Quote a SQL identifier with backticks"""
    return "`" + str(name).replace("`", "``") + "`"


def account(user: str, host: str) -> str:
    return f"{quote_string(user)}@{quote_string(host)}"


@dataclass
class UserRecord:
    """Database account to create and the grants it receives"""
    user: str
    permission_level: str
    flavor: str = MARIADB
    password: Optional[str] = None
    database: Optional[str] = None
    host: str = "localhost"
    auth_plugin: str = "mysql_native_password"

    def __post_init__(self):
        if self.flavor not in FLAVORS:
            raise ValidationError(f"Unknown database flavor: {self.flavor}")
        if not self.user:
            raise ValidationError(f"Parameter --{self.flavor}-user is required")

        self.permission_level = validate_permission_level(self.permission_level)

        if self.permission_level == "default" and not self.database:
            raise ValidationError("Parameter --database is required when --permission-level=default")

        if not self.auth_plugin or not PLUGIN_RE.match(self.auth_plugin):
            raise ValidationError(f"Invalid authentication plugin: {self.auth_plugin!r}")

        if not self.uses_socket and not self.password:
            raise ValidationError(
                f"Parameter --{self.flavor}-password is required unless --auth-plugin={self.socket_plugin}"
            )

        if not self.host:
            self.host = "localhost"

    @property
    def socket_plugin(self) -> str:
        return SOCKET_PLUGINS[self.flavor]

    @property
    def uses_socket(self) -> bool:
        return self.auth_plugin == self.socket_plugin


def create_user_sql(record: UserRecord) -> str:
    """CREATE USER IF NOT EXISTS for the record's flavor"""
    sql = f"CREATE USER IF NOT EXISTS {account(record.user, record.host)}"
    if record.flavor == MARIADB:
        if record.uses_socket:
            return f"{sql} IDENTIFIED VIA unix_socket;"
        return f"{sql} IDENTIFIED BY {quote_string(record.password)};"

    if record.uses_socket:
        return f"{sql} IDENTIFIED WITH auth_socket;"
    return f"{sql} IDENTIFIED WITH {record.auth_plugin} BY {quote_string(record.password)};"


def grant_sql(record: UserRecord) -> str:
    """GRANT statement for the record's permission tier"""
    target = account(record.user, record.host)
    if record.permission_level == "administrator":
        return f"GRANT ALL PRIVILEGES ON *.* TO {target} WITH GRANT OPTION;"

    privileges = DEFAULT_PRIVILEGES[record.flavor]
    return f"GRANT {privileges} ON {quote_identifier(record.database)}.* TO {target};"


def alter_password_sql(user: str, host: str, password: str, plugin: str = "mysql_native_password") -> str:
    if not PLUGIN_RE.match(plugin or ""):
        raise ValidationError(f"Invalid authentication plugin: {plugin!r}")
    return (
        f"ALTER USER {account(user, host)} IDENTIFIED WITH {plugin} BY {quote_string(password)}; "
        "FLUSH PRIVILEGES;"
    )


def alter_root_socket_auth(flavor: str) -> str:
    """Switch root@localhost to socket authentication

    On MySQL the auth_socket plugin has to be loaded first, see
    INSTALL_AUTH_SOCKET_PLUGIN; it fails harmlessly when already present.
    """
    if flavor == MARIADB:
        return "ALTER USER 'root'@'localhost' IDENTIFIED VIA unix_socket; FLUSH PRIVILEGES;"
    return "ALTER USER 'root'@'localhost' IDENTIFIED WITH auth_socket; FLUSH PRIVILEGES;"


def create_database_sql(name: str) -> str:
    return f"CREATE DATABASE IF NOT EXISTS {quote_identifier(name)};"


class DatabaseClient:
    """Runs SQL through the mysql / mariadb command line client"""

    def __init__(
        self,
        runner: CommandRunner,
        flavor: str = MYSQL,
        socket: Optional[str] = None,
        user: Optional[str] = None,
    ):
        self.runner = runner
        self.flavor = flavor
        self.socket = socket
        self.user = user

    def _argv(self):
        argv = [MARIADB if self.flavor == MARIADB else MYSQL]
        if self.socket:
            argv += ["--protocol=socket", "-S", str(self.socket)]
        if self.user:
            argv += ["-u", self.user]
        return argv

    def execute(self, sql: str, database: Optional[str] = None, check: bool = True) -> CommandResult:
        """Execute one or more statements, fed on stdin so secrets stay out of argv"""
        argv = self._argv()
        if database:
            argv.append(database)
        return self.runner.run(argv, input=sql, check=check)

    def query_value(self, sql: str, database: Optional[str] = None) -> str:
        """First column of the first row, '' for no rows"""
        argv = self._argv() + ["-N", "-B"]
        if database:
            argv.append(database)
        output = self.runner.run(argv, input=sql).stdout.strip()
        return output.splitlines()[0].split("\t")[0] if output else ""

    def import_sql(self, content: str, database: str):
        """Feed a SQL script to the client on stdin"""
        self.runner.run(self._argv() + [database], input=content)

    def ping(self) -> bool:
        admin = "mariadb-admin" if self.flavor == MARIADB else "mysqladmin"
        argv = [admin, "ping", "--silent"]
        if self.socket:
            argv += ["--protocol=socket", "-S", str(self.socket)]
        argv.append("--connect-timeout=1")
        return self.runner.succeeds(argv)

    def wait_until_ready(
        self,
        attempts: int = 15,
        delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> bool:
        """Poll the server until it answers a ping"""
        for attempt in range(1, attempts + 1):
            if self.ping():
                logger.debug("Database ready after %d attempt(s)", attempt)
                return True
            logger.debug("Database not ready (attempt %d/%d)", attempt, attempts)
            if attempt < attempts:
                sleep(delay)
        return False


def detect_socket(runner: CommandRunner, default: str = "/run/mysqld/mysqld.sock") -> str:
    """Socket path reported by mariadb_config, falling back to default"""
    if not runner.which("mariadb_config"):
        return default
    try:
        socket = runner.run(["mariadb_config", "--socket"]).stdout.strip()
    except CommandError:
        return default
    return socket or default


def update_client_password(my_cnf: Path, password: str) -> bool:
    """Set 'password =' in the [client] section of a my.cnf

    A copy of the original is kept as <file>.bak. Returns False when the
    file has no [client] section.
    """
    my_cnf = Path(my_cnf)
    if not my_cnf.exists():
        logger.warning("%s not found, client password not updated", my_cnf)
        return False

    lines = my_cnf.read_text().splitlines()
    client_start = None
    for i, line in enumerate(lines):
        match = SECTION_RE.match(line)
        if match and match.group(1).strip() == "client":
            client_start = i
            break

    if client_start is None:
        logger.warning("No [client] section in %s, password not updated", my_cnf)
        return False

    escaped = password.replace("\\", "\\\\").replace('"', '\\"')
    new_line = f'password = "{escaped}"'
    replaced = False
    for i in range(client_start + 1, len(lines)):
        if SECTION_RE.match(lines[i]):
            break
        if PASSWORD_LINE_RE.match(lines[i]):
            lines[i] = new_line
            replaced = True

    if not replaced:
        lines.insert(client_start + 1, new_line)

    shutil.copy2(my_cnf, my_cnf.with_name(my_cnf.name + ".bak"))
    my_cnf.write_text("\n".join(lines) + "\n")
    return True
