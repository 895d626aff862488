"""
MariaDB server installation and user management
Root is switched to unix_socket authentication after the first start
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..core.database import (
    MARIADB,
    DatabaseClient,
    UserRecord,
    alter_root_socket_auth,
    create_user_sql,
    detect_socket,
    grant_sql,
)
from ..core.errors import CommandError, PreconditionError, ProvisionError, ValidationError
from ..core.memory import check_buffer_pool
from ..core.validation import require, validate_buffer_pool_size, validate_ipv4, validate_port
from .base import Provisioner

logger = logging.getLogger(__name__)

SERVICE = "mariadb"
DEPENDENCIES = ["procps", "mariadb-client", "gnupg"]


@dataclass
class MariadbInstallOptions:
    port: int
    bind_address: str
    buffer_pool_size: str = "1G"

    def __post_init__(self):
        self.port = validate_port(require(self.port, "--port"), "MariaDB port")
        self.bind_address = validate_ipv4(require(self.bind_address, "--bind-address"))
        self.buffer_pool_size = validate_buffer_pool_size(self.buffer_pool_size)


class MariadbProvisioner(Provisioner):
    name = "mariadb"

    def __init__(self, host=None, confirm: Optional[Callable[[str], bool]] = None, **kwargs):
        super().__init__(host, **kwargs)
        self.confirm = confirm

    def client(self, socket: Optional[str] = None) -> DatabaseClient:
        socket = socket or detect_socket(self.runner, self.settings.mysql_default_socket)
        return DatabaseClient(self.runner, flavor=MARIADB, socket=socket)

    def install(self, options: MariadbInstallOptions) -> str:
        """Install and configure MariaDB, returning the socket path"""
        self.preflight()
        settings = self.settings

        self.step("Checking available memory")
        check_buffer_pool(options.buffer_pool_size, confirm=self.confirm)

        self.step("Installing dependencies")
        self.packages.update()
        self.packages.install(DEPENDENCIES, quiet=True)

        self.step("Installing mariadb-server (service start deferred)")
        with self.packages.prevent_service_start():
            self.packages.install(["mariadb-server"], quiet=True)

        self.step(f"Preparing data directory {settings.mysql_data_dir}")
        datadir = settings.mysql_data_dir
        datadir.mkdir(parents=True, exist_ok=True)
        if not self.runner.succeeds(["usermod", "-d", str(datadir), "mysql"]):
            logger.info("usermod -d for mysql failed or had no effect")
        self.runner.run(["chown", "-R", "mysql:mysql", datadir])
        datadir.chmod(0o700)

        socket = detect_socket(self.runner, settings.mysql_default_socket)
        pid_file = socket.rpartition("/")[0] + "/mysqld.pid"

        self.step(f"Writing {settings.mariadb_config_file}")
        self.templates.write(
            "mariadb.cnf.j2",
            settings.mariadb_config_file,
            mode=0o644,
            pid_file=pid_file,
            socket=socket,
            datadir=datadir,
            port=options.port,
            bind_address=options.bind_address,
            buffer_pool_size=options.buffer_pool_size,
            error_log=settings.mysql_error_log,
        )
        self.runner.run(["chown", "root:root", settings.mariadb_config_file])

        self.step("Starting MariaDB")
        try:
            self.services.start(SERVICE)
        except CommandError as e:
            self._dump_error_log()
            raise ProvisionError(
                f"Failed to start {SERVICE}: {e}",
                tip=f"Check {settings.mysql_error_log} and 'journalctl -xeu {SERVICE}'",
            )

        client = self.client(socket)
        if not client.wait_until_ready(settings.db_ready_attempts, settings.db_ready_delay):
            self._dump_error_log()
            raise ProvisionError(
                f"MariaDB did not answer on {socket} after {settings.db_ready_attempts} attempts",
                tip=f"Check {settings.mysql_error_log}",
            )

        if not self.services.is_active(SERVICE):
            raise ProvisionError(f"The {SERVICE} service is not active after start")

        self.step("Switching root@localhost to unix_socket authentication")
        client.execute(alter_root_socket_auth(MARIADB))

        self.ok(f"MariaDB listening on {options.bind_address}:{options.port} (socket {socket})")
        return socket

    def _dump_error_log(self):
        tail = self.host.tail_file(self.settings.mysql_error_log)
        if tail:
            logger.error("Last lines of %s:\n%s", self.settings.mysql_error_log, tail)

    def create_user(self, record: UserRecord):
        """CREATE USER + GRANT for the record's permission tier"""
        if record.flavor != MARIADB:
            raise ValidationError("Expected a MariaDB user record")
        self.preflight()

        if not self.runner.which("mariadb"):
            raise PreconditionError("The 'mariadb' client was not found", tip="Is MariaDB installed?")

        client = self.client()
        target = f"'{record.user}'@'{record.host}'"

        self.step(f"Creating user {target}")
        client.execute(create_user_sql(record))

        self.step(f"Granting {record.permission_level} privileges")
        client.execute(grant_sql(record))

        if not client.execute("FLUSH PRIVILEGES;", check=False).ok:
            self.warn("FLUSH PRIVILEGES failed; the grants apply on the next server reload")

        scope = "all databases" if record.permission_level == "administrator" else f"database {record.database}"
        self.ok(f"User {target} ready with {record.permission_level} access to {scope}")
