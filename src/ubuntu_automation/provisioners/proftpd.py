"""
ProFTPD with mod_sql backed by MySQL
Virtual FTP users live in the proftpd database (ftpuser / ftpgroup tables)
"""

import re
import logging
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Optional

from ..core.backup import guarded_directory
from ..core.database import MYSQL, DatabaseClient, UserRecord, create_database_sql, quote_string
from ..core.downloads import Downloader
from ..core.errors import CommandError, PreconditionError, ProvisionError, ValidationError
from ..core.validation import require, validate_numeric_id
from .base import Provisioner
from .mysql import MysqlProvisioner

logger = logging.getLogger(__name__)

SERVICE = "proftpd"
MODULES = ["proftpd-mod-mysql", "proftpd-mod-crypto", "proftpd-mod-ldap"]
DEPENDENCIES = {"mysql": "mysql-client", "curl": "curl", "proftpd": "proftpd-core"}
CONFIG_FILES = [
    "geoip.conf",
    "ldap.conf",
    "modules.conf",
    "proftpd.conf",
    "sftp.conf",
    "snmp.conf",
    "sql.conf",
    "tls.conf",
    "virtuals.conf",
]
CONNECT_INFO_RE = re.compile(r'^SQLConnectInfo\s+.*$', re.MULTILINE)
DEFAULT_SHELL = "/sbin/nologin"


def schema_sql() -> str:
    """Bundled mod_sql schema"""
    return resources.files("ubuntu_automation.data").joinpath("proftpd.sql").read_text()


def patch_connect_info(content: str, database: str, host: str, user: str) -> str:
    """Point SQLConnectInfo at database@host as user (socket auth, no password)"""
    line = f"SQLConnectInfo {database}@{host} {user}"
    patched, count = CONNECT_INFO_RE.subn(line, content)
    if not count:
        raise ProvisionError("No SQLConnectInfo line found in sql.conf")
    return patched


@dataclass
class FtpUser:
    user: str
    password: str
    uid: int
    gid: int
    groupname: str
    members: str
    homedir: Optional[str] = None
    shell: str = DEFAULT_SHELL

    def __post_init__(self):
        self.user = require(self.user, "--user")
        self.password = require(self.password, "--password")
        self.groupname = require(self.groupname, "--groupname")
        self.members = require(self.members, "--members")
        self.uid = validate_numeric_id(self.uid, "UID")
        self.gid = validate_numeric_id(self.gid, "GID")
        self.shell = self.shell or DEFAULT_SHELL

    def home(self, base: Path) -> str:
        return self.homedir or str(Path(base) / self.user)


class ProftpdProvisioner(Provisioner):
    name = "proftpd"

    def __init__(self, host=None, downloader: Optional[Downloader] = None, **kwargs):
        super().__init__(host, **kwargs)
        self.downloader = downloader or Downloader()

    def client(self) -> DatabaseClient:
        return DatabaseClient(self.runner, flavor=MYSQL, user="root")

    def install(self, username: str):
        """Install ProFTPD with SQL authentication for MySQL user `username`"""
        username = require(username, "--username")
        self.preflight()
        settings = self.settings
        database = settings.proftpd_database

        self.step("Checking dependencies")
        self.host.ensure_commands(DEPENDENCIES)

        self.step("Installing ProFTPD modules")
        self.packages.install(MODULES)

        self.step(f"Creating MySQL user '{username}'@'localhost' (auth_socket)")
        record = UserRecord(
            user=username,
            permission_level="default",
            flavor=MYSQL,
            database=database,
            host="localhost",
            auth_plugin="auth_socket",
        )
        MysqlProvisioner(self.host, check_root=self.check_root).create_user(record)

        self.step(f"Creating database {database} and importing the schema")
        client = self.client()
        client.execute(create_database_sql(database))
        client.import_sql(schema_sql(), database)

        config_dir = settings.proftpd_config_dir
        if not config_dir.is_dir():
            raise PreconditionError(f"ProFTPD configuration directory {config_dir} not found")

        with guarded_directory(config_dir) as backup:
            logger.info("Configuration backup: %s", backup)
            self.step(f"Downloading configuration files to {config_dir}")
            for name in CONFIG_FILES:
                url = f"{settings.proftpd_config_base_url}/{name}"
                self.downloader.download(url, config_dir / name)

            sql_conf = config_dir / "sql.conf"
            if not sql_conf.is_file():
                raise ProvisionError(f"{sql_conf} not found after download")
            sql_conf.write_text(patch_connect_info(sql_conf.read_text(), database, "localhost", username))

            self.step("Testing the configuration (proftpd -t)")
            result = self.runner.run(["proftpd", "-t"], check=False)
            if not result.ok:
                if self.services.is_active(SERVICE):
                    self.services.stop(SERVICE)
                raise ProvisionError(
                    f"proftpd -t failed: {(result.stderr or result.stdout).strip()}",
                    tip=f"The previous configuration was restored from {backup}",
                )

        self.step("Restarting ProFTPD")
        self.services.restart(SERVICE)
        self.ok(f"ProFTPD configured with SQL authentication ({database}@localhost as {username})")

    def hash_password(self, password: str) -> str:
        """DES crypt hash as expected by mod_sql's Crypt backend"""
        if not self.runner.which("mkpasswd"):
            raise PreconditionError("'mkpasswd' not found", tip="Install it with: apt install whois")
        try:
            hashed = self.runner.run(["mkpasswd", "-m", "des", "--stdin"], input=password).stdout.strip()
        except CommandError as e:
            raise ProvisionError(f"Failed to encrypt the password with mkpasswd: {e}")
        if not hashed:
            raise ProvisionError("mkpasswd returned an empty hash")
        return hashed

    def create_user(self, ftp_user: FtpUser):
        """Insert a virtual FTP user, and its group when missing"""
        self.preflight()
        if not self.runner.which("mysql"):
            raise PreconditionError("'mysql' not found", tip="Install the MySQL client")

        database = self.settings.proftpd_database
        client = self.client()
        homedir = ftp_user.home(self.settings.ftp_home_base)
        hashed = self.hash_password(ftp_user.password)

        existing = client.query_value(
            f"SELECT id FROM ftpuser WHERE userid = {quote_string(ftp_user.user)};", database
        )
        if existing:
            raise ValidationError(f"User '{ftp_user.user}' already exists in the database (ID: {existing})")

        group_id = client.query_value(
            f"SELECT id FROM ftpgroup WHERE groupname = {quote_string(ftp_user.groupname)};", database
        )

        self.step(f"Inserting user {ftp_user.user}")
        client.execute(
            "INSERT INTO ftpuser (userid, passwd, uid, gid, homedir, shell, count, accessed, modified) "
            f"VALUES ({quote_string(ftp_user.user)}, {quote_string(hashed)}, {ftp_user.uid}, {ftp_user.gid}, "
            f"{quote_string(homedir)}, {quote_string(ftp_user.shell)}, 0, NOW(), NOW());",
            database,
        )

        if group_id:
            logger.info("Group '%s' already exists (ID: %s)", ftp_user.groupname, group_id)
        else:
            self.step(f"Inserting group {ftp_user.groupname}")
            client.execute(
                "INSERT INTO ftpgroup (groupname, gid, members) "
                f"VALUES ({quote_string(ftp_user.groupname)}, {ftp_user.gid}, {quote_string(ftp_user.members)});",
                database,
            )

        self.ok(f"FTP user {ftp_user.user} created (home {homedir})")
        if not Path(homedir).exists():
            self.warn(f"Create {homedir} on the filesystem and set its permissions before the first login")
