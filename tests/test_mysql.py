import pytest

from conftest import FakeRunner
from ubuntu_automation.core.errors import CommandError, ValidationError
from ubuntu_automation.core.runner import CommandResult
from ubuntu_automation.core.system import Host, ServiceManager
from ubuntu_automation.provisioners.mysql import (
    MysqlInstallOptions,
    MysqlProvisioner,
    PasswordChange,
    patch_mysqld_config,
)

MYSQLD_CNF = """\
[mysqld_safe]
port = 1111

[mysqld]
user            = mysql
bind-address    = 127.0.0.1
mysqlx-bind-address = 127.0.0.1
# port = 3306
port = 3306
"""


def test_patch_mysqld_config():
    options = MysqlInstallOptions(ip="0.0.0.0", port="3310", mysqlx_port="33070")
    lines = patch_mysqld_config(MYSQLD_CNF, options).splitlines()

    header = lines.index("[mysqld]")
    assert lines[header + 1:header + 4] == [
        "bind-address = 0.0.0.0",
        "port         = 3310",
        "mysqlx-port  = 33070",
    ]
    assert "port = 1111" in lines
    assert "#bind-address    = 127.0.0.1" in lines
    assert "#port = 3306" in lines
    assert "mysqlx-bind-address = 127.0.0.1" in lines


def test_patch_requires_mysqld_section():
    with pytest.raises(ValidationError):
        patch_mysqld_config("[client]\nuser = root\n", MysqlInstallOptions(ip="127.0.0.1", port=3306))


def test_install_patches_and_restarts(host, settings, runner):
    settings.mysql_config_file.parent.mkdir(parents=True)
    settings.mysql_config_file.write_text(MYSQLD_CNF)

    MysqlProvisioner(host, check_root=False).install(MysqlInstallOptions(ip="10.0.0.5", port=3306))

    assert "bind-address = 10.0.0.5" in settings.mysql_config_file.read_text()
    assert runner.called("systemctl", "restart", "mysql")
    assert "auth_socket" in runner.inputs[-1]


class PluginPresentRunner(FakeRunner):
    """MySQL 8 answer to INSTALL PLUGIN when auth_socket is already loaded"""

    def run(self, argv, *, input=None, check=True, **kwargs):
        if input and input.startswith("INSTALL PLUGIN"):
            self.calls.append([str(a) for a in argv])
            self.inputs.append(input)
            result = CommandResult(argv=list(argv), returncode=1, stderr="ERROR 1125 (HY000): Function 'auth_socket' already exists")
            if check:
                raise CommandError(argv, 1, result.stderr)
            return result
        return super().run(argv, input=input, check=check, **kwargs)


def test_install_plugin_failure_still_switches_root_auth(settings):
    runner = PluginPresentRunner()
    host = Host(settings=settings, runner=runner, services=ServiceManager(runner, systemd=True))
    settings.mysql_config_file.parent.mkdir(parents=True)
    settings.mysql_config_file.write_text(MYSQLD_CNF)

    MysqlProvisioner(host, check_root=False).install(MysqlInstallOptions(ip="127.0.0.1", port=3306))

    assert runner.inputs[-2] == "INSTALL PLUGIN auth_socket SONAME 'auth_socket.so';"
    assert runner.inputs[-1] == "ALTER USER 'root'@'localhost' IDENTIFIED WITH auth_socket; FLUSH PRIVILEGES;"


def test_change_password_syncs_root_client_config(host, settings, runner):
    settings.root_my_cnf.parent.mkdir(parents=True)
    settings.root_my_cnf.write_text("[client]\nuser = root\npassword = old\n")

    updated = MysqlProvisioner(host, check_root=False).change_password(PasswordChange(user="root", password="n3w"))

    assert updated
    assert 'password = "n3w"' in settings.root_my_cnf.read_text()
    assert runner.inputs[-1].startswith("ALTER USER 'root'@'localhost' IDENTIFIED WITH mysql_native_password BY 'n3w';")


def test_change_password_other_user_leaves_client_config(host, settings, runner):
    settings.root_my_cnf.parent.mkdir(parents=True)
    settings.root_my_cnf.write_text("[client]\npassword = old\n")

    updated = MysqlProvisioner(host, check_root=False).change_password(
        PasswordChange(user="app", password="pw", host="%")
    )

    assert not updated
    assert "password = old" in settings.root_my_cnf.read_text()


def test_password_change_requires_values():
    with pytest.raises(ValidationError, match="--mysql-password"):
        PasswordChange(user="root", password="")


def test_create_user(host, runner):
    from ubuntu_automation.core.database import MYSQL, UserRecord

    record = UserRecord(user="app", permission_level="administrator", flavor=MYSQL, password="pw", host="%")
    MysqlProvisioner(host, check_root=False).create_user(record)

    statements = [sql for sql in runner.inputs if sql]
    assert statements == [
        "CREATE USER IF NOT EXISTS 'app'@'%' IDENTIFIED WITH mysql_native_password BY 'pw';",
        "GRANT ALL PRIVILEGES ON *.* TO 'app'@'%' WITH GRANT OPTION;",
        "FLUSH PRIVILEGES;",
    ]
    assert all(call[0] == "mysql" for call in runner.calls)
