import pytest
from typer.testing import CliRunner

from ubuntu_automation import __version__
from ubuntu_automation.cli import app

cli = CliRunner()


def invoke(host, *args):
    return cli.invoke(app, list(args), obj=host)


def test_version(host):
    result = invoke(host, "version")
    assert result.exit_code == 0
    assert __version__ in result.output


def test_no_command_shows_help(host):
    result = invoke(host)
    assert result.exit_code == 0
    assert "Quick Commands" in result.output


@pytest.mark.parametrize("ip,port", [("999.1.1.1", "80"), ("10.0.0.1", "70000")])
def test_invalid_ip_or_port_exits_1_without_writing(host, runner, ip, port):
    result = invoke(
        host, "nginx", "vhost-proxy",
        f"--vhost-server-ip={ip}",
        f"--vhost-server-port={port}",
        "--vhost-server-domain=app.example.com",
        "--vhost-proxy-target=127.0.0.1:3000",
    )
    assert result.exit_code == 1
    assert not host.settings.nginx_sites_available.exists()
    assert not host.settings.nginx_sites_enabled.exists()
    assert runner.calls == []


def test_nginx_install_invalid_port_exits_1(host, runner):
    result = invoke(host, "nginx", "install", "--vhost-server-ip=0.0.0.0", "--vhost-server-port=0")
    assert result.exit_code == 1
    assert runner.calls == []


def test_missing_required_option_exits_1(host, runner):
    result = invoke(host, "nginx", "vhost-mtasa", "--vhost-server-ip=0.0.0.0", "--vhost-server-port=80")
    assert result.exit_code == 1
    assert runner.calls == []


@pytest.mark.parametrize("group,user_flag,password_flag", [
    ("mariadb", "--mariadb-user", "--mariadb-password"),
    ("mysql", "--mysql-user", "--mysql-password"),
])
def test_create_user_default_level_requires_database(host, runner, group, user_flag, password_flag):
    result = invoke(
        host, group, "create-user",
        f"{user_flag}=app",
        f"{password_flag}=secret",
        "--permission-level=default",
    )
    assert result.exit_code == 1
    assert runner.calls == []


def test_vhost_proxy_end_to_end(host, runner, as_root):
    result = invoke(
        host, "nginx", "vhost-proxy",
        "--vhost-server-ip=0.0.0.0",
        "--vhost-server-port=8080",
        "--vhost-server-domain=app.example.com",
        "--vhost-proxy-target=127.0.0.1:3000",
        "--vhost-proxy-ssl=yes",
    )
    assert result.exit_code == 0, result.output
    config = host.settings.nginx_sites_available / "app.example.com.conf"
    assert "proxy_pass https://127.0.0.1:3000;" in config.read_text()
    assert (host.settings.nginx_sites_enabled / "app.example.com.conf").is_symlink()
    assert runner.called("nginx", "-t")


def test_vhost_proxy_rejects_bad_ssl_flag(host, runner):
    result = invoke(
        host, "nginx", "vhost-proxy",
        "--vhost-server-ip=0.0.0.0",
        "--vhost-server-port=80",
        "--vhost-server-domain=app.example.com",
        "--vhost-proxy-target=127.0.0.1:3000",
        "--vhost-proxy-ssl=maybe",
    )
    assert result.exit_code == 1
    assert runner.calls == []


def test_mariadb_legacy_user_flag_is_accepted(host, runner, as_root):
    result = invoke(
        host, "mariadb", "create-user",
        "--mysql-user=admin",
        "--mariadb-password=s3cret",
        "--permission-level=administrator",
    )
    assert result.exit_code == 0, result.output
    sql = "\n".join(text for text in runner.inputs if text)
    assert "CREATE USER IF NOT EXISTS 'admin'@'localhost' IDENTIFIED BY 's3cret';" in sql
    assert "GRANT ALL PRIVILEGES ON *.* TO 'admin'@'localhost' WITH GRANT OPTION;" in sql


def test_command_failure_exits_1(host, runner, as_root):
    runner.respond(["nginx", "-t"], returncode=1, stderr="bad config")
    result = invoke(
        host, "nginx", "vhost-mtasa",
        "--vhost-server-ip=0.0.0.0",
        "--vhost-server-port=80",
        "--vhost-server-domain=mta.example.com",
    )
    assert result.exit_code == 1
    assert not (host.settings.nginx_sites_enabled / "mta.example.com.conf").exists()


def test_nginx_install_end_to_end(host, runner, as_root):
    result = invoke(host, "nginx", "install", "--vhost-server-ip=0.0.0.0", "--vhost-server-port=80")
    assert result.exit_code == 0, result.output
    assert "listen 0.0.0.0:80 default_server;" in (host.settings.nginx_sites_available / "default").read_text()
    assert runner.called("systemctl", "restart", "nginx")


def test_filesystem_error_is_reported_not_raised(host, runner, as_root):
    host.settings.nginx_dir.mkdir(parents=True)
    host.settings.nginx_sites_available.write_text("not a directory")

    result = invoke(
        host, "nginx", "vhost-proxy",
        "--vhost-server-ip=0.0.0.0",
        "--vhost-server-port=80",
        "--vhost-server-domain=app.example.com",
        "--vhost-proxy-target=127.0.0.1:3000",
    )
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "FileExistsError" in result.output
