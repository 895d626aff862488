"""Shared fixtures: a recording command runner, a fake Docker client and tmp-path settings"""

import os

import docker
import pytest

from ubuntu_automation.core import docker_ops
from ubuntu_automation.core.config import Settings
from ubuntu_automation.core.errors import CommandError
from ubuntu_automation.core.runner import CommandResult
from ubuntu_automation.core.system import Host, ServiceManager


class FakeRunner:
    """Records every command instead of running it

    Results are scripted per argv prefix with respond(); the last matching
    rule wins and anything unscripted succeeds with empty output.
    """

    def __init__(self, missing=()):
        self.calls = []
        self.inputs = []
        self.rules = []
        self.missing = set(missing)

    def respond(self, prefix, returncode=0, stdout="", stderr="", action=None):
        self.rules.append((list(prefix), returncode, stdout, stderr, action))

    def run(self, argv, *, input=None, check=True, env=None, capture=True, timeout=None, cwd=None):
        argv = [str(a) for a in argv]
        self.calls.append(argv)
        self.inputs.append(input)

        returncode, stdout, stderr = 0, "", ""
        for prefix, rc, out, err, action in reversed(self.rules):
            if argv[:len(prefix)] == prefix:
                if action is not None:
                    action(argv)
                returncode, stdout, stderr = rc, out, err
                break

        result = CommandResult(argv=argv, returncode=returncode, stdout=stdout, stderr=stderr)
        if check and not result.ok:
            raise CommandError(argv, returncode, stderr)
        return result

    def which(self, name):
        return None if name in self.missing else f"/usr/bin/{name}"

    def succeeds(self, argv, **kwargs):
        return self.run(argv, check=False, **kwargs).ok

    def called(self, *prefix) -> bool:
        prefix = [str(p) for p in prefix]
        return any(call[:len(prefix)] == prefix for call in self.calls)

    def index(self, *prefix) -> int:
        prefix = [str(p) for p in prefix]
        for i, call in enumerate(self.calls):
            if call[:len(prefix)] == prefix:
                return i
        raise AssertionError(f"{prefix} was never called")


class FakeContainer:
    def __init__(self, name, status="running"):
        self.name = name
        self.status = status
        self.short_id = f"{name[:4]}1234"
        self.removed = False
        self.stopped = False
        self.started = False

    def stop(self):
        self.stopped = True
        self.status = "exited"

    def start(self):
        self.started = True
        self.status = "running"

    def remove(self, force=False):
        self.removed = True

    def reload(self):
        pass

    def logs(self, tail=50):
        return b"container log line\n"


class FakeContainers:
    def __init__(self, client):
        self.client = client
        self.items = {}
        self.run_kwargs = None
        self.on_run = None

    def get(self, name):
        container = self.items.get(name)
        if container is None or container.removed:
            raise docker.errors.NotFound(f"No such container: {name}")
        return container

    def run(self, image, name=None, **kwargs):
        self.run_kwargs = dict(kwargs, image=image, name=name)
        container = FakeContainer(name)
        self.items[name] = container
        if self.on_run is not None:
            self.on_run(container)
        return container

    def create(self, image, name=None, **kwargs):
        self.run_kwargs = dict(kwargs, image=image, name=name)
        container = FakeContainer(name, status="created")
        self.items[name] = container
        return container


class FakeVolumes:
    def __init__(self):
        self.names = set()
        self.removed = []

    def get(self, name):
        if name not in self.names:
            raise docker.errors.NotFound(f"No such volume: {name}")
        return name

    def create(self, name, driver="local"):
        self.names.add(name)
        return name


class FakeImages:
    def __init__(self):
        self.pulled = []

    def pull(self, repository, tag=None):
        self.pulled.append(f"{repository}:{tag}")


class FakeDockerClient:
    def __init__(self):
        self.containers = FakeContainers(self)
        self.volumes = FakeVolumes()
        self.images = FakeImages()

    def ping(self):
        return True


def make_settings(root) -> Settings:
    """Settings with every filesystem location under root"""
    return Settings(
        log_file=root / "log" / "ubuntu-automation.log",
        policy_rc_path=root / "usr" / "sbin" / "policy-rc.d",
        nginx_dir=root / "etc" / "nginx",
        nginx_log_dir=root / "var" / "log" / "nginx",
        www_root=root / "var" / "www" / "html",
        apache_dir=root / "etc" / "apache2",
        docker_config_dir=root / "etc" / "docker",
        apt_keyrings_dir=root / "etc" / "apt" / "keyrings",
        apt_sources_dir=root / "etc" / "apt" / "sources.list.d",
        os_release_file=root / "etc" / "os-release",
        mtasa_home=root / "home" / "mtasa",
        mtasa_entrypoints_dir=root / "docker" / "mtasa",
        mariadb_config_file=root / "etc" / "mysql" / "mariadb.conf.d" / "50-server.cnf",
        mysql_config_file=root / "etc" / "mysql" / "mysql.conf.d" / "mysqld.cnf",
        mysql_data_dir=root / "var" / "lib" / "mysql",
        mysql_error_log=root / "var" / "log" / "mysql" / "error.log",
        root_my_cnf=root / "root" / ".my.cnf",
        db_ready_attempts=3,
        db_ready_delay=0.0,
        phpmyadmin_dir=root / "usr" / "share" / "phpmyadmin",
        proftpd_config_dir=root / "etc" / "proftpd",
        ftp_home_base=root / "home",
        webmin_miniserv_conf=root / "etc" / "webmin" / "miniserv.conf",
        php_etc_dir=root / "etc" / "php",
        php_run_dir=root / "run" / "php",
    )


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def host(settings, runner):
    return Host(settings=settings, runner=runner, services=ServiceManager(runner, systemd=True))


@pytest.fixture
def docker_client():
    client = FakeDockerClient()
    docker_ops.reset_client(client)
    yield client
    docker_ops.reset_client(None)


@pytest.fixture
def as_root(monkeypatch):
    """Pretend to run with EUID 0"""
    monkeypatch.setattr(os, "geteuid", lambda: 0)
