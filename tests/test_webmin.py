import pytest

from ubuntu_automation.provisioners import webmin
from ubuntu_automation.provisioners.webmin import WebminProvisioner, read_miniserv


class ScriptDownloader:
    def download(self, url, dest):
        dest.write_text("#!/bin/sh\n")
        return dest


@pytest.fixture
def provisioner(host, monkeypatch):
    monkeypatch.setattr(webmin, "primary_address", lambda: "192.168.1.10")
    return WebminProvisioner(host, downloader=ScriptDownloader(), check_root=False)


def write_miniserv(settings, content):
    settings.webmin_miniserv_conf.parent.mkdir(parents=True)
    settings.webmin_miniserv_conf.write_text(content)


def test_read_miniserv(tmp_path):
    path = tmp_path / "miniserv.conf"
    path.write_text("port=10000\n#ssl=0\nssl=1\nnot a pair\n")
    assert read_miniserv(path) == {"port": "10000", "ssl": "1"}
    assert read_miniserv(tmp_path / "missing.conf") == {}


def test_install_reports_url(provisioner, settings, runner):
    write_miniserv(settings, "port=12321\nssl=1\n")

    assert provisioner.install() == "https://192.168.1.10:12321"
    assert runner.inputs[runner.index("sh")] == "y\n"
    assert runner.called("apt-get", "install", "-y", "--install-recommends", "webmin")


def test_install_without_ssl(provisioner, settings):
    write_miniserv(settings, "port=10000\nssl=0\n")
    assert provisioner.install() == "http://192.168.1.10:10000"


def test_inactive_service(provisioner, settings, runner):
    runner.respond(["systemctl", "is-active", "--quiet", "webmin"], returncode=3)
    assert provisioner.install() is None
