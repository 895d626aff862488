import json

import pytest

from ubuntu_automation.core.errors import PreconditionError, ProvisionError
from ubuntu_automation.provisioners.docker_engine import (
    DockerOptions,
    DockerProvisioner,
    read_os_release,
    ubuntu_codename,
)

OS_RELEASE = """\
PRETTY_NAME="Ubuntu 24.04.1 LTS"
NAME="Ubuntu"
VERSION_ID="24.04"
VERSION_CODENAME=noble
UBUNTU_CODENAME=noble
# comment
"""


class KeyDownloader:
    def download(self, url, dest):
        dest.write_text("-----BEGIN PGP PUBLIC KEY BLOCK-----\n")
        return dest


def test_read_os_release(tmp_path):
    path = tmp_path / "os-release"
    path.write_text(OS_RELEASE)
    values = read_os_release(path)

    assert values["PRETTY_NAME"] == "Ubuntu 24.04.1 LTS"
    assert ubuntu_codename(values) == "noble"
    assert ubuntu_codename({"VERSION_CODENAME": "bookworm"}) == "bookworm"
    with pytest.raises(PreconditionError):
        ubuntu_codename({"NAME": "Ubuntu"})


def test_repository_line(host, settings):
    line = DockerProvisioner(host, downloader=KeyDownloader()).repository_line("amd64", "noble")
    assert line == (
        f"deb [arch=amd64 signed-by={settings.apt_keyrings_dir / 'docker.asc'}] "
        "https://download.docker.com/linux/ubuntu noble stable\n"
    )


def test_install(host, settings, runner):
    settings.os_release_file.parent.mkdir(parents=True)
    settings.os_release_file.write_text(OS_RELEASE)
    runner.respond(["dpkg", "--print-architecture"], stdout="arm64\n")
    runner.respond(["docker", "--version"], stdout="Docker version 27.3.1, build ce12230\n")

    version = DockerProvisioner(host, downloader=KeyDownloader(), check_root=False).install(DockerOptions(user=None))

    assert version == "Docker version 27.3.1, build ce12230"
    assert "arch=arm64" in (settings.apt_sources_dir / "docker.list").read_text()
    daemon = json.loads((settings.docker_config_dir / "daemon.json").read_text())
    assert daemon["iptables"] is False
    assert daemon["log-opts"]["max-file"] == "3"
    assert runner.index("systemctl", "mask") < runner.index("apt-get", "install", "-y", "docker-ce")
    assert runner.index("systemctl", "unmask") > runner.index("apt-get", "install", "-y", "docker-ce")
    assert runner.called("systemctl", "enable", "--now", "docker", "containerd")
    assert not settings.policy_rc_path.exists()


def test_verification_failure(host, settings, runner):
    settings.os_release_file.parent.mkdir(parents=True)
    settings.os_release_file.write_text(OS_RELEASE)
    runner.respond(["docker", "--version"], returncode=127)

    with pytest.raises(ProvisionError, match="verification failed"):
        DockerProvisioner(host, downloader=KeyDownloader(), check_root=False).install(DockerOptions(user=None))
