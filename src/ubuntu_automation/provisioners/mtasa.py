"""
MTA:SA game servers
Server layout under /home/mtasa, Docker container or LXD instance around it
"""

import re
import shutil
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import docker

from ..core import docker_ops
from ..core.downloads import Downloader, extract_archive, temporary_directory
from ..core.errors import PreconditionError, ProvisionError, ValidationError
from .base import Provisioner

logger = logging.getLogger(__name__)

NAME_RE = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_.-]*$')
SERVER_DIR_NAME = "multitheftauto_linux_x64"


@dataclass
class MtasaOptions:
    name: str
    start: bool = False

    def __post_init__(self):
        if not self.name:
            raise ValidationError("Server name not provided")
        if not NAME_RE.match(self.name):
            raise ValidationError(
                f"Invalid server name: {self.name!r}. Use letters, digits, '.', '_' or '-'"
            )


class MtasaProvisioner(Provisioner):
    name = "mtasa"

    def __init__(self, host=None, client=None, downloader: Optional[Downloader] = None, **kwargs):
        super().__init__(host, **kwargs)
        self._client = client
        self.downloader = downloader or Downloader()

    @property
    def client(self):
        if self._client is None:
            self._client = docker_ops.get_client()
        return self._client

    def server_dir(self, name: str) -> Path:
        return self.settings.mtasa_home / name

    def entrypoint_dir(self, name: str) -> Path:
        return self.settings.mtasa_entrypoints_dir / name

    def create(self, options: MtasaOptions):
        """Lay out a server and create its container"""
        self.preflight()
        server_dir = self.server_dir(options.name)
        if server_dir.exists():
            raise PreconditionError(f"Server directory {server_dir} already exists")
        if docker_ops.find_container(self.client, options.name) is not None:
            raise PreconditionError(f"A container named {options.name} already exists")

        self.step(f"Downloading MTA:SA server into {server_dir}")
        self.install_server_files(server_dir)
        self.runner.run(["chown", "-R", f"{self.settings.mtasa_user}:{self.settings.mtasa_user}", server_dir])

        entrypoint = self.write_entrypoint(options.name)

        self.step(f"Creating container {options.name}")
        container = self.create_container(options.name, entrypoint)
        if options.start:
            container.start()
            self.ok(f"Container {options.name} started")
        else:
            self.ok(f"Container {options.name} created, start it with 'docker start {options.name}'")
        return container

    def install_server_files(self, server_dir: Path):
        settings = self.settings
        server_dir.parent.mkdir(parents=True, exist_ok=True)

        with temporary_directory() as tmp:
            server_archive = self.downloader.download(settings.mtasa_server_url, tmp / "server.tar.gz")
            extract_archive(server_archive, tmp / "server")
            extracted = tmp / "server" / SERVER_DIR_NAME
            if not extracted.is_dir():
                raise ProvisionError(f"Unexpected server archive layout: {SERVER_DIR_NAME}/ not found")
            shutil.move(str(extracted), str(server_dir))

            deathmatch = server_dir / "mods" / "deathmatch"
            deathmatch.mkdir(parents=True, exist_ok=True)

            baseconfig_archive = self.downloader.download(settings.mtasa_baseconfig_url, tmp / "baseconfig.tar.gz")
            extract_archive(baseconfig_archive, tmp / "baseconfig")
            source = tmp / "baseconfig" / "baseconfig"
            if not source.is_dir():
                source = tmp / "baseconfig"
            for item in source.iterdir():
                target = deathmatch / item.name
                if target.is_dir():
                    shutil.rmtree(target)
                elif target.exists():
                    target.unlink()
                shutil.move(str(item), str(target))

            resources = deathmatch / "resources"
            resources.mkdir(exist_ok=True)
            resources_archive = self.downloader.download(settings.mtasa_resources_url, tmp / "resources.zip")
            extract_archive(resources_archive, resources)

    def write_entrypoint(self, name: str) -> Path:
        user = self.settings.mtasa_user
        path = self.templates.write(
            "mtasa_entrypoint.sh.j2",
            self.entrypoint_dir(name) / "entrypoint.sh",
            mode=0o755,
            user=user,
        )
        self.runner.run(["chown", f"{user}:{user}", path])
        return path

    def create_container(self, name: str, entrypoint: Path, pull: bool = True):
        settings = self.settings
        server_dir = self.server_dir(name)
        entry_dir = self.entrypoint_dir(name)
        try:
            return self.client.containers.create(
                settings.mtasa_image,
                command=[str(server_dir / "mta-server64")],
                name=name,
                entrypoint=[str(entrypoint)],
                network_mode="host",
                working_dir=str(server_dir),
                user=settings.mtasa_user,
                restart_policy={"Name": "always"},
                stdin_open=True,
                tty=True,
                volumes={
                    str(server_dir): {"bind": str(server_dir), "mode": "rw"},
                    str(entry_dir): {"bind": str(entry_dir), "mode": "rw"},
                },
            )
        except docker.errors.ImageNotFound:
            if not pull:
                raise ProvisionError(f"Image {settings.mtasa_image} not found")
            logger.info("Image %s not found locally, pulling", settings.mtasa_image)
            docker_ops.pull_image(self.client, settings.mtasa_image)
            return self.create_container(name, entrypoint, pull=False)
        except docker.errors.APIError as e:
            raise ProvisionError(f"Failed to create container {name}: {e}")

    def lxd(self):
        """Import the MTA:SA LXD image and start the 'mtasa' instance"""
        self.preflight()
        settings = self.settings
        runner = self.runner
        if not runner.which("lxc"):
            raise PreconditionError("'lxc' not found", tip="Install LXD first with 'ubuntu-automation lxd install'")

        with temporary_directory() as tmp:
            self.step("Downloading the MTA:SA LXD image")
            image = self.downloader.download(settings.mtasa_lxd_image_url, tmp / "mtasa.lxc.tar.gz")
            self.step("Importing image into LXD")
            runner.run(["lxc", "image", "import", image, "--alias", "mtasa"])

        settings.mtasa_entrypoints_dir.mkdir(parents=True, exist_ok=True)
        settings.mtasa_home.mkdir(parents=True, exist_ok=True)

        self.step("Creating instance 'mtasa'")
        runner.run(["lxc", "init", "mtasa", "mtasa"])
        runner.run([
            "lxc", "config", "device", "add", "mtasa", "folder_docker", "disk",
            f"source={settings.mtasa_entrypoints_dir}", f"path={settings.mtasa_entrypoints_dir}",
        ])
        runner.run([
            "lxc", "config", "device", "add", "mtasa", "folder_home", "disk",
            f"source={settings.mtasa_home}", f"path={settings.mtasa_home}",
        ])
        runner.run([
            "lxc", "config", "device", "override", "mtasa", "eth0",
            f"ipv4.address={settings.mtasa_lxd_address}",
        ])
        runner.run(["lxc", "start", "mtasa"])
        self.ok(f"Instance 'mtasa' started at {settings.mtasa_lxd_address}")
