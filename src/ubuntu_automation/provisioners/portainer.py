"""
Portainer CE container
Replaces the portainer container on every run while keeping its data volume
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import docker

from ..core import docker_ops
from ..core.errors import ProvisionError
from ..core.validation import validate_ipv4
from .base import Provisioner

logger = logging.getLogger(__name__)

EDGE_PORT = 8000
HTTPS_PORT = 9443


@dataclass
class PortainerOptions:
    ip: str = "0.0.0.0"

    def __post_init__(self):
        self.ip = validate_ipv4(self.ip)


class PortainerProvisioner(Provisioner):
    name = "portainer"

    def __init__(self, host=None, client=None, start_delay: float = 5.0,
                 sleep: Optional[Callable[[float], None]] = None, **kwargs):
        super().__init__(host, **kwargs)
        self._client = client
        self.start_delay = start_delay
        self.sleep = sleep

    @property
    def client(self):
        if self._client is None:
            self._client = docker_ops.get_client()
        return self._client

    def install(self, options: PortainerOptions) -> Dict[str, str]:
        """Recreate the Portainer container and return its access URLs"""
        self.preflight()
        settings = self.settings
        client = self.client

        try:
            client.ping()
        except docker.errors.APIError as e:
            raise ProvisionError(f"Docker daemon is not responding: {e}", tip="Is Docker running?")

        with docker_ops.interrupt_cleanup(client, settings.portainer_name):
            if docker_ops.find_container(client, settings.portainer_name) is not None:
                self.warn(f"Container {settings.portainer_name} already exists, recreating it")
                docker_ops.remove_container(client, settings.portainer_name)

            if docker_ops.ensure_volume(client, settings.portainer_volume):
                self.ok(f"Created volume {settings.portainer_volume}")
            else:
                self.step(f"Volume {settings.portainer_volume} already exists")

            self.step(f"Pulling {settings.portainer_image}")
            docker_ops.pull_image(client, settings.portainer_image)

            self.step(f"Starting container {settings.portainer_name}")
            container = self.run_container(options)
            logger.info("Container %s started with ID %s", settings.portainer_name, container.short_id)

            kwargs = {"delay": self.start_delay}
            if self.sleep is not None:
                kwargs["sleep"] = self.sleep
            if not docker_ops.wait_for_running(container, **kwargs):
                logs = docker_ops.container_logs(container)
                if logs:
                    logger.warning("Container logs:\n%s", logs)
                raise ProvisionError(f"Container {settings.portainer_name} is not running")

        self.ok(f"Container {settings.portainer_name} is running")
        return {
            "https": f"https://{options.ip}:{HTTPS_PORT}",
            "http": f"http://{options.ip}:{EDGE_PORT}",
        }

    def run_container(self, options: PortainerOptions):
        settings = self.settings
        try:
            return self.client.containers.run(
                settings.portainer_image,
                name=settings.portainer_name,
                detach=True,
                restart_policy={"Name": "unless-stopped"},
                ports={
                    f"{EDGE_PORT}/tcp": (options.ip, EDGE_PORT),
                    f"{HTTPS_PORT}/tcp": (options.ip, HTTPS_PORT),
                },
                volumes={
                    settings.docker_socket: {"bind": "/var/run/docker.sock", "mode": "rw"},
                    settings.portainer_volume: {"bind": "/data", "mode": "rw"},
                },
            )
        except docker.errors.APIError as e:
            raise ProvisionError(
                f"Failed to start the Portainer container: {e}",
                tip="Check for port conflicts on 8000/9443 and access to the Docker socket",
            )
