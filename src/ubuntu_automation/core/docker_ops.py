"""
Docker operations
Docker SDK interactions for Portainer and the MTA:SA containers
"""

import time
import signal
import logging
from contextlib import contextmanager
from typing import Callable, Optional

import docker

from .errors import InterruptedOperation, PreconditionError, ProvisionError

logger = logging.getLogger(__name__)

_client = None


def get_client():
    """Docker client from the environment, created on first use"""
    global _client
    if _client is None:
        try:
            _client = docker.from_env()
        except docker.errors.DockerException as e:
            raise PreconditionError(
                f"Could not connect to Docker: {e}",
                tip="Is Docker running? Install it with 'ubuntu-automation docker install'",
            )
    return _client


def find_container(client, name: str):
    """Container by name, None if it does not exist"""
    try:
        return client.containers.get(name)
    except docker.errors.NotFound:
        return None


def remove_container(client, name: str, force: bool = True) -> bool:
    """Stop and remove a container; False if it did not exist"""
    container = find_container(client, name)
    if container is None:
        return False

    try:
        if container.status == "running":
            logger.info("Stopping container %s", name)
            container.stop()
        container.remove(force=force)
    except docker.errors.NotFound:
        return False
    except docker.errors.APIError as e:
        raise ProvisionError(f"Failed to remove container {name}: {e}")

    logger.info("Removed container %s", name)
    return True


def ensure_volume(client, name: str) -> bool:
    """Create a named volume if missing; True when it was created"""
    try:
        client.volumes.get(name)
        logger.debug("Volume %s already exists", name)
        return False
    except docker.errors.NotFound:
        client.volumes.create(name=name, driver="local")
        logger.info("Created volume %s", name)
        return True


def pull_image(client, image: str):
    """Pull an image (repository:tag)"""
    repository, _, tag = image.rpartition(":")
    if not repository or "/" in tag:
        repository, tag = image, "latest"
    try:
        return client.images.pull(repository, tag=tag)
    except (docker.errors.ImageNotFound, docker.errors.APIError) as e:
        raise ProvisionError(f"Failed to pull image {image}: {e}")


def wait_for_running(container, delay: float = 5.0, sleep: Callable[[float], None] = time.sleep) -> bool:
    """Give a container a moment to start and report whether it is running"""
    sleep(delay)
    container.reload()
    return container.status == "running"


def container_logs(container, tail: int = 50) -> str:
    try:
        return container.logs(tail=tail).decode("utf-8", errors="replace")
    except docker.errors.APIError:
        return ""


@contextmanager
def interrupt_cleanup(client, container_name: str):
    """Remove container_name if SIGINT/SIGTERM arrives inside the block

    Named volumes are never touched. Previous handlers are restored on exit.
    """
    def handler(signum, frame):
        name = signal.Signals(signum).name
        logger.warning("Received %s, removing container %s", name, container_name)
        try:
            remove_container(client, container_name)
        except ProvisionError as e:
            logger.error("Cleanup failed: %s", e)
        raise InterruptedOperation(
            f"Interrupted by {name}; container '{container_name}' removed, volumes kept"
        )

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.getsignal(sig)
        signal.signal(sig, handler)

    try:
        yield
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


def reset_client(client: Optional[object] = None):
    """Replace the cached client (tests)"""
    global _client
    _client = client
