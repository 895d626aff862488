"""
Host-level operations
Package manager (apt), service manager (systemd/SysV) and privilege checks
"""

import os
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional

from .config import Settings
from .errors import CommandError, PreconditionError
from .runner import CommandRunner
from .templates import TemplateRenderer

logger = logging.getLogger(__name__)

NONINTERACTIVE = {"DEBIAN_FRONTEND": "noninteractive"}


def require_root():
    """Abort unless running with EUID 0"""
    if os.geteuid() != 0:
        raise PreconditionError(
            "This command must be run as root",
            tip="Re-run with sudo",
        )


def require_commands(runner: CommandRunner, *names: str):
    """Abort if any of the given executables is missing"""
    missing = [name for name in names if not runner.which(name)]
    if missing:
        raise PreconditionError(f"Required command(s) not found: {', '.join(missing)}")


class PackageManager:
    """apt-get / dpkg wrapper"""

    def __init__(self, runner: CommandRunner, settings: Settings, templates: Optional[TemplateRenderer] = None):
        self.runner = runner
        self.settings = settings
        self.templates = templates or TemplateRenderer()

    def update(self, quiet: bool = True):
        argv = ["apt-get", "update"]
        if quiet:
            argv.append("-q")
        self.runner.run(argv, env=NONINTERACTIVE)

    def upgrade(self):
        self.runner.run(["apt-get", "upgrade", "-y"], env=NONINTERACTIVE)

    def install(self, packages: Iterable[str], no_recommends: bool = False,
                install_recommends: bool = False, quiet: bool = False):
        """Install packages non-interactively"""
        packages = list(packages)
        if not packages:
            return
        argv = ["apt-get", "install", "-y"]
        if quiet:
            argv.append("-qq")
        if no_recommends:
            argv.append("--no-install-recommends")
        if install_recommends:
            argv.append("--install-recommends")
        logger.info("Installing packages: %s", " ".join(packages))
        self.runner.run(argv + packages, env=NONINTERACTIVE)

    def clean(self):
        self.runner.run(["apt-get", "clean"], check=False)

    def is_installed(self, package: str) -> bool:
        """Check dpkg status for 'ok installed'"""
        result = self.runner.run(
            ["dpkg-query", "-W", "-f=${Status}", package],
            check=False,
        )
        return result.ok and "ok installed" in result.stdout

    def print_architecture(self) -> str:
        return self.runner.run(["dpkg", "--print-architecture"]).stdout.strip()

    @contextmanager
    def prevent_service_start(self):
        """Keep postinst scripts from starting services while installing

        Writes the Debian policy-rc.d hook returning 101 and always removes
        it afterwards, even when the installation fails.
        """
        policy = Path(self.settings.policy_rc_path)
        self.templates.write("policy-rc.d.j2", policy, mode=0o755)
        logger.debug("Created %s", policy)
        try:
            yield policy
        finally:
            policy.unlink(missing_ok=True)
            logger.debug("Removed %s", policy)


class ServiceManager:
    """systemctl wrapper with a SysV 'service' fallback"""

    def __init__(self, runner: CommandRunner, systemd: Optional[bool] = None):
        self.runner = runner
        self._systemd = systemd

    @property
    def systemd(self) -> bool:
        """Detect systemd (systemctl present and PID 1 is systemd)"""
        if self._systemd is None:
            has_systemctl = self.runner.which("systemctl") is not None
            self._systemd = has_systemctl and Path("/run/systemd/private").exists()
            if not self._systemd and not self.runner.which("service"):
                if has_systemctl:
                    self._systemd = True
                else:
                    raise PreconditionError("Neither 'systemctl' nor 'service' was found")
            logger.debug("Service manager: %s", "systemd" if self._systemd else "service")
        return self._systemd

    def _action(self, action: str, *units: str, check: bool = True):
        if self.systemd:
            return self.runner.run(["systemctl", action, *units], check=check)
        result = None
        for unit in units:
            result = self.runner.run(["service", unit, action], check=check)
        return result

    def start(self, *units: str):
        self._action("start", *units)

    def stop(self, *units: str):
        self._action("stop", *units)

    def restart(self, *units: str):
        self._action("restart", *units)

    def reload(self, *units: str):
        self._action("reload", *units)

    def enable(self, *units: str, now: bool = False):
        argv = ["systemctl", "enable"]
        if now:
            argv.append("--now")
        self.runner.run(argv + list(units))

    def mask(self, *units: str) -> bool:
        return self.runner.succeeds(["systemctl", "mask", *units])

    def unmask(self, *units: str) -> bool:
        return self.runner.succeeds(["systemctl", "unmask", *units])

    def is_active(self, unit: str) -> bool:
        if self.systemd:
            return self.runner.succeeds(["systemctl", "is-active", "--quiet", unit])
        return self.runner.succeeds(["service", unit, "status"])

    def status(self, unit: str) -> str:
        if self.systemd:
            result = self.runner.run(["systemctl", "status", unit, "--no-pager", "--full"], check=False)
        else:
            result = self.runner.run(["service", unit, "status"], check=False)
        return result.stdout


@dataclass
class Host:
    """Everything a provisioner needs to act on the machine"""
    settings: Settings = field(default_factory=Settings)
    runner: CommandRunner = field(default_factory=CommandRunner)
    templates: TemplateRenderer = field(default_factory=TemplateRenderer)
    packages: Optional[PackageManager] = None
    services: Optional[ServiceManager] = None

    def __post_init__(self):
        if self.packages is None:
            self.packages = PackageManager(self.runner, self.settings, self.templates)
        if self.services is None:
            self.services = ServiceManager(self.runner)

    def ensure_commands(self, mapping: Dict[str, str]):
        """Install the package providing each missing command

        Args:
            mapping: command name -> apt package providing it
        """
        for command, package in mapping.items():
            if self.runner.which(command):
                continue
            logger.info("Command '%s' not found, installing %s", command, package)
            self.packages.update()
            self.packages.install([package])
            if not self.runner.which(command):
                raise PreconditionError(f"Command '{command}' still missing after installing {package}")

    def tail_file(self, path: Path, lines: int = 50) -> str:
        """Last lines of a log file, empty if unreadable"""
        try:
            content = Path(path).read_text(errors="replace").splitlines()
        except OSError:
            return ""
        return "\n".join(content[-lines:])


__all__ = [
    "CommandError",
    "Host",
    "PackageManager",
    "ServiceManager",
    "require_commands",
    "require_root",
]
