"""Execution of external commands (apt-get, systemctl, nginx, mysql, ...)"""
import os
import shutil
import logging
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .errors import CommandError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 1800


@dataclass
class CommandResult:
    """Outcome of a finished command"""
    argv: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Thin wrapper around subprocess.run

    Every external process of the tool goes through one of these so that
    tests can swap in a recording fake.
    """

    def __init__(self, env: Optional[Dict[str, str]] = None, timeout: int = DEFAULT_TIMEOUT):
        self.env = env
        self.timeout = timeout

    def run(
        self,
        argv: Sequence[str],
        *,
        input: Optional[str] = None,
        check: bool = True,
        env: Optional[Dict[str, str]] = None,
        capture: bool = True,
        timeout: Optional[int] = None,
        cwd: Optional[str] = None,
    ) -> CommandResult:
        """Run a command and return its result

        Args:
            argv: Program and arguments (never passed through a shell)
            input: Text fed to stdin
            check: Raise CommandError on a non-zero exit code
            env: Extra environment variables merged over os.environ
            capture: Capture stdout/stderr; when False output streams to the terminal
            timeout: Seconds before the command is killed
            cwd: Working directory
        """
        argv = [str(a) for a in argv]
        merged_env = None
        if env or self.env:
            merged_env = {**os.environ, **(self.env or {}), **(env or {})}

        logger.debug("Executing: %s", " ".join(argv))

        try:
            completed = subprocess.run(
                argv,
                input=input,
                capture_output=capture,
                text=True,
                timeout=timeout or self.timeout,
                env=merged_env,
                cwd=cwd,
            )
        except FileNotFoundError:
            raise CommandError(argv, 127, message=f"Command not found: {argv[0]}")
        except subprocess.TimeoutExpired:
            raise CommandError(argv, -1, message=f"Command '{' '.join(argv)}' timed out")

        result = CommandResult(
            argv=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

        if result.ok:
            if result.stdout:
                logger.debug("Output: %s", result.stdout.strip())
        else:
            logger.debug("✗ %s exited with code %d", argv[0], result.returncode)
            if result.stderr:
                logger.debug("Error: %s", result.stderr.strip())
            if check:
                raise CommandError(argv, result.returncode, result.stderr)

        return result

    def which(self, name: str) -> Optional[str]:
        """Locate an executable on PATH"""
        return shutil.which(name)

    def succeeds(self, argv: Sequence[str], **kwargs) -> bool:
        """Run a command and report whether it exited with 0"""
        return self.run(argv, check=False, **kwargs).ok
