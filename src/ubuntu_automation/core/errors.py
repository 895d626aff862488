"""
Error types raised by provisioning operations
Commands turn any ProvisionError into exit code 1
"""

from typing import List, Optional


class ProvisionError(Exception):
    """Base class for every failure during a provisioning run"""

    tip: Optional[str] = None

    def __init__(self, message: str, tip: Optional[str] = None):
        super().__init__(message)
        if tip:
            self.tip = tip


class ValidationError(ProvisionError):
    """Invalid or missing command-line input"""


class PreconditionError(ProvisionError):
    """Host does not satisfy a requirement (root, binaries, daemons)"""


class CommandError(ProvisionError):
    """An external command exited with a non-zero status"""

    def __init__(self, argv: List[str], returncode: int, stderr: str = "", message: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr or ""
        text = message or f"Command '{' '.join(self.argv)}' failed with exit code {returncode}"
        if self.stderr.strip():
            text = f"{text}: {self.stderr.strip()}"
        super().__init__(text)


class DownloadError(ProvisionError):
    """A remote file could not be fetched"""


class RollbackError(ProvisionError):
    """Rollback after a failure did not complete"""


class InterruptedOperation(ProvisionError):
    """Run interrupted by SIGINT/SIGTERM after cleanup"""
