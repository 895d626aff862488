"""
Core Package
Configuration, command execution, host services and the shared vhost/database models
"""

from .config import Settings, load_settings
from .errors import (
    ProvisionError,
    ValidationError,
    PreconditionError,
    CommandError,
    DownloadError,
    RollbackError,
    InterruptedOperation
)
from .runner import CommandRunner, CommandResult
from .system import Host, PackageManager, ServiceManager, require_root, require_commands
from .templates import TemplateRenderer

__all__ = [
    # Config
    'Settings',
    'load_settings',

    # Errors
    'ProvisionError',
    'ValidationError',
    'PreconditionError',
    'CommandError',
    'DownloadError',
    'RollbackError',
    'InterruptedOperation',

    # Host
    'CommandRunner',
    'CommandResult',
    'Host',
    'PackageManager',
    'ServiceManager',
    'require_root',
    'require_commands',
    'TemplateRenderer'
]
