"""
Input validation for command-line values
Every check raises ValidationError before any side effect happens
"""

import logging
import re
from typing import Optional

from .errors import ValidationError

logger = logging.getLogger(__name__)

IPV4_RE = re.compile(r'^([0-9]{1,3}\.){3}[0-9]{1,3}$')
DOMAIN_RE = re.compile(
    r'^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$'
)
PHP_VERSION_RE = re.compile(r'^[0-9]+\.[0-9]+$')
BUFFER_POOL_RE = re.compile(r'^[0-9]+[GgMm]$')
DIGITS_RE = re.compile(r"^[0-9]+$")

# Game, query and server-list ports of MTA:SA; all UDP
MTASA_UDP_PORTS = ("22003", "22005", "22126")

PERMISSION_LEVELS = ("administrator", "default")


def validate_ipv4(ip: str) -> str:
    """Validate a dotted-quad IPv4 address (0.0.0.0 included)"""
    ip = (ip or "").strip()
    if not IPV4_RE.match(ip):
        raise ValidationError(f"Invalid IP address format: {ip!r}. Use X.X.X.X")

    for octet in ip.split("."):
        if int(octet) > 255:
            raise ValidationError(f"Invalid IP address: {ip}. Octet '{octet}' outside 0-255")

    return ip


def validate_port(port, name: str = "port") -> int:
    """Validate a TCP/UDP port number"""
    text = str(port).strip() if port is not None else ""
    if not DIGITS_RE.match(text):
        raise ValidationError(f"Invalid {name}: {port!r}. Use a number between 1 and 65535")

    value = int(text)
    if value < 1 or value > 65535:
        raise ValidationError(f"Invalid {name}: {value}. Use a number between 1 and 65535")

    return value


def validate_domain(domain: str) -> str:
    """Validate a domain or subdomain name"""
    domain = (domain or "").strip()
    if not DOMAIN_RE.match(domain):
        raise ValidationError(f"Invalid domain format: {domain!r}")
    return domain


def validate_proxy_target(target: str, missing_port: str = "reject") -> str:
    """Validate a proxy target (HOST:PORT or unix:/path)

    missing_port decides what happens to a bare host without ':':
    "reject" raises, "warn" logs and keeps it, "accept" keeps it silently.
    """
    target = (target or "").strip()
    if not target:
        raise ValidationError("Proxy target (--vhost-proxy-target) must not be empty")

    if ":" not in target:
        if missing_port == "reject":
            raise ValidationError(
                f"Invalid proxy target {target!r}. Use IP:PORT or HOST:PORT"
            )
        if missing_port == "warn":
            logger.warning("Proxy target %r has no port, the backend default port will be used", target)

    return target


def is_mtasa_udp_target(target: str) -> bool:
    """True when the target ends in one of the MTA:SA UDP ports"""
    return any(target.endswith(f":{port}") for port in MTASA_UDP_PORTS)


def parse_yes_no(value: str, option: str = "--vhost-proxy-ssl") -> bool:
    """Parse a yes/no flag value (case insensitive)"""
    normalized = (value or "").strip().lower()
    if normalized == "yes":
        return True
    if normalized == "no":
        return False
    raise ValidationError(f"Invalid value for {option}: {value!r}. Use 'yes' or 'no'")


def validate_php_version(version: str) -> str:
    """Validate a PHP version in X.Y form"""
    version = (version or "").strip()
    if not PHP_VERSION_RE.match(version):
        raise ValidationError(f"Invalid PHP version format: {version!r}. Use X.Y (e.g. 8.2)")
    return version


def validate_buffer_pool_size(size: str) -> str:
    """Validate an InnoDB buffer pool size such as 4G or 512M"""
    size = (size or "").strip()
    if not BUFFER_POOL_RE.match(size):
        raise ValidationError(f"Invalid format for --innodb_buffer_pool_size: {size!r}. Use e.g. 4G or 512M")
    return size


def validate_numeric_id(value, name: str) -> int:
    """Validate a numeric UID/GID"""
    text = str(value).strip() if value is not None else ""
    if not DIGITS_RE.match(text):
        raise ValidationError(f"{name} must be numeric, got {value!r}")
    return int(text)


def validate_permission_level(level: Optional[str]) -> str:
    """Normalize and validate a database permission tier"""
    if not level:
        raise ValidationError("Parameter --permission-level is required")

    normalized = level.strip().lower()
    if normalized not in PERMISSION_LEVELS:
        raise ValidationError("Invalid value for --permission-level. Use 'administrator' or 'default'")
    return normalized


def require(value: Optional[str], option: str) -> str:
    """Ensure a mandatory option was provided"""
    if value is None or str(value).strip() == "":
        raise ValidationError(f"Parameter {option} is required")
    return str(value).strip()
