"""
Ubuntu Automation Package
Installation and configuration of common server software on Debian/Ubuntu hosts
"""

__version__ = "1.0.0"
__author__ = "Ubuntu Automation Tools Team"
__description__ = "CLI for provisioning Docker, Nginx, Apache, MariaDB/MySQL, phpMyAdmin, ProFTPD and friends"

__all__ = [
    '__version__',
    '__author__',
    '__description__'
]
