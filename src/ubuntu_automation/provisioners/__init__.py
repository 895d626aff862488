"""
Provisioners Package
One provisioner per product, each driving the host through the core services
"""

from .base import Provisioner
from .dependencies import BaseProvisioner
from .docker_engine import DockerProvisioner
from .portainer import PortainerProvisioner
from .mtasa import MtasaProvisioner
from .lxd import LxdProvisioner
from .nginx import NginxProvisioner
from .apache import ApacheProvisioner
from .webmin import WebminProvisioner
from .mariadb import MariadbProvisioner
from .mysql import MysqlProvisioner
from .phpmyadmin import PhpMyAdminProvisioner
from .proftpd import ProftpdProvisioner
from .php import PhpProvisioner

__all__ = [
    'Provisioner',
    'BaseProvisioner',
    'DockerProvisioner',
    'PortainerProvisioner',
    'MtasaProvisioner',
    'LxdProvisioner',
    'NginxProvisioner',
    'ApacheProvisioner',
    'WebminProvisioner',
    'MariadbProvisioner',
    'MysqlProvisioner',
    'PhpMyAdminProvisioner',
    'ProftpdProvisioner',
    'PhpProvisioner'
]
