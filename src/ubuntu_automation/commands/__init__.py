"""
Commands Package
One command group per product
"""

from . import base
from . import docker_engine
from . import portainer
from . import mtasa
from . import lxd
from . import nginx
from . import apache
from . import webmin
from . import mariadb
from . import mysql
from . import phpmyadmin
from . import proftpd
from . import php

__all__ = [
    'base',
    'docker_engine',
    'portainer',
    'mtasa',
    'lxd',
    'nginx',
    'apache',
    'webmin',
    'mariadb',
    'mysql',
    'phpmyadmin',
    'proftpd',
    'php'
]
