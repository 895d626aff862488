"""
Apache with mpm-itk
Local backend on 127.0.0.1:8080 serving MTA:SA client files behind nginx
"""

from pathlib import Path

from ..core.system import require_commands
from ..core.vhosts import ApacheSites, ApacheVhost, DeployResult
from .base import Provisioner

LISTEN_IP = "127.0.0.1"
LISTEN_PORT = 8080


class ApacheProvisioner(Provisioner):
    name = "apache"

    def install(self):
        """Install apache2 + mpm-itk listening on 127.0.0.1:8080 only"""
        self.preflight()
        apache_dir = self.settings.apache_dir

        self.step("Installing apache2 and libapache2-mpm-itk")
        self.packages.install(["apache2", "libapache2-mpm-itk"])

        self.runner.run(["a2dismod", "mpm_itk"])

        self.step("Writing mpm_itk.conf, ports.conf and 000-default.conf")
        self.templates.write("apache_mpm_itk.conf.j2", apache_dir / "mods-available" / "mpm_itk.conf")
        self.templates.write(
            "apache_ports.conf.j2", apache_dir / "ports.conf",
            listen_ip=LISTEN_IP, listen_port=LISTEN_PORT,
        )
        self.templates.write(
            "apache_default.conf.j2", self.settings.apache_sites_available / "000-default.conf",
            listen_port=LISTEN_PORT, root=self.settings.www_root,
        )

        self.runner.run(["a2enmod", "mpm_itk", "headers"])
        self.services.restart("apache2")
        self.ok(f"Apache listening on {LISTEN_IP}:{LISTEN_PORT}")

    def add_mtasa_vhost(self, vhost: ApacheVhost) -> DeployResult:
        """Serve a document root as forced downloads for MTA:SA clients"""
        self.preflight()
        require_commands(self.runner, "a2ensite", "a2dissite", "apache2ctl")

        if not Path(vhost.document_root).is_dir():
            self.warn(f"Document root {vhost.document_root} does not exist yet")

        vhost.user = vhost.group = self.settings.mtasa_user
        result = ApacheSites(self.host).deploy(vhost)
        self.ok(f"Apache vhost {vhost.domain} enabled for {vhost.document_root}")
        return result
