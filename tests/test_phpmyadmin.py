import io
import re
import stat
import zipfile

import pytest

from ubuntu_automation.core.errors import PreconditionError
from ubuntu_automation.provisioners.phpmyadmin import PhpMyAdminProvisioner, missing_php_extensions

PHP_MODULES = """\
[PHP Modules]
gd
json
mbstring
mysqli
openssl
session
xml
zip

[Zend Modules]
"""


class ZipDownloader:
    def __init__(self, top):
        self.top = top
        self.urls = []

    def download(self, url, dest):
        self.urls.append(url)
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr(f"{self.top}/index.php", "<?php\n")
            zf.writestr(f"{self.top}/libraries/vendor_config.php", "<?php\n")
        dest.write_bytes(buffer.getvalue())
        return dest


@pytest.fixture
def runner(runner):
    runner.respond(["php", "-m"], stdout=PHP_MODULES)
    return runner


def make(host, downloader=None):
    return PhpMyAdminProvisioner(host, downloader=downloader, check_root=False)


def test_missing_php_extensions():
    assert missing_php_extensions(PHP_MODULES) == []
    assert missing_php_extensions("json\nPDO_MYSQL\n") == [
        "mbstring", "session", "openssl", "xml", "zip", "gd",
    ]
    assert missing_php_extensions("[PHP Modules]\n")[-1] == "mysqli or pdo_mysql"


def test_missing_extensions_abort(host, runner):
    runner.respond(["php", "-m"], stdout="json\n")
    with pytest.raises(PreconditionError, match="mbstring"):
        make(host).install()


def test_fresh_install(host, settings, runner):
    downloader = ZipDownloader("phpMyAdmin-5.2.2-all-languages")
    pma_dir = make(host, downloader).install()

    assert downloader.urls == [
        "https://files.phpmyadmin.net/phpMyAdmin/5.2.2/phpMyAdmin-5.2.2-all-languages.zip"
    ]
    assert (pma_dir / "index.php").is_file()

    config = (pma_dir / "config.inc.php").read_text()
    secret = re.search(r"blowfish_secret'\] = '([0-9a-f]+)'", config).group(1)
    assert len(secret) == 32
    assert str(pma_dir / "tmp") in config

    assert stat.S_IMODE((pma_dir / "config.inc.php").stat().st_mode) == 0o640
    assert stat.S_IMODE((pma_dir / "tmp").stat().st_mode) == 0o770
    assert stat.S_IMODE((pma_dir / "index.php").stat().st_mode) == 0o644
    assert runner.called("chown", "-R", "www-data:www-data")


def test_archive_without_expected_directory(host):
    with pytest.raises(PreconditionError, match="not found in the downloaded archive"):
        make(host, ZipDownloader("phpMyAdmin-latest")).install()


def test_existing_foreign_directory_aborts(host, settings):
    settings.phpmyadmin_dir.mkdir(parents=True)
    (settings.phpmyadmin_dir / "README").write_text("not phpmyadmin")

    with pytest.raises(PreconditionError, match="does not look like"):
        make(host, ZipDownloader("unused")).install()


def test_existing_install_keeps_config(host, settings):
    pma_dir = settings.phpmyadmin_dir
    pma_dir.mkdir(parents=True)
    (pma_dir / "index.php").write_text("<?php\n")
    (pma_dir / "config.inc.php").write_text("<?php $cfg['blowfish_secret'] = 'kept';\n")
    downloader = ZipDownloader("unused")

    make(host, downloader).install()

    assert downloader.urls == []
    assert "kept" in (pma_dir / "config.inc.php").read_text()
    assert (pma_dir / "tmp").is_dir()
