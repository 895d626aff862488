import io
import tarfile
import zipfile

import httpx
import pytest

from ubuntu_automation.core.downloads import Downloader, extract_archive
from ubuntu_automation.core.errors import DownloadError


def downloader(handler):
    return Downloader(client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_download_writes_file(tmp_path):
    def handler(request):
        return httpx.Response(200, content=b"ServerName ftp\n")

    dest = downloader(handler).download("https://example.com/proftpd.conf", tmp_path / "etc" / "proftpd.conf")

    assert dest.read_bytes() == b"ServerName ftp\n"
    assert not (tmp_path / "etc" / "proftpd.conf.part").exists()


def test_http_error_keeps_existing_file(tmp_path):
    dest = tmp_path / "sql.conf"
    dest.write_text("original\n")

    with pytest.raises(DownloadError, match="HTTP 404"):
        downloader(lambda request: httpx.Response(404)).download("https://example.com/sql.conf", dest)

    assert dest.read_text() == "original\n"
    assert not (tmp_path / "sql.conf.part").exists()


def test_empty_download_fails(tmp_path):
    with pytest.raises(DownloadError, match="empty"):
        downloader(lambda request: httpx.Response(200, content=b"")).download(
            "https://example.com/empty", tmp_path / "empty"
        )
    assert not (tmp_path / "empty").exists()


def test_transport_error(tmp_path):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DownloadError, match="connection refused"):
        downloader(handler).download("https://example.com/x", tmp_path / "x")


def test_fetch_text():
    assert downloader(lambda request: httpx.Response(200, text="#!/bin/sh\n")).fetch_text(
        "https://example.com/setup.sh"
    ) == "#!/bin/sh\n"

    with pytest.raises(DownloadError):
        downloader(lambda request: httpx.Response(500)).fetch_text("https://example.com/setup.sh")


def test_extract_zip(tmp_path):
    archive = tmp_path / "pma.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("phpMyAdmin-5.2.2-all-languages/index.php", "<?php\n")

    out = extract_archive(archive, tmp_path / "out")
    assert (out / "phpMyAdmin-5.2.2-all-languages" / "index.php").read_text() == "<?php\n"


def test_extract_tar_gz(tmp_path):
    archive = tmp_path / "server.tar.gz"
    data = b"mta-server64"
    with tarfile.open(archive, "w:gz") as tf:
        info = tarfile.TarInfo("multitheftauto_linux_x64/mta-server64")
        info.size = len(data)
        tf.addfile(info, io.BytesIO(data))

    out = extract_archive(archive, tmp_path / "out")
    assert (out / "multitheftauto_linux_x64" / "mta-server64").read_bytes() == data


def test_extract_rejects_path_traversal(tmp_path):
    archive = tmp_path / "evil.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("../evil.txt", "x")

    with pytest.raises(DownloadError, match="escapes"):
        extract_archive(archive, tmp_path / "out")
    assert not (tmp_path / "evil.txt").exists()


class BrokenStream(httpx.SyncByteStream):
    def __iter__(self):
        yield b"first chunk"
        raise OSError(28, "No space left on device")


def test_write_error_removes_partial_file(tmp_path):
    with pytest.raises(DownloadError, match="No space left"):
        downloader(lambda request: httpx.Response(200, stream=BrokenStream())).download(
            "https://example.com/big.zip", tmp_path / "big.zip"
        )
    assert not (tmp_path / "big.zip.part").exists()
    assert not (tmp_path / "big.zip").exists()
