"""
Remote file retrieval and archive extraction
"""

import shutil
import logging
import tarfile
import zipfile
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import httpx

from .. import __version__
from .errors import DownloadError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0
USER_AGENT = f"ubuntu-automation/{__version__}"


class Downloader:
    """Streams files over HTTP(S) with httpx"""

    def __init__(self, client: Optional[httpx.Client] = None, timeout: float = DEFAULT_TIMEOUT):
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    def download(self, url: str, dest: Path) -> Path:
        """Save url to dest, replacing any existing file"""
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        partial = dest.with_name(dest.name + ".part")
        logger.info("Downloading %s", url)

        try:
            with self.client.stream("GET", url) as response:
                if response.status_code >= 400:
                    raise DownloadError(f"Download of {url} failed with HTTP {response.status_code}")
                with partial.open("wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
        except httpx.HTTPError as e:
            partial.unlink(missing_ok=True)
            raise DownloadError(f"Download of {url} failed: {e}")
        except DownloadError:
            partial.unlink(missing_ok=True)
            raise
        except OSError as e:
            partial.unlink(missing_ok=True)
            raise DownloadError(f"Cannot write {dest}: {e}")

        if partial.stat().st_size == 0:
            partial.unlink()
            raise DownloadError(f"Downloaded file from {url} is empty")

        partial.replace(dest)
        logger.debug("Saved %s (%d bytes)", dest, dest.stat().st_size)
        return dest

    def fetch_text(self, url: str) -> str:
        """Body of url as text"""
        try:
            response = self.client.get(url)
        except httpx.HTTPError as e:
            raise DownloadError(f"Request to {url} failed: {e}")
        if response.status_code >= 400:
            raise DownloadError(f"Request to {url} failed with HTTP {response.status_code}")
        return response.text


def _check_member(dest: Path, name: str):
    target = (dest / name).resolve()
    if not target.is_relative_to(dest.resolve()):
        raise DownloadError(f"Archive member escapes extraction directory: {name}")


def extract_archive(archive: Path, dest: Path) -> Path:
    """Extract a .tar.gz/.tgz/.tar or .zip archive into dest"""
    archive = Path(archive)
    dest = Path(dest)
    dest.mkdir(parents=True, exist_ok=True)
    logger.debug("Extracting %s to %s", archive, dest)

    if zipfile.is_zipfile(archive):
        with zipfile.ZipFile(archive) as zf:
            for name in zf.namelist():
                _check_member(dest, name)
            zf.extractall(dest)
        return dest

    try:
        with tarfile.open(archive) as tf:
            for member in tf.getmembers():
                _check_member(dest, member.name)
            if hasattr(tarfile, "data_filter"):
                tf.extractall(dest, filter="data")
            else:
                tf.extractall(dest)
    except tarfile.TarError as e:
        raise DownloadError(f"Cannot extract {archive}: {e}")
    return dest


@contextmanager
def temporary_directory(prefix: str = "ubuntu-automation-") -> Iterator[Path]:
    """Scratch directory removed on exit"""
    path = Path(tempfile.mkdtemp(prefix=prefix))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
