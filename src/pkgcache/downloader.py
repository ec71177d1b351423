"""Download of remote artifacts to local files."""

import logging
import shutil
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import unquote, urlsplit

import requests

from pkgcache.checksums import ChecksumSpec, verify_checksum
from pkgcache.config import RepositoryConfig
from pkgcache.errors import ChecksumMismatch, DownloadFailed

logger = logging.getLogger(__name__)

# A transport writes the content of a URL to a destination path
Transport = Callable[[str, Path], None]


class UrlTransport:
    """Default transport: ``requests`` for http(s), plain copy for file:// URLs."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 60,
        chunk_size: int = 64 * 1024,
    ):
        if timeout <= 0:
            raise ValueError("timeout must be > 0")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.chunk_size = chunk_size

    def __call__(self, url: str, destination: Path) -> None:
        parts = urlsplit(url)

        if parts.scheme == "file":
            shutil.copyfile(unquote(parts.path), destination)
            return

        if parts.scheme not in ("http", "https"):
            raise ValueError(f"Unsupported URL scheme: {parts.scheme or url!r}")

        with self.session.get(url, stream=True, timeout=self.timeout) as response:
            response.raise_for_status()
            with open(destination, "wb") as f:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        f.write(chunk)


class Downloader:
    """Fetches URLs through a transport and verifies their checksum.

    Content is written to ``<destination>.part`` and only renamed to
    ``destination`` once it has passed verification, so a failed attempt
    never leaves a file at ``destination``.
    """

    def __init__(
        self,
        config: Optional[RepositoryConfig] = None,
        transport: Optional[Transport] = None,
    ):
        self.config = config or RepositoryConfig()
        self.transport = transport or UrlTransport(
            timeout=self.config.download_timeout,
            chunk_size=self.config.chunk_size,
        )

    def download(self, url: str, destination: Path, checksum: ChecksumSpec) -> Path:
        """Download ``url`` to ``destination`` and verify it.

        Args:
            url: Source location
            destination: Final file path
            checksum: Spec to verify against (``none`` skips verification)

        Returns:
            The destination path

        Raises:
            DownloadFailed: If the transport fails
            ChecksumMismatch: If the content does not match ``checksum``
        """
        destination = Path(destination)
        temp_path = destination.with_name(destination.name + ".part")

        logger.info(f"Downloading {url} -> {destination}")
        try:
            try:
                self.transport(url, temp_path)
            except Exception as e:
                logger.debug(f"Download of {url} failed: {e}")
                raise DownloadFailed(url, e) from e

            try:
                verify_checksum(temp_path, checksum, self.config.chunk_size)
            except ChecksumMismatch as e:
                raise ChecksumMismatch(destination, e.expected, e.actual) from None
            temp_path.replace(destination)
        except BaseException as e:
            logger.debug(f"Discarding {temp_path.name}: {e!r}")
            self._cleanup(temp_path)
            raise

        logger.info(f"Downloaded {destination.name}")
        return destination

    @staticmethod
    def _cleanup(temp_path: Path) -> None:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to clean up partial file {temp_path}: {e}")
