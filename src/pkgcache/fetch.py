"""Fetch cache: resolves catalog entries to verified local files."""

import logging
import posixpath
from pathlib import Path
from typing import Dict, Iterable, Optional
from urllib.parse import unquote, urlsplit

from pkgcache.catalog import Catalog, CatalogEntry
from pkgcache.downloader import Downloader
from pkgcache.errors import (
    BulkFetchPartialFailure,
    DownloadError,
    FetchFailed,
    PkgCacheError,
    UnknownPackage,
)

logger = logging.getLogger(__name__)


def url_basename(url: str) -> str:
    """Return the last path component of a URL.

    Examples:
        >>> url_basename("https://zlib.net/zlib-1.3.tar.gz")
        'zlib-1.3.tar.gz'
        >>> url_basename("https://example.org/releases/")
        'releases'
    """
    parts = urlsplit(url)
    return posixpath.basename(unquote(parts.path).rstrip("/")) or parts.netloc


class FetchCache:
    """Serves a stable local path for each catalogued artifact.

    Artifacts live flat in the repository root as ``<name>:<url basename>``.
    A present artifact file is trusted as-is: it is never re-downloaded or
    re-verified, even if its catalog entry changed since.
    """

    def __init__(self, root: Path, catalog: Catalog, downloader: Optional[Downloader] = None):
        self.root = Path(root)
        self.catalog = catalog
        self.downloader = downloader or Downloader(catalog.config)

    def artifact_path(self, entry: CatalogEntry) -> Path:
        """Deterministic local path of an entry's artifact."""
        return self.root / f"{entry.name}:{url_basename(entry.url)}"

    def _entry(self, name: str) -> CatalogEntry:
        entry = self.catalog.lookup(name)
        if entry is None:
            raise UnknownPackage(name)
        return entry

    def is_cached(self, name: str) -> bool:
        """Check whether the artifact of a catalogued name is on disk."""
        return self.artifact_path(self._entry(name)).exists()

    def get(self, name: str) -> Path:
        """Return the local path of an artifact, downloading it if absent.

        Args:
            name: Short name

        Returns:
            Absolute path of the cached artifact

        Raises:
            UnknownPackage: If the name is not catalogued
            FetchFailed: If download or verification fails; no artifact file
                is left behind
        """
        entry = self._entry(name)
        path = self.artifact_path(entry)

        if path.exists():
            logger.debug(f"Cache hit for '{name}': {path}")
            return path.resolve()

        try:
            self.downloader.download(entry.url, path, entry.checksum)
        except DownloadError as e:
            raise FetchFailed(name, entry.url, e) from e

        return path.resolve()

    def load_all(self, names: Optional[Iterable[str]] = None) -> Dict[str, Path]:
        """Fetch many artifacts, continuing past individual failures.

        Args:
            names: Short names to fetch, in order. Defaults to every catalog
                entry at call time.

        Returns:
            Mapping from short name to local path, when every fetch succeeded

        Raises:
            BulkFetchPartialFailure: If any fetch failed. ``failures`` maps
                each failed name to its error and ``fetched`` holds the paths
                that did succeed.
        """
        targets = list(names) if names is not None else self.catalog.names()

        fetched: Dict[str, Path] = {}
        failures: Dict[str, Exception] = {}
        for name in targets:
            try:
                fetched[name] = self.get(name)
            except PkgCacheError as e:
                logger.debug(f"Failed to fetch '{name}': {e}")
                failures[name] = e

        if failures:
            raise BulkFetchPartialFailure(failures, fetched)

        logger.info(f"Fetched {len(fetched)} package(s)")
        return fetched
