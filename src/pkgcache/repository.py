"""Repository discovery, creation and locking.

A repository is a marker directory (``.pkgcache`` by default) holding the
catalog file, the lock file and the cached artifacts. Commands find it by
walking up from their start directory, the same way git finds ``.git``.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional, Union

from filelock import FileLock, Timeout

from pkgcache.catalog import Catalog
from pkgcache.config import RepositoryConfig
from pkgcache.downloader import Downloader, Transport
from pkgcache.errors import AlreadyExists, InitFailed, LockTimeout, RepositoryNotFound
from pkgcache.fetch import FetchCache

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def find_root(start: PathLike, config: Optional[RepositoryConfig] = None) -> Optional[Path]:
    """Find the repository root covering a directory.

    Walks from ``start`` (absolute, symlinks resolved) through its parents and
    stops at the first directory holding the marker directory with a readable
    catalog file inside.

    Args:
        start: Directory to start from
        config: Repository configuration

    Returns:
        Path to the marker directory, or None if no ancestor has one
    """
    config = config or RepositoryConfig()
    current = Path(start).resolve()

    while True:
        candidate = current / config.marker_dir
        catalog_path = config.catalog_path(candidate)
        if (
            candidate.is_dir()
            and catalog_path.is_file()
            and os.access(catalog_path, os.R_OK)
        ):
            return candidate

        parent = current.parent
        if parent == current:
            # Filesystem root reached
            return None
        current = parent


class RepositoryLock:
    """Exclusive advisory lock over a whole repository.

    Use as a context manager; the lock is released on every exit path.

    Examples:
        >>> with RepositoryLock(root):
        ...     catalog.add("zlib", url, "none")
    """

    def __init__(self, root: PathLike, config: Optional[RepositoryConfig] = None):
        self.config = config or RepositoryConfig()
        self.path = self.config.lock_path(Path(root))
        self._lock = FileLock(str(self.path), timeout=self.config.lock_timeout)

    @property
    def is_locked(self) -> bool:
        return self._lock.is_locked

    def acquire(self) -> None:
        """Acquire the lock, waiting at most ``config.lock_timeout`` seconds.

        Raises:
            LockTimeout: If the lock is still held elsewhere after the wait
        """
        logger.debug(f"Acquiring repository lock {self.path}")
        try:
            self._lock.acquire()
        except Timeout as e:
            raise LockTimeout(
                f"Timeout acquiring repository lock {self.path} after "
                f"{self.config.lock_timeout} seconds"
            ) from e

    def release(self) -> None:
        self._lock.release()
        logger.debug(f"Released repository lock {self.path}")

    def __enter__(self) -> "RepositoryLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()


class Repository:
    """An opened repository: catalog, fetch cache and lock for one root."""

    def __init__(
        self,
        root: PathLike,
        config: Optional[RepositoryConfig] = None,
        transport: Optional[Transport] = None,
    ):
        """Initialize repository handle.

        Args:
            root: Repository root (marker directory)
            config: Repository configuration
            transport: Download transport (defaults to ``UrlTransport``)
        """
        self.root = Path(root)
        self.config = config or RepositoryConfig()
        self.catalog = Catalog(self.root, self.config)
        self.fetch_cache = FetchCache(
            self.root,
            self.catalog,
            Downloader(self.config, transport),
        )

    @classmethod
    def open(
        cls,
        start: PathLike,
        config: Optional[RepositoryConfig] = None,
        transport: Optional[Transport] = None,
    ) -> "Repository":
        """Open the repository covering ``start``.

        Raises:
            RepositoryNotFound: If no repository covers ``start``
        """
        root = find_root(start, config)
        if root is None:
            raise RepositoryNotFound(f"No repository found from {Path(start).resolve()}")
        return cls(root, config, transport)

    def locked(self) -> RepositoryLock:
        """Return a fresh lock guard for this repository."""
        return RepositoryLock(self.root, self.config)


def init_repository(
    start: PathLike,
    import_source: Optional[PathLike] = None,
    config: Optional[RepositoryConfig] = None,
    transport: Optional[Transport] = None,
) -> Repository:
    """Create a repository in ``start``.

    Args:
        start: Directory that receives the marker directory
        import_source: Optional catalog file to bulk-import right away
        config: Repository configuration
        transport: Download transport for the returned handle

    Returns:
        The new repository

    Raises:
        AlreadyExists: If ``start`` or one of its ancestors is already covered,
            or the marker directory appeared concurrently
        InitFailed: If the marker directory or its files cannot be created
        ImportAborted: If the import fails. The repository is kept with an
            empty catalog.
    """
    config = config or RepositoryConfig()
    start = Path(start).resolve()

    existing = find_root(start, config)
    if existing is not None:
        raise AlreadyExists(f"Repository already exists at {existing}")

    marker = start / config.marker_dir
    try:
        marker.mkdir()
    except FileExistsError as e:
        # Another init won the race, or a marker directory was left behind
        raise AlreadyExists(f"Repository directory already exists at {marker}") from e
    except OSError as e:
        raise InitFailed(f"Cannot create repository at {marker}: {e}") from e

    try:
        config.catalog_path(marker).touch(exist_ok=False)
        config.lock_path(marker).touch()
    except OSError as e:
        logger.debug(f"Cannot create repository at {marker}: {e}")
        try:
            shutil.rmtree(marker)
        except OSError as cleanup_error:
            logger.warning(f"Failed to remove partial repository {marker}: {cleanup_error}")
        raise InitFailed(f"Cannot create repository at {marker}: {e}") from e

    logger.info(f"Initialized repository at {marker}")
    repo = Repository(marker, config, transport)

    if import_source is not None:
        with repo.locked():
            repo.catalog.import_file(Path(import_source))

    return repo
