"""pkgcache: Local download cache for catalogued build-time artifacts."""

__version__ = "0.1.0"

from pkgcache.catalog import Catalog, CatalogEntry
from pkgcache.checksums import ChecksumSpec
from pkgcache.config import RepositoryConfig
from pkgcache.fetch import FetchCache
from pkgcache.repository import Repository, RepositoryLock, find_root, init_repository

__all__ = [
    "Catalog",
    "CatalogEntry",
    "ChecksumSpec",
    "FetchCache",
    "Repository",
    "RepositoryConfig",
    "RepositoryLock",
    "find_root",
    "init_repository",
    "__version__",
]
