"""Repository configuration management."""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RepositoryConfig:
    """Names and limits shared by every repository component.

    Attributes:
        marker_dir: Hidden directory that marks a repository root. It holds the
            catalog, the lock file and every cached artifact.
        catalog_file: Catalog file name inside the marker directory
        lock_file: Lock file name inside the marker directory
        lock_timeout: Seconds to wait for the repository lock (10 minutes)
        download_timeout: Seconds the transport waits on the network
        chunk_size: Read size in bytes for downloads and digests
    """

    marker_dir: str = ".pkgcache"
    catalog_file: str = "catalog"
    lock_file: str = "lock"
    lock_timeout: float = 600
    download_timeout: float = 60
    chunk_size: int = 64 * 1024

    def catalog_path(self, root: Path) -> Path:
        """Catalog file location for a repository root (marker directory)."""
        return Path(root) / self.catalog_file

    def lock_path(self, root: Path) -> Path:
        """Lock file location for a repository root (marker directory)."""
        return Path(root) / self.lock_file

    @classmethod
    def from_env(cls) -> "RepositoryConfig":
        """Create configuration from environment variables.

        Environment variables:
            PKGCACHE_MARKER_DIR: Marker directory name
            PKGCACHE_LOCK_TIMEOUT: Lock wait in seconds
            PKGCACHE_DOWNLOAD_TIMEOUT: Transport timeout in seconds

        Returns:
            RepositoryConfig instance
        """
        overrides = {}

        if os.getenv("PKGCACHE_MARKER_DIR"):
            overrides["marker_dir"] = os.getenv("PKGCACHE_MARKER_DIR")

        if os.getenv("PKGCACHE_LOCK_TIMEOUT"):
            overrides["lock_timeout"] = float(os.getenv("PKGCACHE_LOCK_TIMEOUT"))

        if os.getenv("PKGCACHE_DOWNLOAD_TIMEOUT"):
            overrides["download_timeout"] = float(
                os.getenv("PKGCACHE_DOWNLOAD_TIMEOUT")
            )

        return cls(**overrides)
