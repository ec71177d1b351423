"""Exceptions raised by pkgcache.

Every exception carries the process exit code the CLI reports for it, so that
scripts can tell failure kinds apart.
"""

from typing import Dict, Optional


class PkgCacheError(Exception):
    """Base exception for pkgcache errors."""

    exit_code = 1


# ==================== Catalog ====================


class CatalogError(PkgCacheError):
    """Raised for malformed catalog input."""

    exit_code = 5


class InvalidName(CatalogError):
    """Raised when a short name has whitespace, a colon or a leading dot."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Invalid short name {name!r}: must not contain whitespace or ':' "
            f"and must not start with '.'"
        )


class DuplicateEntry(CatalogError):
    """Raised when adding a short name that is already in the catalog."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Catalog already has an entry named '{name}'")


class InvalidChecksumFormat(CatalogError):
    """Raised when a checksum spec is neither 'none' nor ALGO:hexdigest."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(
            f"Invalid checksum spec {text!r}: expected 'none' or ALGO:hexdigest"
        )


class InconsistentCatalog(CatalogError):
    """Raised when the catalog file is corrupt (e.g. a name appears twice).

    This is never repaired automatically.
    """

    exit_code = 6


class ImportAborted(CatalogError):
    """Raised when a bulk import fails; the catalog has been restored."""

    exit_code = 7

    def __init__(self, line_number: int, line: str, cause: Exception):
        self.line_number = line_number
        self.line = line
        self.cause = cause
        super().__init__(
            f"Import aborted at line {line_number} ({line!r}): {cause}. "
            f"Catalog restored to its previous state"
        )


# ==================== Repository ====================


class RepositoryError(PkgCacheError):
    """Base exception for repository discovery, creation and locking."""


class RepositoryNotFound(RepositoryError):
    """Raised when a command needs a repository and none was found."""

    exit_code = 3


class AlreadyExists(RepositoryError):
    """Raised by init when a repository already covers the location."""

    exit_code = 8


class InitFailed(RepositoryError):
    """Raised when repository creation fails; partial state was removed."""

    exit_code = 8


class LockTimeout(RepositoryError):
    """Raised when the repository lock cannot be acquired in time."""

    exit_code = 4


# ==================== Download ====================


class DownloadError(PkgCacheError):
    """Base exception for a single download attempt."""


class DownloadFailed(DownloadError):
    """Raised when the transport fails to fetch a URL."""

    def __init__(self, url: str, cause: Exception):
        self.url = url
        self.cause = cause
        super().__init__(f"Download of {url} failed: {cause}")


class ChecksumMismatch(DownloadError):
    """Raised when downloaded content does not match its checksum spec."""

    def __init__(self, path, expected: str, actual: str):
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Checksum mismatch for {path}: expected {expected}, got {actual}"
        )


# ==================== Fetch ====================


class FetchError(PkgCacheError):
    """Base exception for fetch cache operations."""


class UnknownPackage(FetchError):
    """Raised when a short name is not in the catalog."""

    exit_code = 9

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown package '{name}'")


class FetchFailed(FetchError):
    """Raised when fetching a catalogued package fails."""

    exit_code = 10

    def __init__(self, name: str, url: str, cause: Exception):
        self.name = name
        self.url = url
        self.cause = cause
        super().__init__(f"Fetching '{name}' from {url} failed: {cause}")


class BulkFetchPartialFailure(FetchError):
    """Raised when one or more packages of a bulk fetch failed.

    Attributes:
        failures: Mapping from short name to the exception it failed with
    """

    exit_code = 11

    def __init__(self, failures: Dict[str, Exception], fetched: Optional[Dict] = None):
        self.failures = dict(failures)
        self.fetched = dict(fetched or {})
        names = ", ".join(self.failures)
        super().__init__(f"{len(self.failures)} package(s) failed to fetch: {names}")
