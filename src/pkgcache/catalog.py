"""Catalog of named remote artifacts.

The catalog file holds one entry per line::

    <short name> <url> <checksum spec>

Entries are appended on add and their line is deleted on remove. Raw line
handling stays inside this module; callers only see :class:`CatalogEntry`.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from pkgcache.checksums import ChecksumSpec
from pkgcache.config import RepositoryConfig
from pkgcache.errors import (
    CatalogError,
    DuplicateEntry,
    ImportAborted,
    InconsistentCatalog,
    InvalidName,
)

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s")


def validate_name(name: str) -> str:
    """Check a short name against the naming rule.

    Raises:
        InvalidName: If the name is empty, contains whitespace or ':' or starts
            with '.'
    """
    if not name or _WHITESPACE_RE.search(name) or ":" in name or name.startswith("."):
        raise InvalidName(name)
    return name


@dataclass(frozen=True)
class CatalogEntry:
    """A catalogued artifact: short name, source URL and checksum spec."""

    name: str
    url: str
    checksum: ChecksumSpec

    def to_line(self) -> str:
        return f"{self.name} {self.url} {self.checksum}"

    @classmethod
    def from_line(cls, line: str) -> "CatalogEntry":
        """Decode one catalog line.

        Raises:
            InconsistentCatalog: If the line is not a valid entry
        """
        fields = line.split()
        if len(fields) != 3:
            raise InconsistentCatalog(f"Malformed catalog line: {line!r}")
        try:
            return cls(validate_name(fields[0]), fields[1], ChecksumSpec.parse(fields[2]))
        except CatalogError as e:
            raise InconsistentCatalog(f"Malformed catalog line {line!r}: {e}") from e


class Catalog:
    """Ordered set of catalog entries keyed by short name.

    The catalog is not safe for concurrent writers on its own; callers hold
    the repository lock around every operation.

    Examples:
        >>> catalog = Catalog(root)
        >>> catalog.add("zlib", "https://zlib.net/zlib-1.3.tar.gz", "none")
        >>> catalog.lookup("zlib").url
        'https://zlib.net/zlib-1.3.tar.gz'
    """

    def __init__(self, root: Path, config: Optional[RepositoryConfig] = None):
        """Initialize catalog.

        Args:
            root: Repository root (marker directory)
            config: Repository configuration
        """
        self.root = Path(root)
        self.config = config or RepositoryConfig()
        self.path = self.config.catalog_path(self.root)

    def read_text(self) -> str:
        """Return the raw catalog file content."""
        with open(self.path, "r") as f:
            return f.read()

    def _write_text(self, text: str) -> None:
        # Write to temp file first, then rename over the catalog
        temp_path = self.path.with_name(self.path.name + ".tmp")
        with open(temp_path, "w") as f:
            f.write(text)
        os.replace(temp_path, self.path)

    def _lines(self) -> List[str]:
        return [line for line in self.read_text().splitlines() if line.strip()]

    def entries(self) -> List[CatalogEntry]:
        """Return every entry, in catalog order.

        Raises:
            InconsistentCatalog: If a line is malformed or a name repeats
        """
        entries = [CatalogEntry.from_line(line) for line in self._lines()]
        seen = set()
        for entry in entries:
            if entry.name in seen:
                raise InconsistentCatalog(
                    f"Catalog {self.path} has more than one entry named '{entry.name}'"
                )
            seen.add(entry.name)
        return entries

    def names(self) -> List[str]:
        """Return every short name, in catalog order."""
        return [entry.name for entry in self.entries()]

    def lookup(self, name: str) -> Optional[CatalogEntry]:
        """Find the entry for a short name.

        Args:
            name: Short name

        Returns:
            The entry, or None if the name is not catalogued

        Raises:
            InconsistentCatalog: If more than one line matches the name
        """
        matches = [line for line in self._lines() if line.split()[0] == name]
        if len(matches) > 1:
            raise InconsistentCatalog(
                f"Catalog {self.path} has {len(matches)} entries named '{name}'"
            )
        if not matches:
            return None
        return CatalogEntry.from_line(matches[0])

    def add(self, name: str, url: str, checksum: str) -> CatalogEntry:
        """Append a new entry.

        Args:
            name: Short name
            url: Source location
            checksum: ``none`` or ``ALGO:hexdigest``

        Returns:
            The added entry

        Raises:
            InvalidName: If the name breaks the naming rule
            DuplicateEntry: If the name is already catalogued
            InvalidChecksumFormat: If the checksum spec is not recognized
        """
        validate_name(name)
        if not url or _WHITESPACE_RE.search(url):
            raise CatalogError(f"Invalid URL {url!r} for '{name}'")
        spec = ChecksumSpec.parse(checksum)

        if self.lookup(name) is not None:
            raise DuplicateEntry(name)

        entry = CatalogEntry(name, url, spec)
        current = self.read_text()
        with open(self.path, "a") as f:
            # Hand-edited catalogs may lack a final newline
            if current and not current.endswith("\n"):
                f.write("\n")
            f.write(entry.to_line() + "\n")

        logger.info(f"Added '{name}' to catalog")
        return entry

    def remove(self, name: str) -> bool:
        """Delete the entry for a short name.

        Removing a name that is not catalogued is a no-op.

        Returns:
            True if an entry was removed

        Raises:
            InvalidName: If the name breaks the naming rule
        """
        validate_name(name)

        lines = self.read_text().splitlines()
        kept = [line for line in lines if not line.strip() or line.split()[0] != name]
        if len(kept) == len(lines):
            logger.debug(f"'{name}' not in catalog, nothing to remove")
            return False

        self._write_text("".join(line + "\n" for line in kept))
        logger.info(f"Removed '{name}' from catalog")
        return True

    @staticmethod
    def parse_source(text: str) -> Iterable[Tuple[int, str, List[str]]]:
        """Yield ``(line number, line, fields)`` for each entry line of an import source.

        Blank lines and lines starting with ``#`` are skipped.
        """
        for number, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            yield number, line, line.split()

    def import_bulk(self, text: str) -> List[str]:
        """Add every entry of an import source, all or nothing.

        Args:
            text: Source text, one ``name url checksum`` entry per line

        Returns:
            Imported short names, in source order

        Raises:
            ImportAborted: On the first failing line. The catalog has been
                restored to its state before the import.
        """
        snapshot = self.read_text()
        imported = []

        for number, line, fields in self.parse_source(text):
            try:
                if len(fields) != 3:
                    raise CatalogError(
                        f"expected 3 fields (name url checksum), got {len(fields)}"
                    )
                self.add(*fields)
            except CatalogError as e:
                logger.debug(f"Import failed at line {number}: {e}")
                self._write_text(snapshot)
                raise ImportAborted(number, line, e) from e
            except BaseException:
                self._write_text(snapshot)
                raise
            imported.append(fields[0])

        logger.info(f"Imported {len(imported)} catalog entries")
        return imported

    def import_file(self, source: Path) -> List[str]:
        """Read an import source file and run :meth:`import_bulk` on it."""
        with open(source, "r") as f:
            return self.import_bulk(f.read())
