"""Checksum specs and file digest verification."""

import hashlib
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pkgcache.errors import ChecksumMismatch, InvalidChecksumFormat

NONE_SPEC = "none"

# Recognized algorithm tags mapped to (hash constructor, hex digest length)
ALGORITHMS = {
    "MD5": (hashlib.md5, 32),
}

_SPEC_RE = re.compile(r"^(?P<algorithm>[A-Za-z0-9]+):(?P<digest>[0-9A-Fa-f]+)$")


@dataclass(frozen=True)
class ChecksumSpec:
    """Declared integrity requirement of an artifact.

    ``algorithm`` and ``digest`` are both None for the ``none`` spec. The digest
    is kept in canonical (lower-case hex) form.
    """

    algorithm: Optional[str] = None
    digest: Optional[str] = None

    @property
    def is_none(self) -> bool:
        return self.algorithm is None

    @classmethod
    def parse(cls, text: str) -> "ChecksumSpec":
        """Parse ``none`` or ``ALGO:hexdigest``.

        Raises:
            InvalidChecksumFormat: If the text is not a recognized spec
        """
        if text == NONE_SPEC:
            return cls()

        match = _SPEC_RE.match(text or "")
        if match is None:
            raise InvalidChecksumFormat(text)

        algorithm = match.group("algorithm")
        digest = match.group("digest")
        if algorithm not in ALGORITHMS:
            raise InvalidChecksumFormat(text)
        if len(digest) != ALGORITHMS[algorithm][1]:
            raise InvalidChecksumFormat(text)

        return cls(algorithm, digest.lower())

    def __str__(self) -> str:
        if self.is_none:
            return NONE_SPEC
        return f"{self.algorithm}:{self.digest}"


def compute_checksum(file_path: Path, algorithm: str = "MD5", chunk_size: int = 8192) -> str:
    """Compute checksum for a file.

    Args:
        file_path: Path to file
        algorithm: Algorithm tag ('MD5')
        chunk_size: Bytes read per iteration

    Returns:
        Hex digest of checksum

    Raises:
        ValueError: If algorithm not supported
    """
    if algorithm not in ALGORITHMS:
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    hasher = ALGORITHMS[algorithm][0]()

    # Read file in chunks to handle large files
    with open(file_path, "rb") as f:
        while chunk := f.read(chunk_size):
            hasher.update(chunk)

    return hasher.hexdigest()


def verify_checksum(file_path: Path, spec: ChecksumSpec, chunk_size: int = 8192) -> None:
    """Verify a file against a checksum spec.

    A ``none`` spec always passes.

    Raises:
        ChecksumMismatch: If the digest of the file differs from the spec
    """
    if spec.is_none:
        return

    actual = compute_checksum(file_path, spec.algorithm, chunk_size)
    if actual != spec.digest:
        raise ChecksumMismatch(
            file_path, str(spec), f"{spec.algorithm}:{actual}"
        )
