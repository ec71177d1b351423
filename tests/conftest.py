"""Shared fixtures for pkgcache tests."""

import hashlib
from pathlib import Path

import pytest
import requests

from pkgcache.config import RepositoryConfig
from pkgcache.repository import Repository, init_repository


class FakeTransport:
    """In-memory transport serving fixed content per URL and counting calls."""

    def __init__(self, content=None):
        self.content = dict(content or {})
        self.calls = []

    def __call__(self, url, destination):
        self.calls.append(url)
        if url not in self.content:
            # Leave a partial file behind, as an interrupted transfer would
            Path(destination).write_bytes(b"partial")
            raise requests.ConnectionError(f"cannot reach {url}")
        Path(destination).write_bytes(self.content[url])


def _md5_spec(data: bytes) -> str:
    return f"MD5:{hashlib.md5(data).hexdigest()}"


@pytest.fixture
def md5_spec():
    """Build an MD5 checksum spec for some content."""
    return _md5_spec


@pytest.fixture
def config():
    """Repository configuration with a short lock wait."""
    return RepositoryConfig(lock_timeout=5)


@pytest.fixture
def transport():
    return FakeTransport(
        {
            "https://example.org/dist/a-1.0.tar.gz": b"package a",
            "https://example.org/dist/b-2.0.tar.gz": b"package b",
            "https://example.org/dist/c-3.0.tar.gz": b"package c",
        }
    )


@pytest.fixture
def repo(tmp_path, config, transport) -> Repository:
    """Freshly initialized repository using the fake transport."""
    return init_repository(tmp_path, config=config, transport=transport)


@pytest.fixture
def make_transport():
    """Factory for fake transports with custom content."""
    return FakeTransport
