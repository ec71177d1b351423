"""Tests for the pkgcache CLI.

These tests verify:
- Every command of the CLI against a temporary repository
- Distinct exit codes per failure kind
- Data output on stdout
"""

import pytest
from click.testing import CliRunner

from pkgcache.cli.main import cli
from pkgcache.config import RepositoryConfig
from pkgcache.repository import Repository, find_root

A_URL = "https://example.org/dist/a-1.0.tar.gz"
B_URL = "https://example.org/dist/b-2.0.tar.gz"


@pytest.fixture
def invoke(tmp_path, config, transport):
    """Run the CLI from tmp_path with the fake transport."""
    runner = CliRunner()

    def run(*args):
        return runner.invoke(
            cli,
            ["-C", str(tmp_path), *args],
            obj={"config": config, "transport": transport},
        )

    return run


@pytest.fixture
def initialized(invoke):
    result = invoke("init")
    assert result.exit_code == 0
    return invoke


class TestInitCommand:
    """Test init and locate-root."""

    def test_init(self, invoke, tmp_path, config):
        result = invoke("init")

        assert result.exit_code == 0
        assert "Initialized repository" in result.output
        assert find_root(tmp_path, config) is not None

    def test_init_twice(self, initialized):
        result = initialized("init")

        assert result.exit_code == 8
        assert "already exists" in result.output

    def test_init_with_import(self, invoke, tmp_path):
        source = tmp_path / "deps.catalog"
        source.write_text(f"a {A_URL} none\nb {B_URL} none\n")

        result = invoke("init", str(source))

        assert result.exit_code == 0
        assert "Imported 2 entries" in result.output

    def test_init_with_bad_import(self, invoke, tmp_path, config):
        source = tmp_path / "deps.catalog"
        source.write_text("a https://example.org/a.tar\n")

        result = invoke("init", str(source))

        assert result.exit_code == 7
        assert find_root(tmp_path, config) is not None

    def test_locate_root(self, initialized, tmp_path):
        result = initialized("locate-root")

        assert result.exit_code == 0
        assert ".pkgcache" in result.output

    def test_locate_root_without_repository(self, invoke):
        result = invoke("locate-root")

        assert result.exit_code == 3
        assert "No repository found" in result.output


class TestCatalogCommands:
    """Test catalog commands."""

    def test_add_get_list(self, initialized):
        assert initialized("catalog-add", "a", A_URL, "none").exit_code == 0

        result = initialized("catalog-get", "a")
        assert result.exit_code == 0
        assert f"a {A_URL} none" in result.output

        result = initialized("catalog-list")
        assert result.exit_code == 0
        assert f"a {A_URL} none" in result.output

    def test_add_duplicate(self, initialized):
        initialized("catalog-add", "a", A_URL, "none")

        result = initialized("catalog-add", "a", B_URL, "none")

        assert result.exit_code == 5
        assert "already has an entry" in result.output

    def test_add_invalid_name(self, initialized):
        result = initialized("catalog-add", "a:b", A_URL, "none")

        assert result.exit_code == 5

    def test_add_invalid_checksum(self, initialized):
        result = initialized("catalog-add", "a", A_URL, "SHA1:abc")

        assert result.exit_code == 5

    def test_get_missing(self, initialized):
        result = initialized("catalog-get", "nope")

        assert result.exit_code == 9

    def test_remove(self, initialized):
        initialized("catalog-add", "a", A_URL, "none")

        result = initialized("catalog-remove", "a")

        assert result.exit_code == 0
        assert initialized("catalog-get", "a").exit_code == 9

    def test_remove_missing_is_success(self, initialized):
        result = initialized("catalog-remove", "nope")

        assert result.exit_code == 0
        assert "was not in the catalog" in result.output

    def test_import(self, initialized, tmp_path):
        source = tmp_path / "deps.catalog"
        source.write_text(f"# deps\na {A_URL} none\nb {B_URL} none\n")

        result = initialized("catalog-import", str(source))

        assert result.exit_code == 0
        assert "a\nb\n" in result.output

    def test_import_aborted(self, initialized, tmp_path):
        source = tmp_path / "deps.catalog"
        source.write_text(f"a {A_URL} none\n.b {B_URL} none\n")

        result = initialized("catalog-import", str(source))

        assert result.exit_code == 7
        assert "line 2" in result.output
        assert initialized("catalog-get", "a").exit_code == 9

    def test_command_without_repository(self, invoke):
        result = invoke("catalog-list")

        assert result.exit_code == 3

    def test_unknown_command(self, invoke):
        result = invoke("no-such-command")

        assert result.exit_code == 2


class TestFetchCommands:
    """Test fetch and fetch-all."""

    def test_fetch_prints_path(self, initialized, transport):
        initialized("catalog-add", "a", A_URL, "none")

        result = initialized("fetch", "a")

        assert result.exit_code == 0
        assert "a:a-1.0.tar.gz" in result.output
        assert transport.calls == [A_URL]

    def test_fetch_unknown(self, initialized):
        result = initialized("fetch", "nope")

        assert result.exit_code == 9

    def test_fetch_checksum_mismatch(self, initialized):
        initialized("catalog-add", "a", A_URL, "MD5:" + "0" * 32)

        result = initialized("fetch", "a")

        assert result.exit_code == 10
        assert "Checksum mismatch" in result.output

    def test_fetch_all(self, initialized, transport):
        initialized("catalog-add", "a", A_URL, "none")
        initialized("catalog-add", "b", B_URL, "none")

        result = initialized("fetch-all")

        assert result.exit_code == 0
        assert "a:a-1.0.tar.gz" in result.output
        assert "b:b-2.0.tar.gz" in result.output
        assert transport.calls == [A_URL, B_URL]

    def test_fetch_all_partial_failure(self, initialized):
        initialized("catalog-add", "a", A_URL, "none")

        result = initialized("fetch-all", "a", "bad")

        assert result.exit_code == 11
        assert "a:a-1.0.tar.gz" in result.output
        assert "bad" in result.output

    def test_lock_unavailable(self, initialized, tmp_path, config, transport):
        repo = Repository.open(tmp_path, config)
        impatient = RepositoryConfig(lock_timeout=0.1)

        with repo.locked():
            result = CliRunner().invoke(
                cli,
                ["-C", str(tmp_path), "catalog-list"],
                obj={"config": impatient, "transport": transport},
            )

        assert result.exit_code == 4
