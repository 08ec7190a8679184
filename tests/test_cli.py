"""Tests for the ablob command line interface."""

import pytest
from typer.testing import CliRunner

from atomicblob.cli.main import app
from atomicblob.context import Context
from atomicblob.services.group import Group
from atomicblob.services.storage.local import LocalFileBucket

runner = CliRunner()


@pytest.fixture
def bucket_dir(tmp_path, monkeypatch):
    """Isolated local bucket plus an empty config location."""
    monkeypatch.setenv("ATOMICBLOB_CONFIG", str(tmp_path / "config.yaml"))
    monkeypatch.delenv("AZURE_STORAGE_CONNECTION_STRING", raising=False)
    return tmp_path / "bucket"


def invoke(*args):
    return runner.invoke(app, list(args))


class TestCli:
    """Commands against a local bucket."""

    def test_put_then_get(self, bucket_dir):
        result = invoke("put", "settings", "flags", "--value", "on", "--path", str(bucket_dir))
        assert result.exit_code == 0, result.output

        result = invoke("get", "settings", "flags", "--path", str(bucket_dir))
        assert result.exit_code == 0
        assert result.stdout == "on"

    def test_put_from_file(self, bucket_dir, tmp_path):
        source = tmp_path / "flags.json"
        source.write_bytes(b'{"dark_mode": true}')

        result = invoke("put", "settings", "flags", "-f", str(source), "-p", str(bucket_dir))
        assert result.exit_code == 0, result.output

        group = Group(LocalFileBucket(bucket_dir), "settings")
        assert group.get(Context.background(), "flags") == b'{"dark_mode": true}'

    def test_put_requires_one_source(self, bucket_dir):
        result = invoke("put", "settings", "flags", "-p", str(bucket_dir))
        assert result.exit_code == 2

    def test_append(self, bucket_dir):
        for line in ["first", "second"]:
            result = invoke("append", "logs", "events", line, "-p", str(bucket_dir))
            assert result.exit_code == 0, result.output

        group = Group(LocalFileBucket(bucket_dir), "logs")
        assert group.get(Context.background(), "events") == b"first\nsecond\n"

    def test_list(self, bucket_dir):
        for name in ["b", "a"]:
            invoke("put", "settings", name, "--value", name, "-p", str(bucket_dir))

        result = invoke("list", "settings", "-p", str(bucket_dir))

        assert result.exit_code == 0
        assert result.stdout.split() == ["a", "b"]

    def test_get_missing(self, bucket_dir):
        result = invoke("get", "settings", "nope", "-p", str(bucket_dir))
        assert result.exit_code == 1

    def test_get_to_file(self, bucket_dir, tmp_path):
        invoke("put", "settings", "flags", "--value", "on", "-p", str(bucket_dir))
        target = tmp_path / "out.txt"

        result = invoke("get", "settings", "flags", "-o", str(target), "-p", str(bucket_dir))

        assert result.exit_code == 0
        assert target.read_bytes() == b"on"

    def test_info(self, bucket_dir):
        invoke("put", "settings", "flags", "--value", "on", "-p", str(bucket_dir))
        invoke("put", "settings", "flags", "--value", "off", "-p", str(bucket_dir))

        result = invoke("info", "settings", "-p", str(bucket_dir))

        assert result.exit_code == 0
        assert "Serial: 2" in result.stdout
        assert "flags" in result.stdout

    def test_info_empty_group(self, bucket_dir):
        result = invoke("info", "settings", "-p", str(bucket_dir))

        assert result.exit_code == 0
        assert "Serial: 0" in result.stdout
        assert "(no entries)" in result.stdout

    def test_invalid_config(self, bucket_dir, tmp_path):
        (tmp_path / "config.yaml").write_text("backend: ftp\n")

        result = invoke("list", "settings", "-p", str(bucket_dir))

        assert result.exit_code == 1

    def test_version(self):
        result = invoke("version")

        assert result.exit_code == 0
        assert "atomicblob version" in result.stdout
