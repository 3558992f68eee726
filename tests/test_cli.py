"""
Tests for the sealed-env command line and the file collaborator.
"""
import os
import stat
import sys

import orjson
import pytest

from sealed_env.cli import EXIT_CRYPTO, EXIT_ERROR, EXIT_OK, main
from sealed_env.exceptions import IOFailure
from sealed_env.files import read_bytes, read_text, write_bytes
from sealed_env.vault.config import PRIVATE_KEY_ENV
from sealed_env.vault.crypto import decrypt


@pytest.fixture
def workdir(tmp_path, clean_env):
    """Run the CLI inside an empty temporary directory."""
    clean_env.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def keys_on_disk(workdir, key_pair):
    (workdir / "private_key").write_text(key_pair.private_key)
    (workdir / "public_key.pem").write_text(key_pair.public_key)
    return key_pair


class TestFiles:
    """Tests for read_bytes/read_text/write_bytes."""

    def test_write_creates_parents(self, tmp_path):
        target = tmp_path / "a" / "b" / "out.json"
        write_bytes(target, b"{}")
        assert read_bytes(target) == b"{}"

    def test_read_missing(self, tmp_path):
        with pytest.raises(IOFailure):
            read_bytes(tmp_path / "missing")

    def test_read_text_invalid_utf8(self, tmp_path):
        path = tmp_path / "bad.env"
        path.write_bytes(b"A=\xff")
        with pytest.raises(IOFailure):
            read_text(path)

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_private_file_mode(self, tmp_path):
        target = tmp_path / "secret"
        write_bytes(target, b"x", private=True)
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600

    def test_write_into_file_path_fails(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_bytes(b"")
        with pytest.raises(IOFailure):
            write_bytes(blocker / "child", b"x")


class TestGenerateCommand:
    """Tests for `sealed-env generate`."""

    def test_generate_writes_keys(self, workdir):
        assert main(["generate"]) == EXIT_OK
        private = (workdir / "private_key").read_text()
        public = (workdir / "public_key.pem").read_text()
        assert public.startswith("-----BEGIN PUBLIC KEY-----")
        assert "BEGIN" not in private

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_private_key_is_owner_only(self, workdir):
        main(["generate"])
        mode = stat.S_IMODE(os.stat(workdir / "private_key").st_mode)
        assert mode == 0o600

    def test_custom_paths(self, workdir, clean_env):
        clean_env.setenv("SEALED_ENV_PRIVATE_KEY_FILE", "keys/id")
        clean_env.setenv("SEALED_ENV_PUBLIC_KEY_FILE", "keys/id.pem")
        assert main(["generate"]) == EXIT_OK
        assert (workdir / "keys" / "id").exists()
        assert (workdir / "keys" / "id.pem").exists()

    def test_key_size_too_small(self, workdir):
        assert main(["generate", "--key-size", "1024"]) == EXIT_ERROR
        assert not (workdir / "private_key").exists()


class TestBuildCommand:
    """Tests for `sealed-env build`."""

    def test_build_default_paths(self, workdir, keys_on_disk):
        (workdir / "build.env").write_text("A=1\nB=2\n")
        assert main(["build"]) == EXIT_OK
        envelope = (workdir / "public" / "build.env.json").read_bytes()
        assert set(orjson.loads(envelope)) == {"key", "iv", "tag", "data"}
        assert decrypt(envelope, keys_on_disk.private_key) == "A=1\nB=2\n"

    def test_build_explicit_file_and_output(self, workdir, keys_on_disk):
        (workdir / ".env").write_text("SECRET=value")
        assert main(["build", ".env", "--out", "dist/env.json"]) == EXIT_OK
        envelope = (workdir / "dist" / "env.json").read_bytes()
        assert decrypt(envelope, keys_on_disk.private_key) == "SECRET=value"

    def test_build_missing_env_file(self, workdir, keys_on_disk):
        assert main(["build", "nope.env"]) == EXIT_ERROR

    def test_build_missing_public_key(self, workdir):
        (workdir / "build.env").write_text("A=1")
        assert main(["build"]) == EXIT_ERROR

    def test_build_invalid_public_key(self, workdir):
        (workdir / "build.env").write_text("A=1")
        (workdir / "public_key.pem").write_text("garbage")
        assert main(["build"]) == EXIT_CRYPTO


class TestDecryptCommand:
    """Tests for `sealed-env decrypt`."""

    @pytest.fixture
    def built(self, workdir, keys_on_disk):
        (workdir / "build.env").write_text("DB_HOST=localhost\nDB_PORT=5432")
        assert main(["build"]) == EXIT_OK
        return workdir / "public" / "build.env.json"

    def test_lists_key_names(self, built, capsys):
        assert main(["decrypt"]) == EXIT_OK
        out = capsys.readouterr().out
        assert out.splitlines() == ["DB_HOST", "DB_PORT"]
        assert "localhost" not in out

    def test_show_values(self, built, capsys):
        assert main(["decrypt", str(built), "--show-values"]) == EXIT_OK
        assert capsys.readouterr().out.splitlines() == [
            "DB_HOST=localhost",
            "DB_PORT=5432",
        ]

    def test_private_key_from_env(self, built, workdir, clean_env, key_pair, capsys):
        (workdir / "private_key").unlink()
        clean_env.setenv(PRIVATE_KEY_ENV, key_pair.private_key)
        assert main(["decrypt"]) == EXIT_OK
        assert "DB_PORT" in capsys.readouterr().out

    def test_wrong_key(self, built, workdir, other_key_pair, caplog):
        (workdir / "private_key").write_text(other_key_pair.private_key)
        assert main(["decrypt"]) == EXIT_CRYPTO
        assert "Decryption failed" in caplog.text

    def test_malformed_envelope(self, built):
        built.write_bytes(b"{not json")
        assert main(["decrypt"]) == EXIT_CRYPTO

    def test_missing_envelope(self, workdir, keys_on_disk):
        assert main(["decrypt", "missing.json"]) == EXIT_ERROR

    def test_url_uses_remote_loader(self, workdir, keys_on_disk, clean_env, capsys):
        calls = []

        async def fake_remote(url, private_key, store=None, *, session=None, timeout=10.0):
            calls.append((url, timeout))
            return {"REMOTE": "1"}

        clean_env.setattr("sealed_env.cli.load_remote_config", fake_remote)
        clean_env.setenv("SEALED_ENV_FETCH_TIMEOUT", "3")
        assert main(["decrypt", "https://example.invalid/build.env.json"]) == EXIT_OK
        assert calls == [("https://example.invalid/build.env.json", 3.0)]
        assert capsys.readouterr().out.splitlines() == ["REMOTE"]

    def test_url_fetch_failure(self, workdir, keys_on_disk, clean_env):
        async def failing_remote(url, private_key, store=None, *, session=None, timeout=10.0):
            raise IOFailure(f"Cannot fetch {url}")

        clean_env.setattr("sealed_env.cli.load_remote_config", failing_remote)
        assert main(["decrypt", "http://example.invalid/x.json"]) == EXIT_ERROR


class TestUsage:
    """Tests for argument handling."""

    def test_no_command(self, workdir, capsys):
        assert main([]) == EXIT_ERROR
        assert "usage" in capsys.readouterr().err

    def test_invalid_setting(self, workdir, clean_env):
        clean_env.setenv("SEALED_ENV_LOG_LEVEL", "LOUD")
        assert main(["generate"]) == EXIT_ERROR
        assert not (workdir / "private_key").exists()
