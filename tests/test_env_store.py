"""Unit tests for the .env credential store."""

import os
import platform

import pytest

from utils.env_store import EnvFileStore, StoredCredentials


class TestRead:
    """Tests for EnvFileStore.read()."""

    def test_missing_file(self, store) -> None:
        assert store.read() == StoredCredentials(None, None)

    def test_reads_both_tokens(self, store, write_env) -> None:
        write_env("KITE_API_KEY=K\nKITE_ACCESS_TOKEN=AT\nKITE_REFRESH_TOKEN=RT\n")
        assert store.read() == StoredCredentials("AT", "RT")

    def test_blank_refresh_token_is_absent(self, store, write_env) -> None:
        write_env("KITE_ACCESS_TOKEN=AT\nKITE_REFRESH_TOKEN=\n")
        stored = store.read()
        assert stored.access_token == "AT"
        assert stored.refresh_token is None

    def test_whitespace_refresh_token_is_absent(self, store, write_env) -> None:
        write_env("KITE_ACCESS_TOKEN=AT\nKITE_REFRESH_TOKEN='   '\n")
        assert store.read().refresh_token is None


class TestUpsert:
    """Tests for EnvFileStore.upsert()."""

    def test_replaces_only_the_given_key(self, store, write_env, env_file) -> None:
        original = (
            "# Kite settings\n"
            "KITE_API_KEY=K\n"
            "KITE_API_SECRET=S\n"
            "KITE_ACCESS_TOKEN=old\n"
            "EMAIL_TO=a@example.com, b@example.com\n"
            "\n"
            "EMAIL_PASS=p@ss=word\n"
        )
        write_env(original)

        assert store.upsert({"KITE_ACCESS_TOKEN": "new"}) is True

        assert env_file.read_text() == original.replace("KITE_ACCESS_TOKEN=old", "KITE_ACCESS_TOKEN=new")

    def test_appends_missing_key(self, store, write_env, env_file) -> None:
        write_env("KITE_API_KEY=K\nKITE_ACCESS_TOKEN=AT\n")

        store.upsert({"KITE_REFRESH_TOKEN": "RT"})

        assert env_file.read_text() == "KITE_API_KEY=K\nKITE_ACCESS_TOKEN=AT\nKITE_REFRESH_TOKEN=RT\n"

    def test_appends_on_new_line_when_file_lacks_trailing_newline(self, store, write_env, env_file) -> None:
        write_env("KITE_API_KEY=K")

        store.upsert({"KITE_ACCESS_TOKEN": "AT"})

        assert env_file.read_text() == "KITE_API_KEY=K\nKITE_ACCESS_TOKEN=AT\n"

    def test_creates_missing_file(self, store, env_file) -> None:
        assert not env_file.exists()

        store.upsert({"KITE_ACCESS_TOKEN": "AT"})

        assert env_file.read_text() == "KITE_ACCESS_TOKEN=AT\n"

    def test_key_prefix_is_not_matched(self, store, write_env, env_file) -> None:
        """A line for OLD_KITE_ACCESS_TOKEN must not be touched."""
        write_env("OLD_KITE_ACCESS_TOKEN=keep\nKITE_ACCESS_TOKEN=old\n")

        store.upsert({"KITE_ACCESS_TOKEN": "new"})

        assert env_file.read_text() == "OLD_KITE_ACCESS_TOKEN=keep\nKITE_ACCESS_TOKEN=new\n"

    def test_value_with_backslashes_is_written_literally(self, store, write_env, env_file) -> None:
        write_env("KITE_ACCESS_TOKEN=old\n")

        store.upsert({"KITE_ACCESS_TOKEN": r"a\1b\g<0>"})

        assert env_file.read_text() == "KITE_ACCESS_TOKEN=a\\1b\\g<0>\n"

    def test_empty_fields_is_a_no_op(self, store, env_file) -> None:
        assert store.upsert({}) is True
        assert not env_file.exists()

    def test_no_temp_file_left_behind(self, store, env_file) -> None:
        store.upsert({"KITE_ACCESS_TOKEN": "AT"})
        assert not env_file.with_name(env_file.name + ".tmp").exists()

    @pytest.mark.skipif(platform.system() == "Windows", reason="POSIX permissions")
    def test_file_is_private(self, store, env_file) -> None:
        store.upsert({"KITE_ACCESS_TOKEN": "AT"})
        assert os.stat(env_file).st_mode & 0o777 == 0o600

    def test_write_failure_returns_false(self, tmp_path) -> None:
        store = EnvFileStore(tmp_path / "missing-dir" / "sub" / ".env")
        (tmp_path / "missing-dir").write_text("not a directory")

        assert store.upsert({"KITE_ACCESS_TOKEN": "AT"}) is False


class TestSaveCredentials:
    """Tests for EnvFileStore.save_credentials()."""

    def test_writes_both_tokens(self, store, env_file) -> None:
        store.save_credentials("AT1", "RT1")
        assert env_file.read_text() == "KITE_ACCESS_TOKEN=AT1\nKITE_REFRESH_TOKEN=RT1\n"

    def test_absent_refresh_token_is_not_written(self, store, env_file) -> None:
        store.save_credentials("AT1", None)
        assert env_file.read_text() == "KITE_ACCESS_TOKEN=AT1\n"
        assert "KITE_REFRESH_TOKEN" not in env_file.read_text()

    def test_blank_refresh_token_leaves_existing_value(self, store, write_env, env_file) -> None:
        write_env("KITE_ACCESS_TOKEN=old\nKITE_REFRESH_TOKEN=RT0\n")
        store.save_credentials("AT1", "")
        assert store.read() == StoredCredentials("AT1", "RT0")


class TestGetStatus:
    def test_status_never_contains_token_values(self, store, write_env, env_file) -> None:
        write_env("KITE_ACCESS_TOKEN=secret-access\n")
        status = store.get_status()
        assert status == {
            "store_file": str(env_file),
            "store_exists": True,
            "has_access_token": True,
            "has_refresh_token": False,
        }
        assert "secret-access" not in repr(status)
