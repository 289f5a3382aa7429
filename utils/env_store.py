import logging
import os
import platform
import re
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values

from settings import ACCESS_TOKEN_KEY, DEFAULT_ENV_FILE, REFRESH_TOKEN_KEY

logger = logging.getLogger(__name__)

# Seconds to wait for another process holding the store lock
LOCK_TIMEOUT = 30


@dataclass(frozen=True)
class StoredCredentials:
    """Token values currently persisted in the store (None when absent or blank)"""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class EnvFileStore:
    """KEY=value credential store backed by a .env file

    upsert() only touches the lines of the keys it is given; every other line
    in the file is written back unchanged.
    """

    def __init__(self, env_file: Optional[str] = None):
        self.env_path = Path(env_file if env_file else DEFAULT_ENV_FILE)
        self.lock_path = self.env_path.with_name(self.env_path.name + ".lock")

    def read(self) -> StoredCredentials:
        """Read the persisted access and refresh tokens"""
        values = self._load_values()
        return StoredCredentials(
            access_token=_clean(values.get(ACCESS_TOKEN_KEY)),
            refresh_token=_clean(values.get(REFRESH_TOKEN_KEY)),
        )

    def upsert(self, fields: Mapping[str, str]) -> bool:
        """Rewrite KEY=value lines in place, appending keys that are not present yet

        Args:
            fields: Keys and values to write

        Returns:
            True if the file was written
        """
        if not fields:
            return True

        try:
            with self._locked():
                content = self.env_path.read_text(encoding="utf-8") if self.env_path.exists() else ""
                for key, value in fields.items():
                    content = _upsert_line(content, key, value)
                self._write_atomic(content)
        except (OSError, IOError) as e:
            logger.error(f"Failed to update {self.env_path}: {e}")
            return False

        logger.debug(f"Updated {', '.join(fields)} in {self.env_path}")
        return True

    def save_credentials(self, access_token: str, refresh_token: Optional[str]) -> bool:
        """Persist a credential pair in one write

        The refresh token key is only written when there is a refresh token, so
        an absent token stays absent instead of becoming an empty value.
        """
        fields = {ACCESS_TOKEN_KEY: access_token}
        if refresh_token and refresh_token.strip():
            fields[REFRESH_TOKEN_KEY] = refresh_token
        return self.upsert(fields)

    def get_status(self) -> Dict[str, Any]:
        """Get store status without exposing secrets"""
        stored = self.read()
        return {
            "store_file": str(self.env_path),
            "store_exists": self.env_path.exists(),
            "has_access_token": stored.access_token is not None,
            "has_refresh_token": stored.refresh_token is not None,
        }

    def _load_values(self) -> Dict[str, Optional[str]]:
        if not self.env_path.exists():
            return {}
        try:
            return dotenv_values(self.env_path)
        except (OSError, IOError) as e:
            logger.error(f"Failed to read {self.env_path}: {e}")
            return {}

    def _write_atomic(self, content: str):
        temp_path = self.env_path.with_name(self.env_path.name + ".tmp")
        temp_path.write_text(content, encoding="utf-8")

        # Set file permissions to 600 on Unix-like systems
        if platform.system() != "Windows":
            os.chmod(temp_path, 0o600)

        os.replace(temp_path, self.env_path)

    @contextmanager
    def _locked(self, timeout: int = LOCK_TIMEOUT):
        """Hold an exclusive lock on the sibling .lock file (POSIX only)"""
        if platform.system() == "Windows":
            yield
            return

        import fcntl

        if self.env_path.parent and not self.env_path.parent.exists():
            self.env_path.parent.mkdir(parents=True, exist_ok=True)

        lock_fd = os.open(str(self.lock_path), os.O_CREAT | os.O_RDWR, 0o600)
        start_time = time.time()
        try:
            while True:
                try:
                    fcntl.flock(lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except (IOError, OSError):
                    if time.time() - start_time >= timeout:
                        raise TimeoutError(f"Could not lock {self.env_path} within {timeout}s")
                    time.sleep(0.1)
            yield
        finally:
            try:
                fcntl.flock(lock_fd, fcntl.LOCK_UN)
            finally:
                os.close(lock_fd)

    @property
    def store_file(self) -> Path:
        """Get the store file path"""
        return self.env_path


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def _upsert_line(content: str, key: str, value: str) -> str:
    pattern = re.compile(rf"^{re.escape(key)}=.*$", re.MULTILINE)
    line = f"{key}={value}"
    if pattern.search(content):
        return pattern.sub(lambda _match: line, content, count=1)

    if content and not content.endswith("\n"):
        content += "\n"
    return content + line + "\n"
