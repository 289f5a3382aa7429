"""Shared fixtures: settings in a temp dir and a fake Kite API on httpx.MockTransport."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs

import httpx
import pytest

from config import KiteSettings
from utils.debug_console import CONSOLE_LOGGER
from utils.env_store import EnvFileStore


class FakeKiteAPI:
    """In-memory stand-in for the Kite session endpoints

    Responses are (status_code, json_body) tuples; set a path in `fail_paths`
    to make requests to it raise httpx.ConnectError.
    """

    def __init__(self):
        self.profile: Tuple[int, Any] = (200, {"status": "success", "data": {"user_id": "AB1234"}})
        self.refresh: Tuple[int, Any] = (200, {"status": "success", "data": {"access_token": "AT2"}})
        self.exchange: Tuple[int, Any] = (
            200, {"status": "success", "data": {"access_token": "AT1", "refresh_token": "RT1"}}
        )
        self.holdings: Tuple[int, Any] = (200, {"status": "success", "data": []})
        self.fail_paths = set()
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.fail_paths:
            raise httpx.ConnectError("connection refused", request=request)

        routes = {
            "/user/profile": self.profile,
            "/session/refresh_token": self.refresh,
            "/session/token": self.exchange,
            "/portfolio/holdings": self.holdings,
        }
        if path not in routes:
            return httpx.Response(404, json={"status": "error", "message": "not found"})
        status_code, body = routes[path]
        return httpx.Response(status_code, json=body)

    def client_factory(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def calls(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def form(self, request: httpx.Request) -> Dict[str, str]:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


@pytest.fixture
def fake_api() -> FakeKiteAPI:
    return FakeKiteAPI()


@pytest.fixture
def env_file(tmp_path: Path) -> Path:
    return tmp_path / ".env"


@pytest.fixture
def make_settings(env_file: Path):
    def _make(**overrides) -> KiteSettings:
        values = {"api_key": "K", "api_secret": "S", "env_file": env_file}
        values.update(overrides)
        return KiteSettings(**values)
    return _make


@pytest.fixture
def settings(make_settings) -> KiteSettings:
    return make_settings()


@pytest.fixture
def store(env_file: Path) -> EnvFileStore:
    return EnvFileStore(env_file)


@pytest.fixture
def write_env(env_file: Path):
    def _write(content: str, path: Optional[Path] = None) -> Path:
        target = path or env_file
        target.write_text(content, encoding="utf-8")
        return target
    return _write


@pytest.fixture
def restore_root_logger():
    """Undo CLI logging setup so handlers don't leak between tests"""
    root_logger = logging.getLogger()
    httpx_logger = logging.getLogger("httpx")
    handlers = root_logger.handlers[:]
    level = root_logger.level
    httpx_level = httpx_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(level)
    httpx_logger.setLevel(httpx_level)

    console_logger = logging.getLogger(CONSOLE_LOGGER)
    for handler in console_logger.handlers[:]:
        console_logger.removeHandler(handler)
        handler.close()
    console_logger.setLevel(logging.NOTSET)
    console_logger.propagate = True


KITE_VARS = (
    "KITE_API_KEY",
    "KITE_API_SECRET",
    "KITE_ACCESS_TOKEN",
    "KITE_REFRESH_TOKEN",
    "KITE_ENV_FILE",
    "KITE_API_BASE",
    "KITE_LOGIN_BASE",
    "KITE_REQUEST_TIMEOUT",
    "KITE_VALIDATION_RETRIES",
    "KITE_CALLBACK_TIMEOUT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Start without Kite variables and drop whatever load_dotenv adds"""
    for name in KITE_VARS:
        # setenv first so monkeypatch restores the variable's original absence
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
