"""Pytest configuration and fixtures for task-mon tests."""

import os

import httpx
import pytest

from taskmon.client import CheckinClient
from taskmon.core.config import Config
from taskmon.core.log import ConsoleSink, setup_logger

BASE_URL = "http://ping.test"


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Configure console-only debug logging during tests.

    Nothing is sent to logfire.dev.
    """
    setup_logger(
        name="test",
        level="debug",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep configuration lookups away from the developer's machine.

    User config points into tmp_path, the working directory is
    tmp_path, and HEALTHCHECKS_* variables are cleared.
    """
    monkeypatch.setattr(
        "taskmon.core.yaml_settings.user_config_dir",
        lambda *args, **kwargs: str(tmp_path / "user-config"),
    )
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("HEALTHCHECKS_"):
            monkeypatch.delenv(name)


class FakePingServer:
    """Records requests and answers them like a ping endpoint.

    status_for maps a path suffix (e.g. "/start") to the status
    code returned for it; everything else gets default_status.
    """

    def __init__(self, default_status=200):
        self.requests: list[httpx.Request] = []
        self.default_status = default_status
        self.status_for: dict[str, int] = {}
        self.error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        status = self.default_status
        for suffix, code in self.status_for.items():
            if request.url.path.endswith(suffix):
                status = code
        return httpx.Response(status, text="OK")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> list[str]:
        return [f"{r.method} {r.url.path}" for r in self.requests]


@pytest.fixture
def ping_server():
    """Fake ping endpoint."""
    return FakePingServer()


@pytest.fixture
def make_config():
    """Factory for a Config pointed at the fake ping server."""
    def _make(uuid="check", command=("echo", "hello"), **kwargs):
        kwargs.setdefault("base_url", BASE_URL)
        return Config(uuid=uuid, command=list(command), **kwargs)
    return _make


@pytest.fixture
def make_client(ping_server):
    """Factory for a CheckinClient talking to the fake ping server."""
    def _make(config):
        return CheckinClient.from_config(
            config, transport=ping_server.transport
        )
    return _make
