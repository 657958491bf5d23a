"""Shared fixtures: isolated settings, demo client, canned HTTP responses."""

import json
import os
from unittest.mock import patch

import pytest
import requests

from valtstorage import config, terminal
from valtstorage.api import ValtStorageClient
from valtstorage.config import Settings


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path):
    """Keep every test away from the real ~/.valtstorage and VALTSTORAGE_* vars."""
    clean = {k: v for k, v in os.environ.items() if not k.startswith("VALTSTORAGE_")}
    clean["VALTSTORAGE_CONFIG"] = str(tmp_path / "home" / "config.json")
    with patch.dict(os.environ, clean, clear=True):
        config.set_settings(None)
        yield
        config.set_settings(None)
        terminal.use_theme(Settings())


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "home" / "config.json"


@pytest.fixture
def write_config(config_path):
    def _write(data):
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(data) if not isinstance(data, str) else data)
        return config_path
    return _write


@pytest.fixture
def demo_settings(config_path):
    """Demo-mode settings with a fast animation; installed process-wide."""
    settings = Settings.load(path=config_path, environ={"VALTSTORAGE_ENV": "demo"})
    settings.progress_update_interval = 0.01
    config.set_settings(settings)
    return settings


@pytest.fixture
def live_settings(config_path):
    settings = Settings.load(
        path=config_path, environ={"VALTSTORAGE_API_URL": "https://api.example.test/public"}
    )
    settings.progress_update_interval = 0.01
    config.set_settings(settings)
    return settings


@pytest.fixture
def demo_client(demo_settings):
    return ValtStorageClient(demo_settings, simulate_latency=False)


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "report.pdf"
    path.write_bytes(b"%PDF-1.4 sample document")
    return path


def make_response(status=200, json_body=None, content=b"", headers=None, url="https://api.example.test"):
    """Build a fully-read requests.Response."""
    response = requests.Response()
    response.status_code = status
    response.url = url
    if json_body is not None:
        content = json.dumps(json_body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    response.headers.update(headers or {})
    response._content = content
    response._content_consumed = True
    return response
