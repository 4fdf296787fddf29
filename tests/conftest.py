"""Shared test fixtures for the sitechat test suite."""

import os
import tempfile

# Keep the app's static mount and any stray writes out of the working tree.
os.environ.setdefault("PROSPECTS_DIR", tempfile.mkdtemp(prefix="sitechat-prospects-"))
os.environ.setdefault("LAYOUT_PREFERENCES_PATH", os.path.join(tempfile.mkdtemp(), "layout.json"))

import pytest
from fastapi.testclient import TestClient

from sitechat.client import ResilientClient
from sitechat.events import EventBus
from tests.utils import EventRecorder, FakeGateway, FakeTransport, RecordingSleep


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(transport, sleep):
    return ResilientClient(
        "http://storage.test",
        timeout_ms=500,
        max_attempts=3,
        base_delay_ms=1000,
        session=transport,
        sleep=sleep,
    )


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def recorder(events):
    return EventRecorder(events)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def prospects_dir(monkeypatch, tmp_path):
    """Redirect session folders to a temporary directory for test isolation."""
    import config

    monkeypatch.setattr(config, "PROSPECTS_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def api(prospects_dir):
    from main import create_app

    return TestClient(create_app())
