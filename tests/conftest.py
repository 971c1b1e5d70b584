"""Shared pytest fixtures for all tests: an isolated upload root and a TestClient bound to it."""
import pytest
from fastapi.testclient import TestClient

from file_gateway.adapters.storage import LocalImageStorage
from file_gateway.config.settings import Settings
from file_gateway.main import create_app
from tests.consts import (
    GATEWAY_ENV_VARS,
    TEST_BASE_URL,
    TEST_IMAGE_CONTENT,
    TEST_IMAGE_CONTENT_TYPE,
    TEST_IMAGE_NAME,
    TEST_UPLOAD_DIR,
    TEST_USER_ID,
)


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run the test from an empty working directory with no gateway env vars set."""
    for name in GATEWAY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def settings(workdir) -> Settings:
    return Settings(upload_dir=TEST_UPLOAD_DIR, base_url=TEST_BASE_URL)


@pytest.fixture
def client(settings) -> TestClient:
    return TestClient(create_app(settings))


@pytest.fixture
def storage(client) -> LocalImageStorage:
    return client.app.state.storage


@pytest.fixture
def user_dir(settings):
    return settings.upload_root / TEST_USER_ID


@pytest.fixture
def upload_image(client):
    """Upload ``content`` as ``name`` and return the response."""
    def _upload(name: str = TEST_IMAGE_NAME, content: bytes = TEST_IMAGE_CONTENT):
        return client.post(
            "/upload",
            files={"image": (name, content, TEST_IMAGE_CONTENT_TYPE)},
        )
    return _upload


@pytest.fixture
def delete_image(client):
    """Send ``DELETE /delete`` with ``{"imageUrl": url}``."""
    def _delete(url: str):
        return client.request("DELETE", "/delete", json={"imageUrl": url})
    return _delete
